from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from catalog_feed.schemas.models import CatalogEntity


def format_timestamp(value: datetime) -> str:
    """Render *value* as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    The format is fixed width and zero padded, so plain string comparison
    orders timestamps chronologically. Naive datetimes are taken as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def include(entity: CatalogEntity, last_run_timestamp: Optional[str]) -> bool:
    # bootstrap run: export everything
    if not last_run_timestamp:
        return True
    return format_timestamp(entity.last_modified) > last_run_timestamp
