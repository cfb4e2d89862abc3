import logging
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

logging.getLogger("urllib3.connectionpool").disabled = True

# ensure project root is on the import path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from catalog_feed.schemas.models import CatalogEntity, Price, VariationValue  # noqa: E402


def make_entity(pid: str, modified: datetime = datetime(2024, 5, 1, 12, 0, 0), **kw):
    return CatalogEntity(id=pid, name=kw.pop("name", f"Product {pid}"), last_modified=modified, **kw)


@pytest.fixture
def variant():
    return CatalogEntity(
        id="shirt-blue-m",
        name="Shirt Blue",
        short_description="Soft cotton,\r\nslim fit",
        master_id="shirt",
        variation={"size": VariationValue(value="M", display_value="Medium")},
        images={"small": ["https://cdn.example.com/shirt-s.jpg"], "large": ["x"]},
        prices={"usd-list": Price(value=Decimal("19.99"), currency="USD")},
        last_modified=datetime(2024, 5, 1, 12, 0, 0),
        custom={"hsCode": "6109", "origin": ""},
    )
