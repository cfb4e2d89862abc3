"""Persistent feed state: the file sequence counter and last scan timestamp.

State lives in a small JSON document. Every mutation rewrites the whole
document through a temporary file and :func:`os.replace`, so a crash between
the timestamp update and the sequence update leaves each value either fully
old or fully new. Nothing is ever rolled back.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from jsonschema import ValidationError, validate

from catalog_feed.schemas.models import FeedState

log = logging.getLogger(__name__)

STATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "sequence_number": {"type": ["integer", "null"], "minimum": 0},
        "last_run_timestamp": {"type": ["string", "null"]},
    },
}


class StateError(RuntimeError):
    """Raised when the stored state document cannot be used."""


class FeedStateStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text() or "{}")
            validate(instance=data, schema=STATE_SCHEMA)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StateError(f"unreadable feed state {self.path}: {exc}") from exc
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as fh:
                json.dump(data, fh)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def read(self) -> FeedState:
        data = self._load()
        return FeedState(
            sequence_number=data.get("sequence_number") or 0,
            last_run_timestamp=data.get("last_run_timestamp") or None,
        )

    def advance_timestamp(self, value: str) -> None:
        data = self._load()
        data["last_run_timestamp"] = value
        self._write(data)
        log.info("feed timestamp advanced to %s", value)

    def increment_sequence(self) -> int:
        data = self._load()
        count = (data.get("sequence_number") or 0) + 1
        data["sequence_number"] = count
        self._write(data)
        log.info("feed sequence advanced to %d", count)
        return count
