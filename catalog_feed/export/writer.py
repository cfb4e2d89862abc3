from __future__ import annotations

import csv
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO, Optional

from catalog_feed.export.mapper import header


class FeedWriter:
    """Stream the header and records of one feed artifact to disk."""

    def __init__(self, path: Path, delimiter: str = "|") -> None:
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.path = Path(path)
        self.delimiter = delimiter
        self.rows_written = 0
        self._columns: Optional[int] = None
        self._fh: Optional[IO[str]] = None
        self._csv = None

    def __enter__(self) -> "FeedWriter":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self.path.open("w", newline="", encoding="utf-8")
        if len(self.delimiter) == 1:
            self._csv = csv.writer(self._fh, delimiter=self.delimiter, lineterminator="\n")

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            self._csv = None

    @property
    def closed(self) -> bool:
        return self._fh is None

    @property
    def has_data_rows(self) -> bool:
        return self.rows_written > 0

    def _write(self, row: Sequence[str]) -> None:
        if self._fh is None:
            raise ValueError(f"feed writer for {self.path} is closed")
        if self._csv is not None:
            self._csv.writerow(row)
        else:
            self._fh.write(self.delimiter.join(row) + "\n")

    def write_header(self, field_mapping: Mapping[str, str]) -> None:
        columns = header(field_mapping)
        self._columns = len(columns)
        self._write(columns)

    def write_record(self, record: Sequence[str]) -> None:
        if self._columns is None:
            raise ValueError("header must be written before records")
        if len(record) != self._columns:
            raise ValueError(
                f"record has {len(record)} columns, header has {self._columns}"
            )
        self._write(record)
        self.rows_written += 1
