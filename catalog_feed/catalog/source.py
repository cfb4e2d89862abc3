"""Paged catalog search expanded into sellable units.

A search returns *hits*. A hit on a master product represents every variant
of that master, so :meth:`CatalogSource.scan` expands each hit and yields
the represented units one by one. Hits are pulled a page at a time; the
whole catalog is never held in memory.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Iterator
from typing import Optional

from catalog_feed.schemas.models import CatalogEntity, SearchHit

log = logging.getLogger(__name__)


class CatalogSource(abc.ABC):
    def __init__(self, page_size: int = 100) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self._scanned = False

    @abc.abstractmethod
    def fetch_page(self, start: int, count: int) -> tuple[list[SearchHit], Optional[int]]:
        """Return up to *count* hits from offset *start* and the next offset.

        The next offset is ``None`` once the last page has been returned.
        """

    def _pages(self) -> Iterator[list[SearchHit]]:
        start: Optional[int] = 0
        while start is not None:
            hits, next_start = self.fetch_page(start, self.page_size)
            if next_start is not None and next_start <= start:
                raise RuntimeError(
                    f"{type(self).__name__} did not advance past offset {start}"
                )
            # a page can expand to nothing when its hits are unusable
            if hits:
                yield hits
            start = next_start

    def scan(self) -> Iterator[CatalogEntity]:
        """Yield every orderable unit once. Can be called only once."""
        if self._scanned:
            raise RuntimeError(f"{type(self).__name__} has already been scanned")
        self._scanned = True
        return self._scan()

    def _scan(self) -> Iterator[CatalogEntity]:
        seen: set[str] = set()
        hits = 0
        for page in self._pages():
            hits += len(page)
            for hit in page:
                for entity in hit.represented_products:
                    if entity.id in seen or not entity.orderable:
                        continue
                    seen.add(entity.id)
                    yield entity
        log.info("catalog scan finished hits=%d units=%d", hits, len(seen))
