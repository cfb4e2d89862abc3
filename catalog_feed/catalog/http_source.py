from __future__ import annotations

import logging
from typing import Optional

from catalog_feed.catalog.source import CatalogSource
from catalog_feed.common import http
from catalog_feed.schemas.models import SearchHit

log = logging.getLogger(__name__)


class HttpCatalogSource(CatalogSource):
    """Read product search hits from a paged JSON endpoint.

    ``GET <base_url>/product_search`` is called with ``cgid``, ``start``,
    ``count`` and ``orderable_only`` and must answer with
    ``{"hits": [{"represented_products": [...]}, ...], "next": <int|null>}``.
    A missing ``next`` ends the scan after a short page.
    """

    def __init__(
        self,
        base_url: str,
        root_category: str = "root",
        page_size: int = 100,
        timeout: float = 30.0,
        token: str = "",
    ) -> None:
        super().__init__(page_size)
        if not base_url:
            raise ValueError("base_url is required for the http catalog source")
        self.base_url = base_url.rstrip("/")
        self.root_category = root_category
        self.timeout = timeout
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}

    def fetch_page(self, start: int, count: int) -> tuple[list[SearchHit], Optional[int]]:
        payload = http.get_json(
            f"{self.base_url}/product_search",
            params={
                "cgid": self.root_category,
                "start": start,
                "count": count,
                "orderable_only": "true",
            },
            headers=self.headers,
            timeout=self.timeout,
        )
        hits = [SearchHit(**item) for item in payload.get("hits") or []]
        if "next" in payload:
            next_start = payload["next"]
        else:
            next_start = start + len(hits) if len(hits) == count else None
        return hits, next_start
