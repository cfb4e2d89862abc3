from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import duckdb

from catalog_feed.catalog.source import CatalogSource
from catalog_feed.schemas.models import CatalogEntity, Price, SearchHit

log = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS categories (id VARCHAR PRIMARY KEY, parent_id VARCHAR);
CREATE TABLE IF NOT EXISTS category_assignments (product_id VARCHAR, category_id VARCHAR);
CREATE TABLE IF NOT EXISTS products (
    id VARCHAR PRIMARY KEY,
    name VARCHAR,
    short_description VARCHAR,
    master_id VARCHAR,
    is_master BOOLEAN DEFAULT FALSE,
    orderable BOOLEAN DEFAULT TRUE,
    last_modified TIMESTAMP,
    variation VARCHAR,
    images VARCHAR,
    custom VARCHAR
);
CREATE TABLE IF NOT EXISTS prices (
    product_id VARCHAR,
    price_book_id VARCHAR,
    amount DECIMAL(18, 2),
    currency VARCHAR
);
"""

# Hits are the distinct products assigned anywhere below the root category.
HITS_SQL = """
WITH RECURSIVE tree(id) AS (
    SELECT id FROM categories WHERE id = ?
    UNION
    SELECT c.id FROM categories c JOIN tree t ON c.parent_id = t.id
)
SELECT DISTINCT a.product_id
FROM category_assignments a
JOIN tree t ON a.category_id = t.id
ORDER BY a.product_id
LIMIT ? OFFSET ?
"""

PRODUCT_COLUMNS = (
    "id, name, short_description, master_id, is_master, orderable, "
    "last_modified, variation, images, custom"
)


def create_schema(db_path: Path | str) -> None:
    """Create the catalog tables in *db_path* if they do not exist."""
    con = duckdb.connect(str(db_path))
    try:
        con.execute(SCHEMA_SQL)
    finally:
        con.close()


def _json(value: Optional[str]) -> Any:
    return json.loads(value) if value else {}


def _placeholders(values: list[str]) -> str:
    return ", ".join("?" for _ in values)


class DuckDBCatalogSource(CatalogSource):
    """Search the catalog tables of a DuckDB database."""

    def __init__(
        self, db_path: Path | str, root_category: str = "root", page_size: int = 100
    ) -> None:
        super().__init__(page_size)
        self.db_path = Path(db_path)
        self.root_category = root_category

    def fetch_page(self, start: int, count: int) -> tuple[list[SearchHit], Optional[int]]:
        con = duckdb.connect(str(self.db_path), read_only=True)
        try:
            hit_ids = [
                row[0]
                for row in con.execute(HITS_SQL, [self.root_category, count, start]).fetchall()
            ]
            if not hit_ids:
                return [], None
            hits = self._expand(con, hit_ids)
        finally:
            con.close()
        next_start = start + len(hit_ids) if len(hit_ids) == count else None
        log.debug("fetched %d hits at offset %d", len(hit_ids), start)
        return hits, next_start

    def _expand(self, con: duckdb.DuckDBPyConnection, hit_ids: list[str]) -> list[SearchHit]:
        marks = _placeholders(hit_ids)
        rows = con.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products "
            f"WHERE id IN ({marks}) OR master_id IN ({marks}) ORDER BY id",
            hit_ids + hit_ids,
        ).fetchall()
        products = {row[0]: row for row in rows}
        variants: dict[str, list[tuple]] = {}
        for row in rows:
            if row[3] in hit_ids:
                variants.setdefault(row[3], []).append(row)

        prices = self._prices(con, list(products))
        hits = []
        for hit_id in hit_ids:
            row = products.get(hit_id)
            if row is None:
                log.warning("assigned product %s missing from products table", hit_id)
                continue
            represented = variants.get(hit_id, []) if row[4] else [row]
            hits.append(
                SearchHit(
                    represented_products=[
                        self._entity(r, prices.get(r[0], {})) for r in represented
                    ]
                )
            )
        return hits

    def _prices(
        self, con: duckdb.DuckDBPyConnection, product_ids: list[str]
    ) -> dict[str, dict[str, Price]]:
        if not product_ids:
            return {}
        rows = con.execute(
            "SELECT product_id, price_book_id, amount, currency FROM prices "
            f"WHERE product_id IN ({_placeholders(product_ids)})",
            product_ids,
        ).fetchall()
        out: dict[str, dict[str, Price]] = {}
        for product_id, price_book_id, amount, currency in rows:
            out.setdefault(product_id, {})[price_book_id] = Price(
                value=amount, currency=currency or ""
            )
        return out

    @staticmethod
    def _entity(row: tuple, prices: dict[str, Price]) -> CatalogEntity:
        (pid, name, description, master_id, _, orderable, modified, variation, images, custom) = row
        return CatalogEntity(
            id=pid,
            name=name,
            short_description=description,
            master_id=master_id,
            variation=_json(variation),
            images=_json(images),
            prices=prices,
            last_modified=modified,
            orderable=bool(orderable),
            custom=_json(custom),
        )
