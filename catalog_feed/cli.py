from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from catalog_feed.catalog.duckdb_source import DuckDBCatalogSource
from catalog_feed.catalog.http_source import HttpCatalogSource
from catalog_feed.catalog.source import CatalogSource
from catalog_feed.common.config import CatalogConfig, load_settings
from catalog_feed.common.env import require_env
from catalog_feed.persist.rclone_push import RcloneDeliveryClient
from catalog_feed.persist.state import FeedStateStore
from catalog_feed.pipeline import run_feed

log = logging.getLogger(__name__)


def build_source(cfg: CatalogConfig) -> CatalogSource:
    if cfg.kind == "http":
        return HttpCatalogSource(
            cfg.base_url,
            cfg.root_category,
            cfg.page_size,
            token=require_env("CATALOG_API_TOKEN"),
        )
    return DuckDBCatalogSource(cfg.db_path, cfg.root_category, cfg.page_size)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export and deliver the catalog feed")
    parser.add_argument("--config", type=Path, help="Path to settings.yml")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
        source = build_source(settings.catalog)
    except (OSError, TypeError, ValueError, ValidationError, yaml.YAMLError) as exc:
        log.error("catalog feed configuration error: %s", exc)
        return 1
    result = run_feed(
        settings.feed,
        FeedStateStore(settings.state.path),
        source,
        RcloneDeliveryClient(settings.feed.transfer_service),
    )
    if not result.ok:
        log.error(
            "catalog feed failed state=%s error=%s: %s",
            result.state.value,
            result.error.value,
            result.message,
        )
        return 1
    log.info("catalog feed finished state=%s rows=%d", result.state.value, result.rows)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
