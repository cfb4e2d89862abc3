from datetime import datetime

import duckdb
import pytest

from catalog_feed import cli
from catalog_feed.catalog.duckdb_source import DuckDBCatalogSource, create_schema
from catalog_feed.catalog.http_source import HttpCatalogSource
from catalog_feed.common.config import CatalogConfig
from catalog_feed.persist.delivery import DeliveryResult
from catalog_feed.persist.state import FeedStateStore


def test_build_source_by_kind(tmp_path, monkeypatch):
    assert isinstance(cli.build_source(CatalogConfig(db_path=str(tmp_path / "c.duckdb"))), DuckDBCatalogSource)
    monkeypatch.setenv("CATALOG_API_TOKEN", "t0k")
    http = cli.build_source(CatalogConfig(kind="http", base_url="https://api.example.com"))
    assert isinstance(http, HttpCatalogSource)
    assert http.headers == {"Authorization": "Bearer t0k"}


def test_http_source_requires_token(monkeypatch):
    monkeypatch.delenv("CATALOG_API_TOKEN", raising=False)
    with pytest.raises(SystemExit):
        cli.build_source(CatalogConfig(kind="http", base_url="https://api.example.com"))


def _settings(tmp_path, db, remote="/in/"):
    path = tmp_path / "settings.yml"
    path.write_text(
        "feed:\n"
        f"  local_path: {tmp_path / 'exports'}\n"
        "  brand_code: BRD\n"
        f"  remote_path: '{remote}'\n"
        "  transfer_service: sftp\n"
        "state:\n"
        f"  path: {tmp_path / 'state.json'}\n"
        "catalog:\n"
        f"  db_path: {db}\n"
    )
    return path


def _catalog(tmp_path):
    db = tmp_path / "catalog.duckdb"
    create_schema(db)
    con = duckdb.connect(str(db))
    con.execute("INSERT INTO categories VALUES ('root', NULL)")
    con.execute("INSERT INTO category_assignments VALUES ('mug', 'root')")
    con.execute(
        "INSERT INTO products (id, name, last_modified) VALUES (?, ?, ?)",
        ["mug", "Mug", datetime(2024, 1, 1)],
    )
    con.close()
    return db


def test_main_delivers_and_exits_zero(tmp_path, monkeypatch):
    pushed = []
    monkeypatch.setattr(
        cli.RcloneDeliveryClient,
        "push",
        lambda self, local, remote: pushed.append((self.service, remote)) or DeliveryResult(True),
    )
    config = _settings(tmp_path, _catalog(tmp_path))
    assert cli.main(["--config", str(config)]) == 0
    assert pushed == [("sftp", "/in/Catalog-BRD-00000000.csv")]
    assert FeedStateStore(tmp_path / "state.json").read().sequence_number == 1


def test_main_exits_one_on_failure(tmp_path, monkeypatch):
    monkeypatch.setattr(
        cli.RcloneDeliveryClient, "push", lambda self, local, remote: DeliveryResult(False, "down")
    )
    config = _settings(tmp_path, _catalog(tmp_path))
    assert cli.main(["--config", str(config)]) == 1
    assert FeedStateStore(tmp_path / "state.json").read().sequence_number == 0


def test_main_bad_field_mapping_exits_one(tmp_path, caplog):
    config = _settings(tmp_path, _catalog(tmp_path))
    text = config.read_text().replace("  brand_code: BRD\n", "  brand_code: BRD\n  field_mapping: '{not json'\n")
    config.write_text(text)
    assert cli.main(["--config", str(config)]) == 1
    assert "configuration error" in caplog.text
    assert not (tmp_path / "state.json").exists()


def test_main_missing_config_exits_one(tmp_path, caplog):
    assert cli.main(["--config", str(tmp_path / "nope.yml")]) == 1
    assert "configuration error" in caplog.text
