import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from jsonschema import ValidationError, validate
from pydantic import BaseModel, Field, field_validator

# Resolve the configuration path relative to the project root rather than
# the current working directory, so runs started from a scheduler with a
# different cwd still find it.
CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "settings.yml"

DEFAULT_DELIMITER = "|"

FIELD_MAPPING_SCHEMA = {
    "type": "object",
    "additionalProperties": {"type": "string"},
}


def parse_field_mapping(raw: Any) -> dict[str, str]:
    """Turn the custom field mapping preference into an ordered dict.

    The mapping is usually stored as serialized JSON text; YAML configs may
    also give it inline. Empty values mean no custom columns.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"field mapping is not valid JSON: {exc.msg}") from exc
    try:
        validate(instance=raw, schema=FIELD_MAPPING_SCHEMA)
    except ValidationError as exc:
        raise ValueError(f"invalid field mapping: {exc.message}") from exc
    return dict(raw)


class FeedConfig(BaseModel):
    local_path: str = "exports"
    site_id: str = ""
    delimiter: str = DEFAULT_DELIMITER
    brand_code: str = ""
    instance_id: str = ""
    price_book_id: str = ""
    field_mapping: dict[str, str] = Field(default_factory=dict)
    remote_path: str = ""
    transfer_service: str = ""
    storefront_host: str = "localhost"
    product_path: str = "/Product-Show"
    size_attribute: str = "size"
    # "after_scan" keeps the historical ordering: the run timestamp is saved
    # before delivery, so a failed push does not roll it back.
    timestamp_policy: Literal["after_scan", "after_delivery"] = "after_scan"

    @field_validator("delimiter", mode="before")
    @classmethod
    def _default_delimiter(cls, value: Any) -> Any:
        return value or DEFAULT_DELIMITER

    @field_validator("field_mapping", mode="before")
    @classmethod
    def _parse_mapping(cls, value: Any) -> dict[str, str]:
        return parse_field_mapping(value)

    @field_validator("instance_id", "site_id", "remote_path", "price_book_id", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def staging_dir(self) -> Path:
        base = Path(self.local_path)
        return base / self.site_id if self.site_id else base


class StateConfig(BaseModel):
    path: str = "exports/feed_state.json"


class CatalogConfig(BaseModel):
    kind: Literal["duckdb", "http"] = "duckdb"
    db_path: str = "catalog.duckdb"
    base_url: str = ""
    root_category: str = "root"
    page_size: int = Field(default=100, gt=0)


class Settings(BaseModel):
    feed: FeedConfig = Field(default_factory=FeedConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)

    class Config:
        extra = "allow"


def load_settings(path: Path | None = None) -> Settings:
    if path is None:
        path = Path(os.environ.get("CATALOG_FEED_CONFIG", CONFIG_PATH))
    data = yaml.safe_load(path.read_text()) or {}
    return Settings(**data)
