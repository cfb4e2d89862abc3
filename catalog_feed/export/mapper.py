"""Map catalog entities onto rows of the catalog feed.

Every row starts with the same eleven columns followed by one column per
entry of the custom field mapping, in mapping order.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from decimal import Decimal
from typing import Any
from urllib.parse import urlencode

from catalog_feed.schemas.models import CatalogEntity

FIXED_COLUMNS = [
    "productCode",
    "name",
    "description",
    "parentProductCode",
    "size",
    "url",
    "imageUrl",
    "unitPrice",
    "unitPriceCurrencyIso",
    "additionalProductCode",
    "variantProductCode",
]

IMAGE_VIEW_TYPE = "small"


def sanitize(text: str) -> str:
    """Strip line breaks and commas so free text cannot break the feed.

    Line breaks become commas first and then every comma becomes a space.
    Swapping the two steps would leave the commas produced by the line break
    step in the output.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\n", ",")
    return text.replace(",", " ")


def render_value(value: Any) -> str:
    """Render an attribute value as text for a feed column.

    Booleans are lower case, numbers drop trailing zeros, sequences are
    joined with commas and mappings are written as JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(render_value(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    return str(value)


def header(field_mapping: Mapping[str, str]) -> list[str]:
    return FIXED_COLUMNS + list(field_mapping.keys())


def product_url(product_id: str, host: str, path: str = "/Product-Show") -> str:
    if not path.startswith("/"):
        path = "/" + path
    return f"https://{host}{path}?{urlencode({'pid': product_id})}"


def _size(entity: CatalogEntity, attribute: str) -> str:
    if not entity.is_variant:
        return ""
    value = entity.variation.get(attribute)
    if value is None:
        return ""
    return f"{value.value} ({value.display_value})"


def _image(entity: CatalogEntity) -> str:
    images = entity.images.get(IMAGE_VIEW_TYPE) or []
    return images[0] if images and images[0] else ""


def _price(entity: CatalogEntity, price_book_id: str) -> tuple[str, str]:
    price = entity.prices.get(price_book_id)
    if price is None or price.value is None:
        return "", ""
    return render_value(price.value), price.currency


def _custom(entity: CatalogEntity, field_mapping: Mapping[str, str]) -> list[str]:
    values = []
    for attribute in field_mapping.values():
        value = entity.custom.get(attribute)
        values.append(render_value(value) if value else "")
    return values


def map_record(
    entity: CatalogEntity,
    field_mapping: Mapping[str, str],
    price_book_id: str,
    *,
    host: str,
    product_path: str = "/Product-Show",
    size_attribute: str = "size",
) -> list[str]:
    master_id = entity.master_id if entity.is_variant else ""
    unit_price, currency = _price(entity, price_book_id)
    record = [
        entity.id,
        entity.name or "",
        sanitize(entity.short_description or ""),
        master_id,
        _size(entity, size_attribute),
        product_url(entity.id, host, product_path),
        _image(entity),
        unit_price,
        currency,
        "",
        # variantProductCode repeats the master id on purpose
        master_id,
    ]
    return record + _custom(entity, field_mapping)
