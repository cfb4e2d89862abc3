from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class FeedState(BaseModel):
    sequence_number: int = Field(default=0, ge=0)
    last_run_timestamp: Optional[str] = None

    @property
    def is_bootstrap(self) -> bool:
        return not self.last_run_timestamp


class VariationValue(BaseModel):
    value: str
    display_value: str = ""


class Price(BaseModel):
    value: Optional[Decimal] = None
    currency: str = ""


class CatalogEntity(BaseModel):
    """A sellable unit: a standalone product or one variant of a master."""

    id: str
    name: Optional[str] = None
    short_description: Optional[str] = None
    master_id: Optional[str] = None
    variation: dict[str, VariationValue] = Field(default_factory=dict)
    images: dict[str, list[str]] = Field(default_factory=dict)
    prices: dict[str, Price] = Field(default_factory=dict)
    last_modified: datetime
    orderable: bool = True
    custom: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_variant(self) -> bool:
        return bool(self.master_id)


class SearchHit(BaseModel):
    """One search result; a master hit represents all of its variants."""

    represented_products: list[CatalogEntity] = Field(default_factory=list)
