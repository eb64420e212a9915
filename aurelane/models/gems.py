"""
Gem catalogue models.

The backend speaks camelCase and uses Mongo-style ``_id`` keys; these models
accept either form and expose snake_case attributes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from aurelane.services.api_mapping import DataMapper, extract_items, unwrap_envelope


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Gem(CamelModel):
    """A gemstone listing."""

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str = Field("", description="Display name")
    hindi_name: str | None = None
    price: float = Field(0.0, ge=0, description="Unit price, GST inclusive")
    discount: float = Field(0.0, ge=0)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    category: str | None = None
    subcategory: str | None = None
    images: list[str] = Field(default_factory=list)
    hero_image: str | None = None
    stock: int | None = Field(None, ge=0)
    availability: bool = True
    gst_category: str | None = None
    birth_month: str | None = None
    planet: str | None = None
    origin: str | None = None
    average_rating: float | None = None

    @property
    def primary_image(self) -> str | None:
        if self.hero_image:
            return self.hero_image
        return self.images[0] if self.images else None


class Pagination(CamelModel):
    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    has_next: bool = False
    has_prev: bool = False


class GemPage(CamelModel):
    """One page of the gem listing."""

    gems: list[Gem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)

    @classmethod
    def from_payload(cls, payload: Any) -> "GemPage":
        data = unwrap_envelope(payload)
        pagination = data.get("pagination") if isinstance(data, dict) else None
        return cls(
            gems=[Gem.model_validate(item) for item in extract_items(payload, "gems")],
            pagination=Pagination.model_validate(pagination or {}),
        )


class GemDetail(CamelModel):
    """A gem with the related products the detail endpoint suggests."""

    gem: Gem
    related: list[Gem] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GemDetail":
        gem = DataMapper.safe_get(payload, "data", "gem")
        if isinstance(gem, dict) and isinstance(gem.get("gem"), dict):
            gem = gem["gem"]
        related = DataMapper.safe_get(payload, "relatedProducts", default=[])
        return cls(
            gem=Gem.model_validate(gem),
            related=[Gem.model_validate(item) for item in related],
        )


__all__ = ["CamelModel", "DiscountType", "Gem", "GemDetail", "GemPage", "Pagination"]
