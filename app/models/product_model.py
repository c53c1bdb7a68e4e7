from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from app.utils.pricing import (
    estimated_travel_time,
    format_distance,
    format_idr,
    format_short_idr,
    is_within_rental_radius,
)


class ProductCategory(str, Enum):
    dslr = "DSLR"
    mirrorless = "Mirrorless"
    drone = "Drone"
    lens = "Lens"

    @classmethod
    def from_value(cls, value) -> "ProductCategory":
        if isinstance(value, cls):
            return value
        for category in cls:
            if category.value.lower() == str(value).lower():
                return category
        return cls.dslr


class Product(BaseModel):
    id: str
    name: str
    category: ProductCategory = ProductCategory.dslr
    description: Optional[str] = None
    price_per_day: float = Field(..., ge=0)
    image_urls: List[str] = []
    is_available: bool = True
    owner_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def legacy_single_image(cls, data):
        # older rows only carry image_url
        if isinstance(data, dict) and not data.get("image_urls"):
            legacy = data.get("image_url")
            data = {**data, "image_urls": [legacy] if legacy else []}
        return data

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v):
        return ProductCategory.from_value(v)

    @field_validator("is_available", mode="before")
    @classmethod
    def available_by_default(cls, v):
        return True if v is None else v

    @property
    def image_url(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None

    @property
    def formatted_price(self) -> str:
        return format_idr(self.price_per_day)

    @property
    def short_price(self) -> str:
        return format_short_idr(self.price_per_day)


class ProductWithDistance(Product):
    """A catalogue row from the nearby search, with how far its owner is."""

    owner_name: str = "Unknown"
    owner_city: str = "Unknown"
    owner_avatar: Optional[str] = None
    distance_km: float = 0.0

    @field_validator("owner_name", "owner_city", mode="before")
    @classmethod
    def unknown_when_missing(cls, v):
        return v or "Unknown"

    @field_validator("distance_km", mode="before")
    @classmethod
    def zero_when_missing(cls, v):
        return 0.0 if v is None else v

    @property
    def formatted_distance(self) -> str:
        return format_distance(self.distance_km)

    @property
    def estimated_travel_time(self) -> str:
        return estimated_travel_time(self.distance_km)

    @property
    def is_within_rental_radius(self) -> bool:
        return is_within_rental_radius(self.distance_km)
