from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime
from app.models.product_model import ProductCategory


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, example="Sony A7 III")
    category: ProductCategory = Field(..., example=ProductCategory.mirrorless)
    description: Optional[str] = Field(None, example="Body only, two batteries included")
    price_per_day: float = Field(..., ge=0, example=250000)
    image_urls: List[str] = Field(default_factory=list)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[ProductCategory] = None
    description: Optional[str] = None
    price_per_day: Optional[float] = Field(None, ge=0)
    image_urls: Optional[List[str]] = None
    is_available: Optional[bool] = None


class ProductResponse(ProductBase):
    id: UUID
    is_available: bool
    owner_id: Optional[UUID] = None
    image_url: Optional[str] = None
    formatted_price: str
    short_price: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NearbyProductResponse(ProductResponse):
    owner_name: str
    owner_city: str
    owner_avatar: Optional[str] = None
    distance_km: float
    formatted_distance: str
    estimated_travel_time: str
    is_within_rental_radius: bool


class ProductDistanceResponse(BaseModel):
    product_id: UUID
    distance_km: Optional[float] = None
    formatted_distance: Optional[str] = None
    is_within_rental_radius: Optional[bool] = None
