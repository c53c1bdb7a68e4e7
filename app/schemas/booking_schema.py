from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Optional
from uuid import UUID
from datetime import date, datetime
from app.models.booking_model import BookingStatus, PaymentStatus, DeliveryMethod
from app.models.payment_model import PaymentMethod
from app.models.product_model import ProductCategory
from app.utils.booking_lifecycle import Actor, BookingAction


class BookingDates(BaseModel):
    start_date: date = Field(..., description="First rental day")
    end_date: date = Field(..., description="Return day")

    @model_validator(mode='after')
    def end_date_must_be_after_start_date(self):
        if self.end_date <= self.start_date:
            raise ValueError('end_date must be after start_date')
        return self


class BookingCreate(BookingDates):
    product_id: UUID = Field(..., description="ID of the product being rented")
    delivery_method: DeliveryMethod = Field(DeliveryMethod.pickup, description="pickup or delivery")
    renter_address: Optional[str] = Field(None, max_length=500)

    @field_validator('start_date')
    @classmethod
    def start_date_must_not_be_in_past(cls, v):
        # date-only comparison, booking for today is fine
        if v < date.today():
            raise ValueError('start_date cannot be in the past')
        return v

    @model_validator(mode='after')
    def delivery_needs_address(self):
        if self.delivery_method == DeliveryMethod.delivery and not self.renter_address:
            raise ValueError('renter_address is required for delivery')
        return self


class PaymentProofUpdate(BaseModel):
    payment_proof_url: str = Field(..., min_length=1, description="Public URL of the uploaded proof")


class BookingResponse(BaseModel):
    id: UUID
    user_id: UUID
    product_id: UUID
    owner_id: Optional[UUID] = None
    start_date: date
    end_date: date
    total_price: float
    delivery_method: DeliveryMethod
    delivery_fee: float
    distance_km: Optional[float] = None
    renter_address: Optional[str] = None
    status: BookingStatus = BookingStatus.pending
    payment_status: PaymentStatus = PaymentStatus.pending
    payment_proof_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    number_of_days: int
    product_subtotal: float
    formatted_total_price: str
    status_text: str
    status_color: str
    payment_status_text: str

    class Config:
        from_attributes = True


class BookingWithProductResponse(BookingResponse):
    product_name: Optional[str] = None
    product_category: Optional[ProductCategory] = None
    product_price: Optional[float] = None
    product_image: Optional[str] = None
    renter_name: Optional[str] = None
    owner_name: Optional[str] = None

    class Config:
        from_attributes = True


class OwnerBookingsResponse(BaseModel):
    bookings: List[BookingWithProductResponse]
    counts: Dict[BookingStatus, int]


class BookingActionsResponse(BaseModel):
    booking_id: UUID
    actor: Actor
    actions: List[BookingAction]


class AvailabilityResponse(BookingDates):
    product_id: UUID
    available: bool


class PaymentCreate(BaseModel):
    method: PaymentMethod = PaymentMethod.qris


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus


class PaymentResponse(BaseModel):
    id: UUID
    booking_id: UUID
    order_id: str
    amount: int
    status: PaymentStatus
    method: PaymentMethod
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
