from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, field_validator
from app.models.product_model import Product, ProductCategory
from app.utils.pricing import format_idr, rental_days


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    paid = "paid"
    failed = "failed"
    expired = "expired"
    cancelled = "cancelled"


class DeliveryMethod(str, Enum):
    pickup = "pickup"
    delivery = "delivery"


STATUS_TEXT = {
    BookingStatus.pending: "Pending Confirmation",
    BookingStatus.confirmed: "Confirmed",
    BookingStatus.active: "Active",
    BookingStatus.completed: "Completed",
    BookingStatus.cancelled: "Cancelled",
}

STATUS_COLOR = {
    BookingStatus.pending: "yellow",
    BookingStatus.confirmed: "blue",
    BookingStatus.active: "green",
    BookingStatus.completed: "gray",
    BookingStatus.cancelled: "red",
}

PAYMENT_STATUS_TEXT = {
    PaymentStatus.pending: "Waiting for Payment",
    PaymentStatus.processing: "Processing",
    PaymentStatus.paid: "Paid",
    PaymentStatus.failed: "Failed",
    PaymentStatus.expired: "Expired",
    PaymentStatus.cancelled: "Cancelled",
}


def _lenient_enum(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return default


def _date_only(value):
    # date columns sometimes come back as full timestamps
    if isinstance(value, str) and "T" in value:
        return value.split("T")[0]
    if isinstance(value, datetime):
        return value.date()
    return value


class Booking(BaseModel):
    """A rental reservation as the backend stores it."""

    id: str
    user_id: str
    product_id: str
    owner_id: Optional[str] = None
    start_date: date
    end_date: date
    total_price: float
    delivery_method: DeliveryMethod = DeliveryMethod.pickup
    delivery_fee: float = 0
    distance_km: Optional[float] = None
    renter_address: Optional[str] = None
    status: BookingStatus = BookingStatus.pending
    payment_status: PaymentStatus = PaymentStatus.pending
    payment_proof_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def strip_time(cls, v):
        return _date_only(v)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        return _lenient_enum(BookingStatus, v, BookingStatus.pending)

    @field_validator("payment_status", mode="before")
    @classmethod
    def parse_payment_status(cls, v):
        return _lenient_enum(PaymentStatus, v, PaymentStatus.pending)

    @field_validator("delivery_method", mode="before")
    @classmethod
    def parse_delivery_method(cls, v):
        return _lenient_enum(DeliveryMethod, v, DeliveryMethod.pickup)

    @field_validator("delivery_fee", mode="before")
    @classmethod
    def fee_defaults_to_zero(cls, v):
        return 0 if v is None else v

    @property
    def number_of_days(self) -> int:
        return rental_days(self.start_date, self.end_date)

    @property
    def product_subtotal(self) -> float:
        return self.total_price - self.delivery_fee

    @property
    def formatted_total_price(self) -> str:
        return format_idr(self.total_price)

    @property
    def status_text(self) -> str:
        return STATUS_TEXT[self.status]

    @property
    def status_color(self) -> str:
        return STATUS_COLOR[self.status]

    @property
    def payment_status_text(self) -> str:
        return PAYMENT_STATUS_TEXT[self.payment_status]

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.paid


class BookingWithProduct(Booking):
    """Booking joined with the product it rents.

    Built either from an embedded ``products`` object or from the flat
    ``bookings_with_details`` view columns.
    """

    product: Optional[Product] = None
    product_name: Optional[str] = None
    product_category: Optional[ProductCategory] = None
    product_price: Optional[float] = None
    product_image: Optional[str] = None
    renter_name: Optional[str] = None
    owner_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "BookingWithProduct":
        data = dict(row)
        embedded = data.pop("products", None) or data.pop("product", None)
        if isinstance(embedded, list):
            embedded = embedded[0] if embedded else None
        if isinstance(embedded, dict) and embedded.get("id"):
            product = Product.model_validate(embedded)
            data["product"] = product
            data.setdefault("product_name", product.name)
            data.setdefault("product_category", product.category)
            data.setdefault("product_price", product.price_per_day)
            data.setdefault("product_image", product.image_url)
        return cls.model_validate(data)

    @field_validator("product_category", mode="before")
    @classmethod
    def parse_product_category(cls, v):
        if v is None:
            return None
        return ProductCategory.from_value(v)
