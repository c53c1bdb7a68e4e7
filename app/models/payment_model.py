from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel
from app.models.booking_model import PaymentStatus


class PaymentMethod(str, Enum):
    qris = "qris"
    gopay = "gopay"
    shopeepay = "shopeepay"
    bank_transfer = "bank_transfer"


class Payment(BaseModel):
    id: str
    booking_id: str
    order_id: str
    amount: int
    status: PaymentStatus = PaymentStatus.pending
    method: PaymentMethod = PaymentMethod.qris
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.paid
