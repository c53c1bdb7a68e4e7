import time
from fastapi import HTTPException, status
from datetime import datetime, timezone
from uuid import UUID
from app.database import SupabaseClient
from app.models.booking_model import PaymentStatus
from app.models.payment_model import Payment, PaymentMethod
from app.services.booking_crud import BookingCRUD
from app.utils.booking_lifecycle import Actor, TERMINAL_STATES, actor_for
from app.utils.exceptions import BackendError, to_http_exception
from app.logger import get_logger

logger = get_logger(__name__)

ORDER_ID_PREFIX = "RENTLENS"


def generate_order_id(booking_id: str) -> str:
    """RENTLENS-<first 8 chars of the booking id>-<epoch millis>"""
    return f"{ORDER_ID_PREFIX}-{str(booking_id)[:8]}-{int(time.time() * 1000)}"


class PaymentCRUD:
    @staticmethod
    def create_payment(
            db: SupabaseClient, booking_id: UUID, user_id: UUID, method: PaymentMethod
    ) -> Payment:
        """Open the single payment for a booking, charged at the booking total"""
        booking = BookingCRUD.get_booking_with_access(db, booking_id, user_id)
        if actor_for(booking, str(user_id)) != Actor.renter:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the renter can pay for a booking",
            )
        if booking.status in TERMINAL_STATES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot pay for a booking that is {booking.status.value}",
            )

        amount = int(round(booking.total_price))
        if amount <= 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Booking total must be greater than zero",
            )

        try:
            existing = db.select_one("payments", filters={"booking_id": f"eq.{booking_id}"})
            if existing:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="A payment already exists for this booking",
                )

            db.set_user_context(str(user_id))
            row = db.insert(
                "payments",
                {
                    "booking_id": str(booking_id),
                    "order_id": generate_order_id(str(booking_id)),
                    "amount": amount,
                    "method": method.value,
                    "status": PaymentStatus.pending.value,
                },
            )
        except BackendError as e:
            logger.error(f"Error creating payment for booking {booking_id}: {e.message}")
            raise to_http_exception(e)

        payment = Payment.model_validate(row)
        logger.info(f"Payment {payment.order_id} created for booking {booking_id}")
        return payment

    @staticmethod
    def get_payment_by_booking(db: SupabaseClient, booking_id: UUID, user_id: UUID) -> Payment:
        BookingCRUD.get_booking_with_access(db, booking_id, user_id)
        try:
            row = db.select_one("payments", filters={"booking_id": f"eq.{booking_id}"})
        except BackendError as e:
            logger.error(f"Error fetching payment for booking {booking_id}: {e.message}")
            raise to_http_exception(e)
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No payment found for this booking",
            )
        return Payment.model_validate(row)

    @staticmethod
    def update_payment_status(
            db: SupabaseClient, order_id: str, payment_status: PaymentStatus
    ) -> Payment:
        """Record the payment provider's outcome; the booking follows via trigger"""
        data = {"status": payment_status.value}
        if payment_status == PaymentStatus.paid:
            data["paid_at"] = datetime.now(timezone.utc).isoformat()

        try:
            rows = db.update("payments", data, filters={"order_id": f"eq.{order_id}"})
        except BackendError as e:
            logger.error(f"Error updating payment {order_id}: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found"
            )
        logger.info(f"Payment {order_id} set to {payment_status.value}")
        return Payment.model_validate(rows[0])


payment_crud = PaymentCRUD()
