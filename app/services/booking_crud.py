from fastapi import HTTPException, status
from typing import List, Optional, Tuple
from uuid import UUID
from datetime import date
from app.database import SupabaseClient
from app.models.booking_model import (
    Booking,
    BookingStatus,
    BookingWithProduct,
    DeliveryMethod,
    PaymentStatus,
)
from app.models.product_model import Product
from app.schemas.booking_schema import BookingCreate
from app.utils.booking_lifecycle import (
    Actor,
    BookingAction,
    BLOCKING_STATES,
    InvalidTransition,
    PaymentRequired,
    TERMINAL_STATES,
    actor_for,
    actor_may_perform,
    filter_by_status,
    next_status,
)
from app.utils.exceptions import BackendError, to_http_exception
from app.utils.pricing import (
    MAX_RENTAL_RADIUS_KM,
    calculate_delivery_fee,
    calculate_distance_km,
    is_within_rental_radius,
    rental_price,
)
from app.logger import get_logger

logger = get_logger(__name__)

DETAILS_VIEW = "bookings_with_details"


def _coordinates(row: Optional[dict]) -> Optional[Tuple[float, float]]:
    if not row or row.get("latitude") is None or row.get("longitude") is None:
        return None
    return float(row["latitude"]), float(row["longitude"])


class BookingCRUD:
    @staticmethod
    def create_booking(db: SupabaseClient, booking: BookingCreate, user_id: UUID) -> Booking:
        """Create a pending booking after checking the product and its calendar"""
        product_id_str = str(booking.product_id)
        user_id_str = str(user_id)

        try:
            product_row = db.select_one("products", filters={"id": f"eq.{product_id_str}"})
            if not product_row:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Product not found",
                )
            product = Product.model_validate(product_row)
            if product.owner_id == user_id_str:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="You cannot rent your own product",
                )
            if not product.is_available:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Product is not available for rent",
                )

            if not BookingCRUD.check_product_availability(
                    db, product_id_str, booking.start_date, booking.end_date
            ):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Product is already booked for the selected dates",
                )

            try:
                rental = rental_price(product.price_per_day, booking.start_date, booking.end_date)
            except ValueError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
            distance_km = None
            delivery_fee = 0.0
            if booking.delivery_method == DeliveryMethod.delivery:
                distance_km = BookingCRUD._delivery_distance(db, user_id_str, product.owner_id)
                delivery_fee = calculate_delivery_fee(distance_km)

            data = {
                "user_id": user_id_str,
                "product_id": product_id_str,
                "owner_id": product.owner_id,
                "start_date": booking.start_date.isoformat(),
                "end_date": booking.end_date.isoformat(),
                "total_price": rental + delivery_fee,
                "delivery_method": booking.delivery_method.value,
                "delivery_fee": delivery_fee,
                "distance_km": distance_km,
                "renter_address": booking.renter_address,
                "status": BookingStatus.pending.value,
                "payment_status": PaymentStatus.pending.value,
            }

            db.set_user_context(user_id_str)
            row = db.insert("bookings", data)
            db_booking = Booking.model_validate(row)
            logger.info(f"Booking created: {db_booking.id} by user {user_id}")
            return db_booking

        except BackendError as e:
            logger.error(f"Error creating booking: {e.message}")
            raise to_http_exception(e)

    @staticmethod
    def check_product_availability(
            db: SupabaseClient,
            product_id: str,
            start_date: date,
            end_date: date,
            exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """True when no live booking on the product overlaps [start_date, end_date)"""
        statuses = ",".join(s.value for s in BLOCKING_STATES)
        filters = {
            "product_id": f"eq.{product_id}",
            "status": f"in.({statuses})",
            # existing.start < new.end AND existing.end > new.start
            "start_date": f"lt.{end_date.isoformat()}",
            "end_date": f"gt.{start_date.isoformat()}",
        }
        if exclude_booking_id:
            filters["id"] = f"neq.{exclude_booking_id}"

        try:
            rows = db.select("bookings", columns="id", filters=filters, limit=1)
        except BackendError as e:
            logger.error(f"Error checking availability for product {product_id}: {e.message}")
            raise to_http_exception(e)
        return not rows

    @staticmethod
    def _delivery_distance(db: SupabaseClient, renter_id: str, owner_id: Optional[str]) -> float:
        """Kilometres between the stored locations of renter and owner.

        Raises BackendError from the lookups; the caller maps it.
        """
        columns = "id,latitude,longitude"
        renter_row = db.select_one("users", columns=columns, filters={"id": f"eq.{renter_id}"})
        owner_row = None
        if owner_id:
            owner_row = db.select_one("users", columns=columns, filters={"id": f"eq.{owner_id}"})

        renter = _coordinates(renter_row)
        owner = _coordinates(owner_row)
        if renter is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Set your location before asking for delivery",
            )
        if owner is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The owner has no location set; choose pickup instead",
            )

        distance = calculate_distance_km(*renter, *owner)
        if not is_within_rental_radius(distance):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Delivery is only available within {MAX_RENTAL_RADIUS_KM:g} km",
            )
        return round(distance, 2)

    @staticmethod
    def get_user_bookings_with_products(
            db: SupabaseClient, user_id: UUID, booking_status: Optional[BookingStatus] = None
    ) -> List[BookingWithProduct]:
        try:
            rows = db.select(
                "bookings",
                columns="*,products(*)",
                filters={"user_id": f"eq.{user_id}"},
                order="created_at.desc",
            )
        except BackendError as e:
            logger.error(f"Error fetching bookings with products for user {user_id}: {e.message}")
            raise to_http_exception(e)
        bookings = [BookingWithProduct.from_row(row) for row in rows]
        return filter_by_status(bookings, booking_status)

    @staticmethod
    def get_booking_with_access(
            db: SupabaseClient, booking_id: UUID, user_id: UUID
    ) -> BookingWithProduct:
        """Load a booking the caller rents or owns; anyone else gets 403"""
        try:
            row = db.select_one(DETAILS_VIEW, filters={"id": f"eq.{booking_id}"})
        except BackendError as e:
            logger.error(f"Error fetching booking {booking_id}: {e.message}")
            raise to_http_exception(e)

        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
            )
        booking = BookingWithProduct.from_row(row)
        if actor_for(booking, str(user_id)) is None:
            logger.warning(f"User {user_id} denied access to booking {booking_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to access this booking",
            )
        return booking

    @staticmethod
    def get_owner_bookings(
            db: SupabaseClient, owner_id: UUID, booking_status: Optional[BookingStatus] = None
    ) -> List[BookingWithProduct]:
        """Bookings placed on products the user owns"""
        filters = {"owner_id": f"eq.{owner_id}"}
        if booking_status:
            filters["status"] = f"eq.{booking_status.value}"
        try:
            rows = db.select(DETAILS_VIEW, filters=filters, order="created_at.desc")
        except BackendError as e:
            logger.error(f"Error fetching bookings for owner {owner_id}: {e.message}")
            raise to_http_exception(e)
        return [BookingWithProduct.from_row(row) for row in rows]

    @staticmethod
    def update_booking_status(
            db: SupabaseClient, booking_id: UUID, action: BookingAction, user_id: UUID
    ) -> Booking:
        """Apply a lifecycle action on behalf of the renter or the owner"""
        booking = BookingCRUD.get_booking_with_access(db, booking_id, user_id)
        actor = actor_for(booking, str(user_id))

        if not actor_may_perform(action, actor):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only the product owner can {action.value} a booking",
            )

        try:
            target = next_status(booking.status, action, booking.is_paid)
        except PaymentRequired as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except InvalidTransition as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

        try:
            db.set_user_context(str(user_id))
            # guard on the status we read so a concurrent change updates nothing
            rows = db.update(
                "bookings",
                {"status": target.value},
                filters={"id": f"eq.{booking_id}", "status": f"eq.{booking.status.value}"},
            )
        except BackendError as e:
            logger.error(f"Error updating booking {booking_id} status: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
            )
        logger.info(
            f"Booking {booking_id}: {booking.status.value} -> {target.value} by {actor.value} {user_id}"
        )
        return Booking.model_validate(rows[0])

    @staticmethod
    def confirm_booking(db: SupabaseClient, booking_id: UUID, user_id: UUID) -> Booking:
        return BookingCRUD.update_booking_status(db, booking_id, BookingAction.confirm, user_id)

    @staticmethod
    def activate_booking(db: SupabaseClient, booking_id: UUID, user_id: UUID) -> Booking:
        return BookingCRUD.update_booking_status(db, booking_id, BookingAction.activate, user_id)

    @staticmethod
    def complete_booking(db: SupabaseClient, booking_id: UUID, user_id: UUID) -> Booking:
        return BookingCRUD.update_booking_status(db, booking_id, BookingAction.complete, user_id)

    @staticmethod
    def cancel_booking(db: SupabaseClient, booking_id: UUID, user_id: UUID) -> Booking:
        return BookingCRUD.update_booking_status(db, booking_id, BookingAction.cancel, user_id)

    @staticmethod
    def attach_payment_proof(
            db: SupabaseClient, booking_id: UUID, payment_proof_url: str, user_id: UUID
    ) -> Booking:
        """Store the renter's proof of transfer on the booking"""
        booking = BookingCRUD.get_booking_with_access(db, booking_id, user_id)
        if actor_for(booking, str(user_id)) != Actor.renter:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the renter can upload a payment proof",
            )
        if booking.status in TERMINAL_STATES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot attach a payment proof to a booking that is {booking.status.value}",
            )

        try:
            db.set_user_context(str(user_id))
            rows = db.update(
                "bookings",
                {"payment_proof_url": payment_proof_url},
                filters={"id": f"eq.{booking_id}"},
            )
        except BackendError as e:
            logger.error(f"Error attaching payment proof to booking {booking_id}: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
            )
        logger.info(f"Payment proof attached to booking {booking_id}")
        return Booking.model_validate(rows[0])


booking_crud = BookingCRUD()
