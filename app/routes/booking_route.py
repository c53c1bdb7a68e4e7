from fastapi import APIRouter, Depends, HTTPException, status, Query
from uuid import UUID
from typing import List, Optional
from app.services.booking_crud import booking_crud
from app.services.payment_crud import payment_crud
from app.schemas.booking_schema import (
    BookingActionsResponse,
    BookingCreate,
    BookingResponse,
    BookingWithProductResponse,
    OwnerBookingsResponse,
    PaymentCreate,
    PaymentProofUpdate,
    PaymentResponse,
)
from app.models.booking_model import BookingStatus
from app.models.user_model import UserProfile
from app.database import SupabaseClient, get_db
from app.security.auth import get_current_active_user
from app.utils.booking_lifecycle import (
    BookingAction,
    actor_for,
    allowed_actions,
    count_by_status,
    filter_by_status,
)
from app.logger import get_logger

booking_router = APIRouter()
logger = get_logger(__name__)

# RENTER ENDPOINTS


@booking_router.post(
    "/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED
)
def create_booking(
    booking: BookingCreate,
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    """Rent a product for a date range"""
    try:
        logger.info(
            f"User {current_user.id} creating booking for product {booking.product_id}"
        )
        db_booking = booking_crud.create_booking(db, booking, current_user.id)
        return BookingResponse.model_validate(db_booking)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating booking: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while creating booking",
        )


@booking_router.get(
    "/bookings",
    response_model=List[BookingWithProductResponse],
    status_code=status.HTTP_200_OK,
)
def get_user_bookings(
    booking_status: Optional[BookingStatus] = Query(
        None, description="Filter by booking status"
    ),
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    """Get the caller's own rentals with their products"""
    try:
        logger.info(f"User {current_user.id} fetching bookings")
        bookings = booking_crud.get_user_bookings_with_products(
            db, current_user.id, booking_status
        )
        return [BookingWithProductResponse.model_validate(booking) for booking in bookings]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching user bookings: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching bookings",
        )


@booking_router.get(
    "/bookings/{booking_id}",
    response_model=BookingWithProductResponse,
    status_code=status.HTTP_200_OK,
)
def get_booking(
    booking_id: UUID,
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    """Get booking by ID (renter or product owner)"""
    try:
        logger.info(f"Fetching booking: {booking_id}")
        booking = booking_crud.get_booking_with_access(db, booking_id, current_user.id)
        return BookingWithProductResponse.model_validate(booking)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching booking",
        )


@booking_router.get(
    "/bookings/{booking_id}/actions",
    response_model=BookingActionsResponse,
    status_code=status.HTTP_200_OK,
)
def get_booking_actions(
    booking_id: UUID,
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    """Which lifecycle buttons the caller should see"""
    try:
        booking = booking_crud.get_booking_with_access(db, booking_id, current_user.id)
        actor = actor_for(booking, current_user.id)
        return BookingActionsResponse(
            booking_id=booking.id,
            actor=actor,
            actions=allowed_actions(booking, actor),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching actions for booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching booking actions",
        )


@booking_router.patch(
    "/bookings/{booking_id}/payment-proof",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
def attach_payment_proof(
    booking_id: UUID,
    proof: PaymentProofUpdate,
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    try:
        logger.info(f"User {current_user.id} attaching payment proof to booking {booking_id}")
        db_booking = booking_crud.attach_payment_proof(
            db, booking_id, proof.payment_proof_url, current_user.id
        )
        return BookingResponse.model_validate(db_booking)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error attaching payment proof to booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while attaching payment proof",
        )


# OWNER ENDPOINTS


@booking_router.get(
    "/owner/bookings",
    response_model=OwnerBookingsResponse,
    status_code=status.HTTP_200_OK,
)
def get_owner_bookings(
    booking_status: Optional[BookingStatus] = Query(
        None, description="Filter by booking status"
    ),
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    """Bookings on the caller's products, with per-status counts for the tabs"""
    try:
        logger.info(f"Owner {current_user.id} fetching bookings")
        bookings = booking_crud.get_owner_bookings(db, current_user.id)
        counts = count_by_status(bookings)
        bookings = filter_by_status(bookings, booking_status)
        return OwnerBookingsResponse(
            bookings=[BookingWithProductResponse.model_validate(b) for b in bookings],
            counts=counts,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching owner bookings: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching owner bookings",
        )


# PAYMENT ENDPOINTS


@booking_router.post(
    "/bookings/{booking_id}/payment",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_payment(
    booking_id: UUID,
    payment: PaymentCreate,
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    try:
        logger.info(f"User {current_user.id} paying for booking {booking_id}")
        db_payment = payment_crud.create_payment(db, booking_id, current_user.id, payment.method)
        return PaymentResponse.model_validate(db_payment)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating payment for booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while creating payment",
        )


@booking_router.get(
    "/bookings/{booking_id}/payment",
    response_model=PaymentResponse,
    status_code=status.HTTP_200_OK,
)
def get_payment(
    booking_id: UUID,
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    try:
        db_payment = payment_crud.get_payment_by_booking(db, booking_id, current_user.id)
        return PaymentResponse.model_validate(db_payment)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching payment for booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching payment",
        )


# LIFECYCLE ENDPOINTS - must stay below POST /bookings/{booking_id}/payment


@booking_router.post(
    "/bookings/{booking_id}/{action}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
def update_booking_status(
    booking_id: UUID,
    action: BookingAction,
    current_user: UserProfile = Depends(get_current_active_user),
    db: SupabaseClient = Depends(get_db),
):
    try:
        logger.info(f"User {current_user.id} requesting {action.value} on booking {booking_id}")
        db_booking = booking_crud.update_booking_status(db, booking_id, action, current_user.id)
        return BookingResponse.model_validate(db_booking)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error applying {action.value} to booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating booking status",
        )
