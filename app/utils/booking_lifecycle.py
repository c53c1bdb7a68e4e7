"""Booking lifecycle rules.

    pending --confirm--> confirmed --activate--> active --complete--> completed
    pending | confirmed --cancel--> cancelled

Confirming additionally needs the payment to be settled. Nothing in here does
I/O: callers decide who is acting and persist whatever status comes back.
"""
from enum import Enum
from typing import Dict, Iterable, List, Optional

from app.models.booking_model import Booking, BookingStatus


class BookingAction(str, Enum):
    confirm = "confirm"
    activate = "activate"
    complete = "complete"
    cancel = "cancel"


class Actor(str, Enum):
    renter = "renter"
    owner = "owner"


class InvalidTransition(ValueError):
    def __init__(self, current: BookingStatus, action: BookingAction, message: Optional[str] = None):
        self.current = current
        self.action = action
        super().__init__(message or f"Cannot {action.value} a booking that is {current.value}")


class PaymentRequired(InvalidTransition):
    def __init__(self, current: BookingStatus, action: BookingAction):
        super().__init__(current, action, "Booking cannot be confirmed before the payment is paid")


TRANSITIONS = {
    (BookingStatus.pending, BookingAction.confirm): BookingStatus.confirmed,
    (BookingStatus.confirmed, BookingAction.activate): BookingStatus.active,
    (BookingStatus.active, BookingAction.complete): BookingStatus.completed,
    (BookingStatus.pending, BookingAction.cancel): BookingStatus.cancelled,
    (BookingStatus.confirmed, BookingAction.cancel): BookingStatus.cancelled,
}

TERMINAL_STATES = {BookingStatus.completed, BookingStatus.cancelled}

# Statuses that still hold the product for their date range
BLOCKING_STATES = (BookingStatus.pending, BookingStatus.confirmed, BookingStatus.active)

OWNER_ONLY_ACTIONS = {BookingAction.confirm, BookingAction.activate, BookingAction.complete}


def next_status(current: BookingStatus, action: BookingAction, payment_paid: bool) -> BookingStatus:
    """Status a booking moves to when ``action`` is applied.

    Raises InvalidTransition when the action is not allowed from ``current``,
    and PaymentRequired when confirming an unpaid booking.
    """
    current = BookingStatus(current)
    action = BookingAction(action)

    target = TRANSITIONS.get((current, action))
    if target is None:
        raise InvalidTransition(current, action)
    if action == BookingAction.confirm and not payment_paid:
        raise PaymentRequired(current, action)
    return target


def can_transition(current: BookingStatus, action: BookingAction, payment_paid: bool) -> bool:
    try:
        next_status(current, action, payment_paid)
    except InvalidTransition:
        return False
    return True


def actor_may_perform(action: BookingAction, actor: Actor) -> bool:
    if action in OWNER_ONLY_ACTIONS:
        return actor == Actor.owner
    return actor in (Actor.owner, Actor.renter)


def actor_for(booking: Booking, user_id: str) -> Optional[Actor]:
    """Which side of the booking ``user_id`` is on, if any."""
    if booking.owner_id is not None and booking.owner_id == str(user_id):
        return Actor.owner
    if booking.user_id == str(user_id):
        return Actor.renter
    return None


def allowed_actions(booking: Booking, actor: Actor) -> List[BookingAction]:
    """Actions to offer ``actor`` for this booking right now."""
    return [
        action
        for action in BookingAction
        if actor_may_perform(action, actor)
        and can_transition(booking.status, action, booking.is_paid)
    ]


def filter_by_status(bookings: Iterable[Booking], status: Optional[BookingStatus] = None) -> List[Booking]:
    if status is None:
        return list(bookings)
    return [booking for booking in bookings if booking.status == status]


def count_by_status(bookings: Iterable[Booking]) -> Dict[BookingStatus, int]:
    counts = {status: 0 for status in BookingStatus}
    for booking in bookings:
        counts[booking.status] += 1
    return counts
