"""Allowed status edges for bookings, transactions and payouts.

Services check every status write against these tables with
:func:`ensure_transition`; conditional ``UPDATE ... WHERE status = ...`` in the
services stays as the guard against concurrent writers.
"""

from enum import Enum

from domestiq.errors import AppError


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    DISPUTED = "disputed"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


CLIENT = "client"
WORKER = "worker"
SYSTEM = "system"
EITHER = frozenset({CLIENT, WORKER})

# current status -> {next status: actors allowed to make the move}
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {
        BookingStatus.ACCEPTED: {WORKER},
        BookingStatus.DECLINED: {WORKER},
        BookingStatus.CANCELLED: EITHER,
        BookingStatus.CONFIRMED: {SYSTEM},
    },
    BookingStatus.ACCEPTED: {
        BookingStatus.CONFIRMED: {CLIENT, SYSTEM},
        BookingStatus.CANCELLED: EITHER,
    },
    BookingStatus.CONFIRMED: {
        BookingStatus.IN_PROGRESS: {WORKER},
        BookingStatus.CANCELLED: EITHER,
    },
    BookingStatus.IN_PROGRESS: {
        BookingStatus.COMPLETED: {WORKER},
        BookingStatus.NO_SHOW: {WORKER},
        BookingStatus.DISPUTED: EITHER,
    },
    BookingStatus.COMPLETED: {
        BookingStatus.DISPUTED: {CLIENT},
    },
}

TRANSACTION_TRANSITIONS = {
    TransactionStatus.PENDING: {
        TransactionStatus.PROCESSING: {SYSTEM},
        TransactionStatus.COMPLETED: {SYSTEM},
        TransactionStatus.FAILED: {SYSTEM},
    },
    TransactionStatus.PROCESSING: {
        TransactionStatus.COMPLETED: {SYSTEM},
        TransactionStatus.FAILED: {SYSTEM},
    },
    TransactionStatus.COMPLETED: {
        TransactionStatus.REFUNDED: {SYSTEM},
        TransactionStatus.DISPUTED: {SYSTEM},
    },
}

PAYOUT_TRANSITIONS = {
    PayoutStatus.PENDING: {
        PayoutStatus.PROCESSING: {SYSTEM},
        PayoutStatus.COMPLETED: {SYSTEM},
        PayoutStatus.FAILED: {SYSTEM},
    },
    PayoutStatus.PROCESSING: {
        PayoutStatus.COMPLETED: {SYSTEM},
        PayoutStatus.FAILED: {SYSTEM},
    },
}

# Bookings a client may still pay for.
PAYABLE_BOOKING_STATUSES = frozenset(
    {BookingStatus.PENDING.value, BookingStatus.ACCEPTED.value, BookingStatus.CONFIRMED.value}
)
# Transactions that block a new payment attempt for the same booking.
ACTIVE_TRANSACTION_STATUSES = frozenset(
    {TransactionStatus.PENDING.value, TransactionStatus.PROCESSING.value, TransactionStatus.COMPLETED.value}
)
# Bookings that hold the worker's calendar slot.
SCHEDULED_BOOKING_STATUSES = frozenset(
    {
        BookingStatus.PENDING.value,
        BookingStatus.ACCEPTED.value,
        BookingStatus.CONFIRMED.value,
        BookingStatus.IN_PROGRESS.value,
    }
)


def _coerce(table, value):
    status_type = type(next(iter(table)))
    try:
        return status_type(value)
    except ValueError as exc:
        raise AppError(f"Unknown status '{value}'.", 400) from exc


def can_transition(table, current, new, actor=SYSTEM):
    edges = table.get(_coerce(table, current), {})
    new_status = _coerce(table, new)
    return new_status in edges and actor in edges[new_status]


def ensure_transition(table, current, new, actor=SYSTEM):
    """Return ``new`` as a plain string, or raise if the edge is not allowed."""
    current_status = _coerce(table, current)
    new_status = _coerce(table, new)

    edges = table.get(current_status, {})
    if new_status not in edges:
        raise AppError(
            f"Invalid status transition from '{current_status.value}' to '{new_status.value}'.", 400
        )
    if actor not in edges[new_status]:
        raise AppError(f"A {actor} cannot move this from '{current_status.value}' to '{new_status.value}'.", 403)
    return new_status.value
