from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from flask import current_app

from domestiq.errors import AppError
from domestiq.extensions import db
from domestiq.lifecycle import (
    BOOKING_TRANSITIONS,
    CLIENT,
    SCHEDULED_BOOKING_STATUSES,
    SYSTEM,
    WORKER,
    BookingStatus,
    can_transition,
    ensure_transition,
)
from domestiq.models import Booking, User
from domestiq.services.notification_service import NotificationService

STATUS_LABELS = {
    "pending": "Pending",
    "accepted": "Accepted",
    "declined": "Declined",
    "confirmed": "Confirmed",
    "in_progress": "In Progress",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "no_show": "No Show",
    "disputed": "Disputed",
}

# Column stamped when a booking enters the status.
STATUS_TIMESTAMPS = {
    "accepted": "accepted_at",
    "confirmed": "confirmed_at",
    "in_progress": "started_at",
    "completed": "completed_at",
    "cancelled": "cancelled_at",
}


def parse_datetime(value, label):
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = (value or "").strip() if isinstance(value, str) else ""
        if not raw:
            raise AppError(f"{label} is required.", 400)
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError as exc:
            raise AppError(f"{label} must be an ISO 8601 datetime.", 400) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class BookingService:
    @staticmethod
    def _status_label(status):
        return STATUS_LABELS.get(status, (status or "").replace("_", " ").title())

    @staticmethod
    def _has_conflict(worker_id, start_dt, end_dt):
        return (
            Booking.query.filter(Booking.worker_id == worker_id)
            .filter(Booking.status.in_(SCHEDULED_BOOKING_STATUSES))
            .filter(Booking.scheduled_start < end_dt, Booking.scheduled_end > start_dt)
            .first()
            is not None
        )

    @staticmethod
    def create_booking(
        client_id,
        worker_id,
        scheduled_start,
        scheduled_end,
        total_amount,
        service_category=None,
        address=None,
        client_notes=None,
    ):
        worker = db.session.get(User, worker_id) if str(worker_id).isdigit() else None
        if not worker or worker.role != "worker":
            raise AppError("Worker not found.", 404)
        if not worker.is_active_user:
            raise AppError("Worker is not currently active.", 400)
        if worker.id == client_id:
            raise AppError("You cannot book yourself.", 400)

        start_dt = parse_datetime(scheduled_start, "scheduled_start")
        end_dt = parse_datetime(scheduled_end, "scheduled_end")
        if end_dt <= start_dt:
            raise AppError("scheduled_end must be after scheduled_start.", 400)

        try:
            amount = Decimal(str(total_amount)).quantize(Decimal("0.01"))
            if amount <= 0:
                raise InvalidOperation
        except InvalidOperation as exc:
            raise AppError("total_amount must be a positive number.", 400) from exc

        if BookingService._has_conflict(worker.id, start_dt, end_dt):
            raise AppError("Worker already booked for the selected time slot.", 409)

        booking = Booking(
            client_id=client_id,
            worker_id=worker.id,
            service_category=(service_category or "").strip() or None,
            scheduled_start=start_dt,
            scheduled_end=end_dt,
            address=(address or "").strip() or None,
            total_amount=amount,
            status=BookingStatus.PENDING.value,
            client_notes=(client_notes or "").strip() or None,
        )
        db.session.add(booking)
        db.session.flush()

        NotificationService.notify(
            worker.id,
            "booking_request",
            "New Booking Request",
            f"You have a new booking request for {start_dt:%Y-%m-%d}.",
            {"booking_id": booking.id},
        )
        db.session.commit()
        return booking

    @staticmethod
    def list_for_user(user, status=None, limit=20, offset=0):
        query = Booking.query
        if user.role == "worker":
            query = query.filter(Booking.worker_id == user.id)
        elif user.role == "client":
            query = query.filter(Booking.client_id == user.id)
        if status:
            query = query.filter(Booking.status == status)
        total = query.count()
        rows = query.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(offset).limit(limit).all()
        return rows, total

    @staticmethod
    def get_for_participant(booking_id, user):
        booking = db.session.get(Booking, booking_id)
        # Non-participants get the same answer as a missing booking.
        if not booking or (user.role != "admin" and user.id not in {booking.client_id, booking.worker_id}):
            raise AppError("Booking not found.", 404)
        return booking

    @staticmethod
    def transition_booking(booking, new_status, actor_user, cancellation_reason=None):
        if actor_user.id == booking.client_id:
            actor = CLIENT
        elif actor_user.id == booking.worker_id:
            actor = WORKER
        else:
            raise AppError("Booking not found.", 404)

        new_status = ensure_transition(BOOKING_TRANSITIONS, booking.status, (new_status or "").strip().lower(), actor)
        booking.status = new_status
        stamp = STATUS_TIMESTAMPS.get(new_status)
        if stamp:
            setattr(booking, stamp, datetime.now(timezone.utc))
        if new_status == BookingStatus.CANCELLED.value:
            booking.cancellation_reason = (cancellation_reason or "").strip() or None

        recipient_id = booking.worker_id if actor == CLIENT else booking.client_id
        NotificationService.notify(
            recipient_id,
            f"booking_{new_status}",
            f"Booking {BookingService._status_label(new_status)}",
            f"Booking #{booking.id} is now {BookingService._status_label(new_status).lower()}.",
            {"booking_id": booking.id, "status": new_status},
        )
        db.session.commit()
        return booking

    @staticmethod
    def confirm_after_payment(booking):
        """Payment settled: confirm the booking if its lifecycle still allows it.

        Flushes but does not commit; the caller owns the surrounding transaction.
        """
        if booking.status == BookingStatus.CONFIRMED.value:
            return True
        if not can_transition(BOOKING_TRANSITIONS, booking.status, BookingStatus.CONFIRMED, SYSTEM):
            current_app.logger.warning(
                "Booking %s paid while %s; leaving status unchanged", booking.id, booking.status
            )
            return False
        booking.status = BookingStatus.CONFIRMED.value
        booking.confirmed_at = datetime.now(timezone.utc)
        db.session.flush()
        return True
