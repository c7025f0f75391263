from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from domestiq.decorators import json_body, role_required
from domestiq.models import Transaction
from domestiq.services import BookingService

api_booking_bp = Blueprint("api_booking", __name__)

MAX_PAGE_SIZE = 100


def _int_arg(name, default, upper=None):
    value = request.args.get(name, type=int)
    if value is None or value < 0:
        value = default
    return min(value, upper) if upper else value


@api_booking_bp.post("")
@role_required("client")
@json_body("worker_id", "scheduled_start", "scheduled_end", "total_amount")
def create_booking(payload):
    booking = BookingService.create_booking(
        client_id=current_user.id,
        worker_id=payload["worker_id"],
        scheduled_start=payload["scheduled_start"],
        scheduled_end=payload["scheduled_end"],
        total_amount=payload["total_amount"],
        service_category=payload.get("service_category"),
        address=payload.get("address"),
        client_notes=payload.get("client_notes"),
    )
    return jsonify(booking.to_dict()), 201


@api_booking_bp.get("")
@login_required
def list_bookings():
    rows, total = BookingService.list_for_user(
        current_user,
        status=request.args.get("status"),
        limit=_int_arg("limit", 20, MAX_PAGE_SIZE) or 20,
        offset=_int_arg("offset", 0),
    )
    return jsonify({"bookings": [booking.to_dict() for booking in rows], "total": total})


@api_booking_bp.get("/<int:booking_id>")
@login_required
def booking_detail(booking_id):
    booking = BookingService.get_for_participant(booking_id, current_user)
    data = booking.to_dict()
    data["transactions"] = [tx.to_dict() for tx in booking.transactions.order_by(Transaction.id)]
    return jsonify(data)


@api_booking_bp.patch("/<int:booking_id>/status")
@login_required
@json_body("status")
def update_status(booking_id, payload):
    booking = BookingService.get_for_participant(booking_id, current_user)
    booking = BookingService.transition_booking(
        booking,
        payload["status"],
        current_user,
        cancellation_reason=payload.get("cancellation_reason"),
    )
    return jsonify({"id": booking.id, "status": booking.status})
