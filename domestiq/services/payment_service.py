import secrets
from datetime import datetime, timezone
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from domestiq.errors import AppError, GatewayError
from domestiq.extensions import cache, db, paystack
from domestiq.lifecycle import ACTIVE_TRANSACTION_STATUSES, PAYABLE_BOOKING_STATUSES, TransactionStatus
from domestiq.models import Booking, Transaction
from domestiq.services.fee_service import FeeService

BANK_CACHE_KEY = "paystack:banks:active"


class PaymentService:
    @staticmethod
    def generate_reference(prefix="DIQ"):
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        return f"{prefix}-{stamp}-{secrets.token_hex(4)}".upper()

    @staticmethod
    def _callback_url():
        return f"{current_app.config['APP_URL'].rstrip('/')}/bookings/payment-callback"

    @staticmethod
    def initialize_payment(booking_id, client):
        """Open a gateway transaction for a client's booking.

        Returns ``(transaction, breakdown, authorization_url)``. The partial
        unique index on ``transactions.booking_id`` turns a lost race between
        two concurrent initialisations into a 409 instead of a second row.
        """
        booking = Booking.query.filter_by(id=booking_id, client_id=client.id).first()
        if not booking:
            raise AppError("Booking not found.", 404)
        if booking.status not in PAYABLE_BOOKING_STATUSES:
            raise AppError("Booking is not in a payable state.", 400)

        existing = (
            Transaction.query.filter_by(booking_id=booking.id)
            .filter(Transaction.status.in_(ACTIVE_TRANSACTION_STATUSES))
            .first()
        )
        if existing:
            raise AppError("Payment already initiated for this booking.", 409)

        worker_amount = Decimal(str(booking.total_amount or 0))
        if worker_amount <= 0:
            raise AppError("Invalid booking amount.", 400)

        breakdown = FeeService.breakdown_for(worker_amount)
        reference = PaymentService.generate_reference()
        metadata = {
            "booking_id": booking.id,
            "client_id": client.id,
            "worker_id": booking.worker_id,
            "worker_amount": float(breakdown.worker_amount),
            "platform_fee": float(breakdown.platform_fee),
        }

        result = paystack.initialize_transaction(
            email=client.email,
            amount=breakdown.total_amount,
            reference=reference,
            callback_url=PaymentService._callback_url(),
            metadata=metadata,
        )
        if not result.status:
            raise GatewayError(result.message or "Payment initialization failed.")
        data = result.data or {}

        transaction = Transaction(
            booking_id=booking.id,
            client_id=client.id,
            worker_id=booking.worker_id,
            worker_amount=breakdown.worker_amount,
            platform_fee=breakdown.platform_fee,
            platform_fee_percent=breakdown.fee_percent,
            total_amount=breakdown.total_amount,
            currency=current_app.config["CURRENCY"],
            status=TransactionStatus.PENDING.value,
            gateway_reference=reference,
            gateway_access_code=data.get("access_code"),
            gateway_metadata=metadata,
        )
        try:
            db.session.add(transaction)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            current_app.logger.warning(
                "Concurrent payment initialisation for booking %s lost the race (ref %s)", booking.id, reference
            )
            raise AppError("Payment already initiated for this booking.", 409) from exc

        return transaction, breakdown, data.get("authorization_url")

    @staticmethod
    def verify_payment(reference, client):
        transaction = Transaction.query.filter_by(gateway_reference=reference, client_id=client.id).first()
        if not transaction:
            raise AppError("Transaction not found.", 404)

        result = paystack.verify_transaction(reference)
        gateway_status = (result.data or {}).get("status") if result.status else None
        return gateway_status or "unknown", transaction

    @staticmethod
    def list_active_banks():
        banks = cache.get(BANK_CACHE_KEY)
        if banks is not None:
            return banks

        result = paystack.list_banks()
        if not result.status:
            raise GatewayError("Failed to fetch banks")

        banks = [
            {"name": bank.get("name"), "code": bank.get("code"), "slug": bank.get("slug")}
            for bank in (result.data or [])
            if bank.get("active")
        ]
        cache.set(BANK_CACHE_KEY, banks, timeout=current_app.config["BANK_LIST_CACHE_SECONDS"])
        return banks
