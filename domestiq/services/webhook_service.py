import json
from datetime import datetime, timezone

from flask import current_app

from domestiq.extensions import db, paystack
from domestiq.lifecycle import (
    PAYOUT_TRANSITIONS,
    TRANSACTION_TRANSITIONS,
    PayoutStatus,
    TransactionStatus,
    can_transition,
)
from domestiq.models import RevenueLedgerEntry, Transaction, WorkerPayout
from domestiq.paystack import to_minor_units
from domestiq.services.booking_service import BookingService
from domestiq.services.notification_service import NotificationService
from domestiq.services.push_service import PushService

TRANSFER_FAILURE_REASON = "Transfer failed - please verify bank details"


class WebhookService:
    """Applies Paystack callbacks to transactions, bookings and payouts.

    Each handler commits its database writes as one unit, so a failure part
    way through rolls everything back and the processor's retry starts clean.
    Push delivery runs after the commit and is best-effort.
    """

    @staticmethod
    def handle(raw_body):
        """Process a signature-checked webhook body. Never raises."""
        logger = current_app.logger
        try:
            event = json.loads(raw_body)
        except ValueError:
            logger.error("Webhook body is not valid JSON")
            return None

        if not isinstance(event, dict):
            logger.error("Webhook body is not a JSON object")
            return None
        event_name = event.get("event")
        data = event.get("data") if isinstance(event.get("data"), dict) else {}
        handler = WEBHOOK_HANDLERS.get(event_name)
        if handler is None:
            logger.info("Ignoring unhandled Paystack event %s", event_name)
            return None

        try:
            return handler(data)
        except Exception:
            db.session.rollback()
            logger.exception("Webhook processing error for %s", event_name)
            return None

    @staticmethod
    def charge_success(data):
        logger = current_app.logger
        reference = data.get("reference")
        if not reference:
            logger.error("charge.success without a reference")
            return False

        # Never trust the callback body alone; ask Paystack what happened.
        verification = paystack.verify_transaction(reference)
        verified = verification.data or {}
        if not verification.status or verified.get("status") != "success":
            logger.error("Payment verification failed for %s", reference)
            return False

        transaction = Transaction.query.filter_by(gateway_reference=reference).first()
        if not transaction:
            logger.warning("charge.success for unknown reference %s", reference)
            return False
        if transaction.status == TransactionStatus.FAILED.value:
            # Money was captured for an attempt already marked failed.
            logger.warning(
                "charge.success for failed transaction %s (%s); needs manual reconciliation", transaction.id, reference
            )
            return False
        if not can_transition(TRANSACTION_TRANSITIONS, transaction.status, TransactionStatus.COMPLETED):
            logger.info("Transaction %s already %s; ignoring replay", transaction.id, transaction.status)
            return False
        if verified.get("amount") != to_minor_units(transaction.total_amount):
            logger.error(
                "Amount mismatch for %s: gateway %s, expected %s",
                reference,
                verified.get("amount"),
                to_minor_units(transaction.total_amount),
            )
            return False

        updated = (
            Transaction.query.filter(
                Transaction.id == transaction.id,
                Transaction.status.in_([TransactionStatus.PENDING.value, TransactionStatus.PROCESSING.value]),
            )
            .update(
                {"status": TransactionStatus.COMPLETED.value, "paid_at": datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        if not updated:
            db.session.rollback()
            logger.info("Transaction %s settled concurrently; nothing to do", transaction.id)
            return False
        db.session.refresh(transaction)

        BookingService.confirm_after_payment(transaction.booking)

        db.session.add(
            RevenueLedgerEntry(
                transaction_id=transaction.id,
                entry_type="platform_fee",
                amount=transaction.platform_fee,
                currency=transaction.currency,
                description=f"Platform fee for booking {transaction.booking_id}",
            )
        )
        NotificationService.notify(
            transaction.worker_id,
            "payment_received",
            "Payment Received",
            f"Payment of R{transaction.worker_amount:.2f} has been received for your booking.",
            {
                "booking_id": transaction.booking_id,
                "transaction_id": transaction.id,
                "amount": float(transaction.worker_amount),
            },
        )
        NotificationService.notify(
            transaction.client_id,
            "payment_confirmed",
            "Payment Confirmed",
            f"Your payment of R{transaction.total_amount:.2f} has been processed.",
            {"booking_id": transaction.booking_id, "transaction_id": transaction.id},
        )
        db.session.commit()
        logger.info("Settled transaction %s for booking %s", transaction.id, transaction.booking_id)

        booking_url = f"/bookings/{transaction.booking_id}"
        PushService.send_to_user(
            transaction.worker_id,
            {
                "title": "Payment Received",
                "body": f"R{transaction.worker_amount:.2f} received for booking #{transaction.booking_id}.",
                "url": booking_url,
                "tag": f"payment-{transaction.id}",
            },
        )
        PushService.send_to_user(
            transaction.client_id,
            {
                "title": "Payment Confirmed",
                "body": f"Your payment of R{transaction.total_amount:.2f} has been processed.",
                "url": booking_url,
                "tag": f"payment-{transaction.id}",
            },
        )
        return True

    @staticmethod
    def charge_failed(data):
        reference = data.get("reference")
        if not reference:
            return False
        updated = (
            Transaction.query.filter_by(gateway_reference=reference, status=TransactionStatus.PENDING.value)
            .update({"status": TransactionStatus.FAILED.value}, synchronize_session=False)
        )
        db.session.commit()
        if updated:
            current_app.logger.info("Marked transaction %s as failed", reference)
        return bool(updated)

    @staticmethod
    def _open_payout(data):
        transfer_code = data.get("transfer_code")
        if not transfer_code:
            current_app.logger.error("Transfer event without a transfer_code")
            return None
        payout = WorkerPayout.query.filter_by(transfer_code=transfer_code).first()
        if not payout:
            current_app.logger.warning("Transfer event for unknown transfer %s", transfer_code)
            return None
        return payout

    @staticmethod
    def _finish_payout(payout, status, **values):
        open_statuses = [PayoutStatus.PENDING.value, PayoutStatus.PROCESSING.value]
        return (
            WorkerPayout.query.filter(WorkerPayout.id == payout.id, WorkerPayout.status.in_(open_statuses))
            .update({"status": status.value, **values}, synchronize_session=False)
        )

    @staticmethod
    def transfer_success(data):
        payout = WebhookService._open_payout(data)
        if not payout or not can_transition(PAYOUT_TRANSITIONS, payout.status, PayoutStatus.COMPLETED):
            return False

        if not WebhookService._finish_payout(payout, PayoutStatus.COMPLETED, paid_at=datetime.now(timezone.utc)):
            db.session.rollback()
            return False
        db.session.refresh(payout)

        NotificationService.notify(
            payout.worker_id,
            "payout_completed",
            "Payout Sent",
            f"R{payout.amount:.2f} has been sent to your bank account.",
            {"payout_id": payout.id},
        )
        db.session.commit()

        PushService.send_to_user(
            payout.worker_id,
            {"title": "Payout Sent", "body": f"R{payout.amount:.2f} is on its way to your bank account."},
        )
        return True

    @staticmethod
    def transfer_failed(data):
        payout = WebhookService._open_payout(data)
        if not payout or not can_transition(PAYOUT_TRANSITIONS, payout.status, PayoutStatus.FAILED):
            return False

        updated = WebhookService._finish_payout(payout, PayoutStatus.FAILED, failure_reason=TRANSFER_FAILURE_REASON)
        db.session.commit()
        if updated:
            current_app.logger.warning("Payout %s failed at the gateway", payout.id)
        return bool(updated)


WEBHOOK_HANDLERS = {
    "charge.success": WebhookService.charge_success,
    "charge.failed": WebhookService.charge_failed,
    "transfer.success": WebhookService.transfer_success,
    "transfer.failed": WebhookService.transfer_failed,
}
