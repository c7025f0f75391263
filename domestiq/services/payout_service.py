from flask import current_app

from domestiq.errors import AppError, GatewayError
from domestiq.extensions import db, paystack
from domestiq.lifecycle import PayoutStatus, TransactionStatus
from domestiq.models import Transaction, WorkerPayout
from domestiq.services.payment_service import PaymentService


class PayoutService:
    @staticmethod
    def initiate_payout(transaction_id, account_name, account_number, bank_code, bank_name=None):
        """Send a completed transaction's worker share to the worker's bank.

        The payout row starts ``pending``; transfer webhooks settle it.
        """
        transaction = db.session.get(Transaction, transaction_id) if str(transaction_id).isdigit() else None
        if not transaction:
            raise AppError("Transaction not found.", 404)
        if transaction.status != TransactionStatus.COMPLETED.value:
            raise AppError("Only completed transactions can be paid out.", 400)

        account_number = "".join(ch for ch in str(account_number or "") if ch.isdigit())
        if len(account_number) < 6:
            raise AppError("account_number is invalid.", 400)

        existing = (
            transaction.payouts.filter(WorkerPayout.status != PayoutStatus.FAILED.value).first()
        )
        if existing:
            raise AppError("A payout already exists for this transaction.", 409)

        recipient = paystack.create_transfer_recipient(account_name, account_number, bank_code)
        if not recipient.status:
            raise GatewayError(recipient.message or "Could not create transfer recipient.")
        recipient_code = (recipient.data or {}).get("recipient_code")

        reference = PaymentService.generate_reference("DIQP")
        transfer = paystack.initiate_transfer(
            transaction.worker_amount,
            recipient_code,
            reference,
            f"DomestIQ payout for booking {transaction.booking_id}",
        )
        if not transfer.status:
            raise GatewayError(transfer.message or "Could not initiate transfer.")

        payout = WorkerPayout(
            worker_id=transaction.worker_id,
            transaction_id=transaction.id,
            amount=transaction.worker_amount,
            currency=transaction.currency,
            status=PayoutStatus.PENDING.value,
            transfer_reference=reference,
            transfer_code=(transfer.data or {}).get("transfer_code"),
            recipient_code=recipient_code,
            bank_name=(bank_name or "").strip() or None,
            account_number_last4=account_number[-4:],
        )
        db.session.add(payout)
        db.session.commit()
        current_app.logger.info("Payout %s queued for transaction %s", payout.id, transaction.id)
        return payout
