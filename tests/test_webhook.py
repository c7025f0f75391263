"""
Paystack webhook settlement: signatures, idempotency and transfer events
"""
import logging

from conftest import make_booking, make_transaction, post_webhook, sign
from domestiq.extensions import db
from domestiq.models import Booking, Notification, RevenueLedgerEntry, Transaction, WorkerPayout
from domestiq.paystack import GatewayResult

REFERENCE = "DIQ-20261019120000-ABCDEF12"


def _reload(model, pk):
    db.session.expire_all()
    return db.session.get(model, pk)


class TestSignature:
    def test_bad_signature_is_rejected_without_side_effects(self, client, booking, gateway):
        transaction = make_transaction(booking, reference=REFERENCE)
        gateway.succeed(55000)

        response = post_webhook(client, "charge.success", {"reference": REFERENCE}, signature="f" * 128)

        assert response.status_code == 401
        assert response.get_json() == {"error": "Invalid signature"}
        assert _reload(Transaction, transaction.id).status == "pending"
        assert _reload(Booking, booking.id).status == "accepted"
        assert gateway.calls == []

    def test_missing_signature_is_rejected(self, client, booking, gateway):
        make_transaction(booking, reference=REFERENCE)

        response = client.post(
            "/api/v1/payments/webhook",
            json={"event": "charge.success", "data": {"reference": REFERENCE}},
        )

        assert response.status_code == 401
        assert RevenueLedgerEntry.query.count() == 0

    def test_unknown_event_is_acknowledged(self, client, gateway):
        response = post_webhook(client, "subscription.create", {"code": "SUB_1"})

        assert response.status_code == 200
        assert response.get_json() == {"received": True}

    def test_garbage_body_is_acknowledged(self, client, gateway):
        body = b"not json at all"
        response = client.post(
            "/api/v1/payments/webhook",
            data=body,
            headers={"x-paystack-signature": sign(body)},
            content_type="application/json",
        )

        assert response.status_code == 200


class TestChargeSuccess:
    def test_settles_transaction_booking_ledger_and_notifications(self, client, booking, gateway):
        transaction = make_transaction(booking, reference=REFERENCE)
        gateway.succeed(55000)

        response = post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert response.status_code == 200
        assert gateway.calls == [("verify", REFERENCE)]

        settled = _reload(Transaction, transaction.id)
        assert settled.status == "completed"
        assert settled.paid_at is not None

        confirmed = db.session.get(Booking, booking.id)
        assert confirmed.status == "confirmed"
        assert confirmed.confirmed_at is not None

        ledger = RevenueLedgerEntry.query.filter_by(transaction_id=transaction.id).all()
        assert len(ledger) == 1
        assert ledger[0].entry_type == "platform_fee"
        assert float(ledger[0].amount) == 50.0

        types = {(n.user_id, n.type) for n in Notification.query.all()}
        assert types == {(booking.worker_id, "payment_received"), (booking.client_id, "payment_confirmed")}

    def test_replayed_delivery_is_a_no_op(self, client, booking, gateway):
        transaction = make_transaction(booking, reference=REFERENCE)
        gateway.succeed(55000)

        first = post_webhook(client, "charge.success", {"reference": REFERENCE})
        second = post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert first.status_code == 200
        assert second.status_code == 200
        assert RevenueLedgerEntry.query.filter_by(transaction_id=transaction.id).count() == 1
        assert Notification.query.count() == 2
        assert _reload(Booking, booking.id).status == "confirmed"

    def test_failed_reverification_does_not_complete(self, client, booking, gateway):
        transaction = make_transaction(booking, reference=REFERENCE)
        gateway.verify_result = GatewayResult(True, "ok", {"status": "failed", "amount": 55000})

        response = post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert response.status_code == 200
        assert _reload(Transaction, transaction.id).status == "pending"
        assert db.session.get(Booking, booking.id).status == "accepted"
        assert RevenueLedgerEntry.query.count() == 0
        assert Notification.query.count() == 0

    def test_unreachable_gateway_does_not_complete(self, client, booking, gateway):
        transaction = make_transaction(booking, reference=REFERENCE)

        response = post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert response.status_code == 200
        assert _reload(Transaction, transaction.id).status == "pending"

    def test_amount_mismatch_does_not_complete(self, client, booking, gateway):
        transaction = make_transaction(booking, reference=REFERENCE)
        gateway.succeed(100)

        post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert _reload(Transaction, transaction.id).status == "pending"
        assert RevenueLedgerEntry.query.count() == 0

    def test_cancelled_booking_keeps_its_status(self, client, client_user, worker_user, gateway):
        cancelled = make_booking(client_user, worker_user, status="cancelled")
        transaction = make_transaction(cancelled, reference=REFERENCE)
        gateway.succeed(55000)

        post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert _reload(Transaction, transaction.id).status == "completed"
        assert db.session.get(Booking, cancelled.id).status == "cancelled"
        assert RevenueLedgerEntry.query.count() == 1

    def test_internal_error_rolls_back_and_still_acks(self, client, booking, gateway, monkeypatch):
        from domestiq.services import webhook_service

        transaction = make_transaction(booking, reference=REFERENCE)
        gateway.succeed(55000)

        def explode(*args, **kwargs):
            raise RuntimeError("notification store down")

        monkeypatch.setattr(webhook_service.NotificationService, "notify", explode)

        response = post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert response.status_code == 200
        assert _reload(Transaction, transaction.id).status == "pending"
        assert db.session.get(Booking, booking.id).status == "accepted"
        assert RevenueLedgerEntry.query.count() == 0

    def test_processing_transaction_completes(self, client, booking, gateway):
        transaction = make_transaction(booking, status="processing", reference=REFERENCE)
        gateway.succeed(55000)

        post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert _reload(Transaction, transaction.id).status == "completed"
        assert db.session.get(Booking, booking.id).status == "confirmed"
        assert RevenueLedgerEntry.query.filter_by(transaction_id=transaction.id).count() == 1

    def test_success_after_failure_is_flagged_for_reconciliation(self, client, booking, gateway, caplog):
        transaction = make_transaction(booking, status="failed", reference=REFERENCE)
        gateway.succeed(55000)

        with caplog.at_level(logging.WARNING):
            response = post_webhook(client, "charge.success", {"reference": REFERENCE})

        assert response.status_code == 200
        assert _reload(Transaction, transaction.id).status == "failed"
        assert RevenueLedgerEntry.query.count() == 0
        flagged = [record for record in caplog.records if "needs manual reconciliation" in record.getMessage()]
        assert len(flagged) == 1
        assert flagged[0].levelno == logging.WARNING


class TestChargeFailed:
    def test_marks_pending_transaction_failed(self, client, booking, gateway):
        transaction = make_transaction(booking, reference=REFERENCE)

        response = post_webhook(client, "charge.failed", {"reference": REFERENCE})

        assert response.status_code == 200
        assert _reload(Transaction, transaction.id).status == "failed"
        assert db.session.get(Booking, booking.id).status == "accepted"

    def test_completed_transaction_is_untouched(self, client, booking, gateway):
        transaction = make_transaction(booking, status="completed", reference=REFERENCE)

        post_webhook(client, "charge.failed", {"reference": REFERENCE})

        assert _reload(Transaction, transaction.id).status == "completed"


class TestTransfers:
    def _payout(self, booking, status="pending"):
        transaction = make_transaction(booking, status="completed", reference=REFERENCE)
        payout = WorkerPayout(
            worker_id=booking.worker_id,
            transaction_id=transaction.id,
            amount=transaction.worker_amount,
            currency="ZAR",
            status=status,
            transfer_reference="DIQP-TEST-1",
            transfer_code="TRF_abc123",
            recipient_code="RCP_abc123",
            account_number_last4="7890",
        )
        db.session.add(payout)
        db.session.commit()
        return payout

    def test_transfer_success_completes_payout_and_notifies_worker(self, client, booking, gateway):
        payout = self._payout(booking)

        response = post_webhook(client, "transfer.success", {"transfer_code": "TRF_abc123"})

        assert response.status_code == 200
        completed = _reload(WorkerPayout, payout.id)
        assert completed.status == "completed"
        assert completed.paid_at is not None
        notifications = Notification.query.all()
        assert [(n.user_id, n.type) for n in notifications] == [(booking.worker_id, "payout_completed")]

    def test_transfer_success_replay_notifies_once(self, client, booking, gateway):
        self._payout(booking)

        post_webhook(client, "transfer.success", {"transfer_code": "TRF_abc123"})
        post_webhook(client, "transfer.success", {"transfer_code": "TRF_abc123"})

        assert Notification.query.count() == 1

    def test_transfer_failed_records_reason(self, client, booking, gateway):
        payout = self._payout(booking, status="processing")

        post_webhook(client, "transfer.failed", {"transfer_code": "TRF_abc123"})

        failed = _reload(WorkerPayout, payout.id)
        assert failed.status == "failed"
        assert failed.failure_reason == "Transfer failed - please verify bank details"
        assert Notification.query.count() == 0

    def test_unknown_transfer_is_ignored(self, client, gateway):
        response = post_webhook(client, "transfer.success", {"transfer_code": "TRF_missing"})

        assert response.status_code == 200
