"""
Pytest configuration and fixtures
"""
import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domestiq import create_app
from domestiq.extensions import bcrypt, db, paystack
from domestiq.models import Booking, Transaction, User
from domestiq.paystack import GatewayResult

WEBHOOK_SECRET = "sk_test_domestiq"
PASSWORD = "Password123!"


@pytest.fixture(scope="function")
def app():
    """Fresh app and in-memory database per test"""
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


def make_user(role, email, full_name=None, phone="0821234567", is_active=True):
    user = User(
        full_name=full_name or email.split("@")[0].title(),
        email=email,
        phone=phone,
        role=role,
        is_active_user=is_active,
        password_hash=bcrypt.generate_password_hash(PASSWORD).decode("utf-8"),
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def client_user(app):
    return make_user("client", "thandi@example.co.za", "Thandi Mokoena")


@pytest.fixture
def worker_user(app):
    return make_user("worker", "sipho@example.co.za", "Sipho Dlamini", phone="0729876543")


@pytest.fixture
def admin_user(app):
    return make_user("admin", "ops@domestiq.co.za", "Ops Admin", phone="0110000000")


def login(client, user):
    response = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 200, response.get_json()
    return response


def make_booking(client_user, worker_user, status="accepted", total_amount="500.00", starts_in_days=2, **extra):
    start = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=starts_in_days)
    booking = Booking(
        client_id=client_user.id,
        worker_id=worker_user.id,
        service_category=extra.pop("service_category", "cleaning"),
        status=status,
        scheduled_start=start,
        scheduled_end=start + timedelta(hours=4),
        address="12 Jacaranda Street, Pretoria",
        total_amount=Decimal(total_amount),
        **extra,
    )
    db.session.add(booking)
    db.session.commit()
    return booking


def make_transaction(booking, status="pending", reference="DIQ-TEST-0001", paid_at=None):
    worker_amount = Decimal(str(booking.total_amount))
    fee = (worker_amount * Decimal("0.1")).quantize(Decimal("0.01"))
    transaction = Transaction(
        booking_id=booking.id,
        client_id=booking.client_id,
        worker_id=booking.worker_id,
        worker_amount=worker_amount,
        platform_fee=fee,
        platform_fee_percent=Decimal("0.1"),
        total_amount=worker_amount + fee,
        currency="ZAR",
        status=status,
        gateway_reference=reference,
        paid_at=paid_at,
    )
    db.session.add(transaction)
    db.session.commit()
    return transaction


@pytest.fixture
def booking(client_user, worker_user):
    return make_booking(client_user, worker_user)


class FakeGateway:
    """Records calls and answers with canned GatewayResults"""

    def __init__(self):
        self.calls = []
        self.initialize_result = GatewayResult(
            True,
            "Authorization URL created",
            {"authorization_url": "https://checkout.paystack.com/abc123", "access_code": "abc123"},
        )
        self.verify_result = None
        self.banks_result = GatewayResult(True, "Banks retrieved", [])
        self.recipient_result = GatewayResult(True, "Recipient created", {"recipient_code": "RCP_test"})
        self.transfer_result = GatewayResult(True, "Transfer queued", {"transfer_code": "TRF_test"})

    def initialize_transaction(self, **kwargs):
        self.calls.append(("initialize", kwargs))
        return self.initialize_result

    def verify_transaction(self, reference):
        self.calls.append(("verify", reference))
        return self.verify_result or GatewayResult(False, "Transaction reference not found")

    def list_banks(self, country="south africa"):
        self.calls.append(("banks", country))
        return self.banks_result

    def create_transfer_recipient(self, name, account_number, bank_code):
        self.calls.append(("recipient", name, account_number, bank_code))
        return self.recipient_result

    def initiate_transfer(self, amount, recipient_code, reference, reason):
        self.calls.append(("transfer", amount, recipient_code, reference))
        return self.transfer_result

    def succeed(self, amount_cents):
        self.verify_result = GatewayResult(True, "Verification successful", {"status": "success", "amount": amount_cents})


@pytest.fixture
def gateway(app, monkeypatch):
    fake = FakeGateway()
    for name in (
        "initialize_transaction",
        "verify_transaction",
        "list_banks",
        "create_transfer_recipient",
        "initiate_transfer",
    ):
        monkeypatch.setattr(paystack, name, getattr(fake, name))
    return fake


def sign(body, secret=WEBHOOK_SECRET):
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()


def post_webhook(client, event, data, signature=None):
    body = json.dumps({"event": event, "data": data}).encode("utf-8")
    headers = {"x-paystack-signature": signature if signature is not None else sign(body)}
    return client.post("/api/v1/payments/webhook", data=body, headers=headers, content_type="application/json")
