"""Thin Paystack client.

Every call returns a :class:`GatewayResult` instead of raising, so route
handlers decide how a processor failure maps onto an HTTP status.
"""

import hashlib
import hmac
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, NamedTuple, Optional
from urllib.parse import quote

import httpx

DEFAULT_BASE_URL = "https://api.paystack.co"


class GatewayResult(NamedTuple):
    status: bool
    message: str
    data: Any = None


def to_minor_units(amount) -> int:
    """Rands to cents, rounded half up."""
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


class PaystackClient:
    def __init__(self, app=None):
        self.base_url = DEFAULT_BASE_URL
        self.secret_key = None
        self.webhook_secret = None
        self.currency = "ZAR"
        self.timeout = 10.0
        self.logger = logging.getLogger(__name__)
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.base_url = app.config.get("PAYSTACK_BASE_URL") or DEFAULT_BASE_URL
        self.secret_key = app.config.get("PAYSTACK_SECRET_KEY")
        self.webhook_secret = app.config.get("PAYSTACK_WEBHOOK_SECRET") or self.secret_key
        self.currency = app.config.get("CURRENCY", "ZAR")
        self.timeout = float(app.config.get("PAYSTACK_TIMEOUT", 10))
        self.logger = app.logger
        app.extensions["paystack"] = self

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method, path, **kwargs) -> GatewayResult:
        if not self.secret_key:
            self.logger.error("PAYSTACK_SECRET_KEY is not configured")
            return GatewayResult(False, "Payment gateway is not configured.")

        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout) as client:
                response = client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            self.logger.warning("Paystack %s %s failed: %s", method, path, exc)
            return GatewayResult(False, "Payment gateway unreachable.")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or response.reason_phrase or ""
        if response.is_error or not body.get("status"):
            self.logger.warning(
                "Paystack %s %s rejected (%s): %s", method, path, response.status_code, message
            )
            return GatewayResult(False, message or "Payment gateway error.", body.get("data"))
        return GatewayResult(True, message, body.get("data"))

    def initialize_transaction(
        self,
        email: str,
        amount,
        reference: str,
        callback_url: str,
        metadata: Optional[dict] = None,
    ) -> GatewayResult:
        metadata = dict(metadata or {})
        custom_fields = [
            {"display_name": "Booking ID", "variable_name": "booking_id", "value": str(metadata.get("booking_id", ""))},
        ]
        for key, label in (("worker_amount", "Worker Amount"), ("platform_fee", "Platform Fee")):
            if key in metadata:
                custom_fields.append(
                    {
                        "display_name": label,
                        "variable_name": key,
                        "value": f"R{Decimal(str(metadata[key])):.2f}",
                    }
                )
        metadata["custom_fields"] = custom_fields

        return self._request(
            "POST",
            "/transaction/initialize",
            json={
                "email": email,
                "amount": to_minor_units(amount),
                "reference": reference,
                "callback_url": callback_url,
                "currency": self.currency,
                "metadata": metadata,
            },
        )

    def verify_transaction(self, reference: str) -> GatewayResult:
        return self._request("GET", f"/transaction/verify/{quote(reference, safe='')}")

    def list_banks(self, country: str = "south africa") -> GatewayResult:
        return self._request("GET", "/bank", params={"country": country, "currency": self.currency})

    def create_transfer_recipient(self, name: str, account_number: str, bank_code: str) -> GatewayResult:
        return self._request(
            "POST",
            "/transferrecipient",
            json={
                # South African accounts use the BASA recipient type.
                "type": "basa",
                "name": name,
                "account_number": account_number,
                "bank_code": bank_code,
                "currency": self.currency,
            },
        )

    def initiate_transfer(self, amount, recipient_code: str, reference: str, reason: str) -> GatewayResult:
        return self._request(
            "POST",
            "/transfer",
            json={
                "source": "balance",
                "amount": to_minor_units(amount),
                "recipient": recipient_code,
                "reference": reference,
                "reason": reason,
            },
        )

    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """HMAC-SHA512 over the exact bytes Paystack posted."""
        if not self.webhook_secret or not signature:
            return False
        if isinstance(raw_body, str):
            raw_body = raw_body.encode("utf-8")
        expected = hmac.new(self.webhook_secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected.encode("ascii"), signature.strip().encode("utf-8"))
