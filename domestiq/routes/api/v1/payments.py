from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from domestiq.decorators import json_body, parse_id, role_required
from domestiq.errors import AppError
from domestiq.extensions import limiter, paystack
from domestiq.services import PaymentService, PayoutService, WebhookService

api_payment_bp = Blueprint("api_payment", __name__)


@api_payment_bp.post("/initialize")
@role_required("client")
@limiter.limit("10 per minute")
@json_body("booking_id")
def initialize(payload):
    transaction, breakdown, authorization_url = PaymentService.initialize_payment(
        parse_id(payload["booking_id"], "booking_id"), current_user
    )
    return jsonify(
        {
            "authorization_url": authorization_url,
            "access_code": transaction.gateway_access_code,
            "reference": transaction.gateway_reference,
            "breakdown": breakdown.to_dict(),
        }
    )


@api_payment_bp.get("/verify")
@login_required
def verify():
    reference = (request.args.get("reference") or "").strip()
    if not reference:
        raise AppError("reference is required.", 400)
    status, transaction = PaymentService.verify_payment(reference, current_user)
    return jsonify({"status": status, "transaction": transaction.to_dict()})


@api_payment_bp.post("/webhook")
@limiter.exempt
def webhook():
    # Signature covers the exact bytes Paystack sent, so read them before any JSON parsing.
    raw_body = request.get_data(cache=True)
    signature = request.headers.get("x-paystack-signature")
    if not paystack.verify_webhook_signature(raw_body, signature):
        current_app.logger.warning("Rejected Paystack webhook with %s signature", "bad" if signature else "no")
        return jsonify({"error": "Invalid signature"}), 401

    WebhookService.handle(raw_body)
    return jsonify({"received": True})


@api_payment_bp.get("/banks")
@login_required
def banks():
    return jsonify({"banks": PaymentService.list_active_banks()})


@api_payment_bp.post("/payouts")
@role_required("admin")
@json_body("transaction_id", "account_name", "account_number", "bank_code")
def create_payout(payload):
    payout = PayoutService.initiate_payout(
        payload["transaction_id"],
        account_name=payload["account_name"],
        account_number=payload["account_number"],
        bank_code=payload["bank_code"],
        bank_name=payload.get("bank_name"),
    )
    return jsonify(payout.to_dict()), 201
