from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from domestiq.decorators import json_body
from domestiq.errors import AppError
from domestiq.services import ConsentService

api_consent_bp = Blueprint("api_consent", __name__)


@api_consent_bp.get("")
@login_required
def list_consents():
    return jsonify({"consents": [consent.to_dict() for consent in ConsentService.list_active(current_user.id)]})


@api_consent_bp.post("")
@login_required
@json_body("consent_type")
def grant_consent(payload):
    consent = ConsentService.grant(
        current_user.id,
        payload["consent_type"],
        consent_category=payload.get("consent_category"),
        consent_text=payload.get("consent_text"),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    return jsonify({"success": True, "consent": consent.to_dict()}), 201


@api_consent_bp.delete("")
@login_required
def revoke_consent():
    consent_id = request.args.get("id", type=int)
    if consent_id is None:
        raise AppError("id is required.", 400)
    consent = ConsentService.revoke(current_user.id, consent_id)
    return jsonify({"success": True, "consent": consent.to_dict()})
