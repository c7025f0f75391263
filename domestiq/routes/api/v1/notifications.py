from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from domestiq.decorators import json_body, parse_id, role_required
from domestiq.errors import AppError
from domestiq.extensions import limiter
from domestiq.services import NotificationService, PushService

api_notification_bp = Blueprint("api_notification", __name__)

MAX_NOTIFICATIONS = 200


@api_notification_bp.get("")
@login_required
def list_notifications():
    unread_only = request.args.get("unread_only", "").lower() in {"1", "true", "yes"}
    limit = request.args.get("limit", default=50, type=int)
    limit = max(1, min(limit, MAX_NOTIFICATIONS))
    items, total = NotificationService.list_for_user(current_user.id, unread_only=unread_only, limit=limit)
    return jsonify(
        {
            "notifications": [item.to_dict() for item in items],
            "total": total,
            "unread_count": NotificationService.unread_count(current_user.id),
        }
    )


@api_notification_bp.patch("")
@login_required
@json_body()
def mark_read(payload):
    if payload.get("all") is True:
        updated = NotificationService.mark_all_read(current_user.id)
    else:
        ids = payload.get("ids")
        if not isinstance(ids, list) or not ids:
            raise AppError("Provide ids or all: true.", 400)
        if not all(isinstance(item, int) for item in ids):
            raise AppError("ids must be a list of integers.", 400)
        updated = NotificationService.mark_read(current_user.id, ids)
    return jsonify({"success": True, "updated": updated})


@api_notification_bp.post("/subscribe")
@login_required
@json_body("endpoint")
def subscribe(payload):
    keys = payload.get("keys") if isinstance(payload.get("keys"), dict) else {}
    PushService.subscribe(
        current_user.id,
        payload["endpoint"],
        keys.get("p256dh"),
        keys.get("auth"),
        user_agent=(request.headers.get("User-Agent") or "")[:255] or None,
    )
    return jsonify({"success": True})


@api_notification_bp.delete("/subscribe")
@login_required
@json_body("endpoint")
def unsubscribe(payload):
    PushService.unsubscribe(current_user.id, payload["endpoint"])
    return jsonify({"success": True})


@api_notification_bp.post("/send")
@role_required("admin")
@limiter.limit("30 per minute")
@json_body("title", "body")
def send(payload):
    message = {
        "title": payload["title"],
        "body": payload["body"],
        "url": payload.get("url"),
        "tag": payload.get("tag"),
    }
    user_ids = payload.get("user_ids")
    if user_ids is not None:
        if not isinstance(user_ids, list) or not user_ids:
            raise AppError("user_ids must be a non-empty list.", 400)
        result = PushService.send_to_users([parse_id(item, "user_ids") for item in user_ids], message)
    elif payload.get("user_id") in (None, ""):
        raise AppError("Missing required fields: user_id", 400)
    else:
        result = PushService.send_to_user(parse_id(payload["user_id"], "user_id"), message)
    return jsonify({"success": True, **result})
