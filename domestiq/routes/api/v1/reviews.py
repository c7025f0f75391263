from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from domestiq.decorators import json_body, parse_id, role_required
from domestiq.errors import AppError
from domestiq.services import ReviewService
from domestiq.services.review_service import DETAIL_RATINGS

api_review_bp = Blueprint("api_review", __name__)

MAX_PAGE_SIZE = 100


@api_review_bp.get("")
@login_required
def list_reviews():
    raw_reviewee = request.args.get("reviewee_id") or request.args.get("user_id")
    if not raw_reviewee:
        raise AppError("Missing required query param: reviewee_id", 400)
    reviewee_id = parse_id(raw_reviewee, "reviewee_id")
    limit = request.args.get("limit", default=20, type=int)
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, request.args.get("offset", default=0, type=int))

    reviews, total = ReviewService.list_for_reviewee(reviewee_id, limit=limit, offset=offset)
    return jsonify(
        {
            "reviews": [review.to_dict() for review in reviews],
            "pagination": {"total": total, "limit": limit, "offset": offset},
            **ReviewService.rating_summary(reviewee_id),
        }
    )


@api_review_bp.post("")
@role_required("client")
@json_body("booking_id", "rating")
def add_review(payload):
    review = ReviewService.create_review(
        current_user,
        parse_id(payload["booking_id"], "booking_id"),
        payload["rating"],
        comment=payload.get("comment"),
        **{name: payload.get(name) for name in DETAIL_RATINGS},
    )
    return jsonify({"review": review.to_dict()}), 201
