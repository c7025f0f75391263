from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from domestiq.errors import AppError
from domestiq.extensions import db
from domestiq.lifecycle import BookingStatus
from domestiq.models import Booking, Review
from domestiq.services.notification_service import NotificationService

DETAIL_RATINGS = ("professionalism_rating", "punctuality_rating", "quality_rating")


def _rating(value, field):
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise AppError(f"{field} must be an integer between 1 and 5.", 400)
    return value


class ReviewService:
    @staticmethod
    def create_review(client, booking_id, rating, comment=None, **details):
        """Client reviews the worker of one of their completed bookings.

        One review per booking and reviewer; the worker gets an in-app
        notification in the same commit.
        """
        rating = _rating(rating, "rating")
        detail_values = {
            name: _rating(details[name], name) for name in DETAIL_RATINGS if details.get(name) is not None
        }

        booking = db.session.get(Booking, booking_id)
        if not booking:
            raise AppError("Booking not found.", 404)
        if booking.client_id != client.id:
            raise AppError("You can only review bookings you created.", 403)
        if booking.status != BookingStatus.COMPLETED.value:
            raise AppError("You can only review completed bookings.", 400)

        existing = Review.query.filter_by(booking_id=booking.id, reviewer_id=client.id).first()
        if existing:
            raise AppError("You have already reviewed this booking.", 409, payload={"review_id": existing.id})

        review = Review(
            booking_id=booking.id,
            reviewer_id=client.id,
            reviewee_id=booking.worker_id,
            rating=rating,
            comment=(comment or "").strip() or None,
            **detail_values,
        )
        db.session.add(review)
        db.session.flush()

        NotificationService.notify(
            booking.worker_id,
            "review_received",
            "New Review",
            f"You received a {rating}-star review.",
            {"review_id": review.id, "booking_id": booking.id},
        )
        db.session.commit()
        current_app.logger.info("Review %s left on booking %s", review.id, booking.id)
        return review

    @staticmethod
    def list_for_reviewee(reviewee_id, limit=20, offset=0):
        query = Review.query.filter_by(reviewee_id=reviewee_id, is_public=True)
        total = query.count()
        reviews = query.order_by(Review.created_at.desc(), Review.id.desc()).offset(offset).limit(limit).all()
        return reviews, total

    @staticmethod
    def rating_summary(reviewee_id):
        avg_rating, rating_count = (
            db.session.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.reviewee_id == reviewee_id, Review.is_public.is_(True))
            .one()
        )
        average = Decimal(str(round(float(avg_rating or 0), 2)))
        return {"average_rating": float(average), "rating_count": int(rating_count or 0)}
