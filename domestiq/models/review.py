from domestiq.extensions import db
from domestiq.models.base import PKType, TimestampMixin


class Review(TimestampMixin, db.Model):
    __tablename__ = "reviews"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewee_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = db.Column(db.SmallInteger, nullable=False)
    professionalism_rating = db.Column(db.SmallInteger, nullable=True)
    punctuality_rating = db.Column(db.SmallInteger, nullable=True)
    quality_rating = db.Column(db.SmallInteger, nullable=True)
    comment = db.Column(db.Text, nullable=True)
    is_public = db.Column(db.Boolean, nullable=False, default=True)

    booking = db.relationship("Booking")
    reviewer = db.relationship("User", foreign_keys=[reviewer_id])

    __table_args__ = (
        db.UniqueConstraint("booking_id", "reviewer_id", name="uq_review_booking_reviewer"),
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
        db.Index("ix_reviews_reviewee_created", "reviewee_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "reviewer": {"id": self.reviewer.id, "full_name": self.reviewer.full_name},
            "reviewee_id": self.reviewee_id,
            "rating": self.rating,
            "professionalism_rating": self.professionalism_rating,
            "punctuality_rating": self.punctuality_rating,
            "quality_rating": self.quality_rating,
            "comment": self.comment,
            "service_category": self.booking.service_category,
            "created_at": self.created_at.isoformat(),
        }
