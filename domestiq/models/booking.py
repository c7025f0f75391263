from domestiq.extensions import db
from domestiq.models.base import PKType, TimestampMixin


def _iso(value):
    return value.isoformat() if value else None


class Booking(TimestampMixin, db.Model):
    __tablename__ = "bookings"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    client_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    worker_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    service_category = db.Column(db.String(64), nullable=True, index=True)

    status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    scheduled_start = db.Column(db.DateTime(timezone=True), nullable=False)
    scheduled_end = db.Column(db.DateTime(timezone=True), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    client_notes = db.Column(db.Text, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    client = db.relationship("User", back_populates="client_bookings", foreign_keys=[client_id])
    worker = db.relationship("User", back_populates="worker_bookings", foreign_keys=[worker_id])
    transactions = db.relationship("Transaction", back_populates="booking", lazy="dynamic")

    __table_args__ = (
        db.Index("ix_bookings_client_status", "client_id", "status"),
        db.Index("ix_bookings_worker_status", "worker_id", "status"),
        db.CheckConstraint("total_amount > 0", name="ck_booking_amount_positive"),
        db.CheckConstraint("scheduled_end > scheduled_start", name="ck_booking_window"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "client_id": self.client_id,
            "worker_id": self.worker_id,
            "service_category": self.service_category,
            "status": self.status,
            "scheduled_start": _iso(self.scheduled_start),
            "scheduled_end": _iso(self.scheduled_end),
            "address": self.address,
            "total_amount": float(self.total_amount),
            "client_notes": self.client_notes,
            "cancellation_reason": self.cancellation_reason,
            "created_at": _iso(self.created_at),
        }
