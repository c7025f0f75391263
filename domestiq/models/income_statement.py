from domestiq.extensions import db
from domestiq.models.base import PKType, TimestampMixin


class IncomeStatement(TimestampMixin, db.Model):
    __tablename__ = "income_statements"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    worker_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    period_start = db.Column(db.Date, nullable=False)
    period_end = db.Column(db.Date, nullable=False)
    total_earnings = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_bookings = db.Column(db.Integer, nullable=False, default=0)
    avg_booking_value = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    services_breakdown = db.Column(db.JSON, nullable=False, default=dict)
    verification_hash = db.Column(db.String(64), nullable=False)
    is_shared = db.Column(db.Boolean, nullable=False, default=False)
    generated_at = db.Column(db.DateTime(timezone=True), nullable=False)

    __table_args__ = (db.UniqueConstraint("worker_id", "period_start", name="uq_income_statement_worker_period"),)

    def to_dict(self):
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "total_earnings": float(self.total_earnings),
            "total_bookings": self.total_bookings,
            "avg_booking_value": float(self.avg_booking_value),
            "services_breakdown": self.services_breakdown or {},
            "verification_hash": self.verification_hash,
            "is_shared": self.is_shared,
            "generated_at": self.generated_at.isoformat(),
        }
