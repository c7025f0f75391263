from domestiq.extensions import db
from domestiq.models.base import PKType, TimestampMixin

_ACTIVE_STATUS_CLAUSE = "status IN ('pending', 'processing', 'completed')"


class Transaction(TimestampMixin, db.Model):
    __tablename__ = "transactions"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    worker_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    worker_amount = db.Column(db.Numeric(12, 2), nullable=False)
    platform_fee = db.Column(db.Numeric(12, 2), nullable=False)
    platform_fee_percent = db.Column(db.Numeric(6, 4), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="ZAR")
    status = db.Column(db.String(24), nullable=False, default="pending", index=True)

    gateway_reference = db.Column(db.String(64), nullable=False, unique=True, index=True)
    gateway_access_code = db.Column(db.String(128), nullable=True)
    gateway_metadata = db.Column("metadata", db.JSON, nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    booking = db.relationship("Booking", back_populates="transactions")
    ledger_entries = db.relationship("RevenueLedgerEntry", back_populates="transaction", lazy="dynamic")
    payouts = db.relationship("WorkerPayout", back_populates="transaction", lazy="dynamic")

    __table_args__ = (
        # One live payment attempt per booking; failed attempts may be retried.
        db.Index(
            "uq_transactions_active_booking",
            "booking_id",
            unique=True,
            sqlite_where=db.text(_ACTIVE_STATUS_CLAUSE),
            postgresql_where=db.text(_ACTIVE_STATUS_CLAUSE),
        ),
        db.Index("ix_transactions_worker_status_paid", "worker_id", "status", "paid_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "worker_amount": float(self.worker_amount),
            "platform_fee": float(self.platform_fee),
            "total_amount": float(self.total_amount),
            "currency": self.currency,
            "status": self.status,
            "reference": self.gateway_reference,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }
