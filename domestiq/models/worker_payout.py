from domestiq.extensions import db
from domestiq.models.base import PKType, TimestampMixin


class WorkerPayout(TimestampMixin, db.Model):
    __tablename__ = "worker_payouts"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    worker_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = db.Column(PKType, db.ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="ZAR")
    status = db.Column(db.String(24), nullable=False, default="pending", index=True)

    transfer_reference = db.Column(db.String(64), nullable=True, unique=True)
    transfer_code = db.Column(db.String(64), nullable=True, unique=True, index=True)
    recipient_code = db.Column(db.String(64), nullable=True)
    bank_name = db.Column(db.String(120), nullable=True)
    account_number_last4 = db.Column(db.String(4), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    failure_reason = db.Column(db.String(255), nullable=True)

    transaction = db.relationship("Transaction", back_populates="payouts")

    def to_dict(self):
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "transaction_id": self.transaction_id,
            "amount": float(self.amount),
            "currency": self.currency,
            "status": self.status,
            "transfer_code": self.transfer_code,
            "bank_name": self.bank_name,
            "account_number_last4": self.account_number_last4,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "failure_reason": self.failure_reason,
        }
