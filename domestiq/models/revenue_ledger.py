from domestiq.extensions import db
from domestiq.models.base import CreatedAtMixin, PKType


class RevenueLedgerEntry(CreatedAtMixin, db.Model):
    """Append-only platform income. Rows are inserted once and never updated."""

    __tablename__ = "revenue_ledger"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    transaction_id = db.Column(PKType, db.ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True, index=True)
    entry_type = db.Column(db.String(32), nullable=False, default="platform_fee", index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="ZAR")
    description = db.Column(db.String(255), nullable=False)

    transaction = db.relationship("Transaction", back_populates="ledger_entries")

    __table_args__ = (
        db.UniqueConstraint("transaction_id", "entry_type", name="uq_revenue_ledger_transaction_entry"),
    )
