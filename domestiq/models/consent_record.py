from domestiq.extensions import db
from domestiq.models.base import CreatedAtMixin, PKType


class ConsentRecord(CreatedAtMixin, db.Model):
    """Grant/revoke audit log. Revocation stamps ``revoked_at``; rows are kept."""

    __tablename__ = "consent_records"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    consent_type = db.Column(db.String(48), nullable=False, index=True)
    consent_category = db.Column(db.String(48), nullable=False)
    consent_given = db.Column(db.Boolean, nullable=False, default=True)
    consent_text = db.Column(db.Text, nullable=False)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    user = db.relationship("User", back_populates="consents")

    def to_dict(self):
        return {
            "id": self.id,
            "consent_type": self.consent_type,
            "consent_category": self.consent_category,
            "consent_given": self.consent_given,
            "consent_text": self.consent_text,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "revoked_at": self.revoked_at.isoformat() if self.revoked_at else None,
            "created_at": self.created_at.isoformat(),
        }
