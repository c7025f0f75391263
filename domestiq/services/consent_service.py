from datetime import datetime, timedelta, timezone

from sqlalchemy import or_

from domestiq.errors import AppError
from domestiq.extensions import db
from domestiq.models import ConsentRecord, IncomeStatement

VALID_TYPES = {
    "platform_terms",
    "privacy_policy",
    "popi_consent",
    "income_data_sharing",
    "identity_sharing",
    "marketing",
    "location_tracking",
}

# Data-sharing consents lapse after a year and must be renewed.
EXPIRING_TYPES = {"income_data_sharing", "identity_sharing"}
SHARING_VALIDITY = timedelta(days=365)

DEFAULT_CONSENT_TEXT = "User granted {} consent"


class ConsentService:
    @staticmethod
    def _active_query(user_id):
        now = datetime.now(timezone.utc)
        return ConsentRecord.query.filter(
            ConsentRecord.user_id == user_id,
            ConsentRecord.consent_given.is_(True),
            ConsentRecord.revoked_at.is_(None),
            or_(ConsentRecord.expires_at.is_(None), ConsentRecord.expires_at > now),
        )

    @staticmethod
    def list_active(user_id):
        return ConsentService._active_query(user_id).order_by(ConsentRecord.created_at.desc()).all()

    @staticmethod
    def has_active(user_id, consent_type):
        return ConsentService._active_query(user_id).filter(ConsentRecord.consent_type == consent_type).first() is not None

    @staticmethod
    def grant(user_id, consent_type, consent_category=None, consent_text=None, ip_address=None, user_agent=None):
        consent_type = (consent_type or "").strip()
        if consent_type not in VALID_TYPES:
            raise AppError(f"Invalid consent_type. Must be one of: {', '.join(sorted(VALID_TYPES))}", 400)

        existing = ConsentService._active_query(user_id).filter(ConsentRecord.consent_type == consent_type).first()
        if existing:
            raise AppError("Consent already granted.", 409, payload={"consent_id": existing.id})

        expires_at = None
        if consent_type in EXPIRING_TYPES:
            expires_at = datetime.now(timezone.utc) + SHARING_VALIDITY

        consent = ConsentRecord(
            user_id=user_id,
            consent_type=consent_type,
            consent_category=(consent_category or "").strip() or consent_type,
            consent_given=True,
            consent_text=(consent_text or "").strip() or DEFAULT_CONSENT_TEXT.format(consent_type),
            ip_address=ip_address,
            user_agent=(user_agent or "")[:255] or None,
            expires_at=expires_at,
        )
        db.session.add(consent)
        db.session.commit()
        return consent

    @staticmethod
    def revoke(user_id, consent_id):
        consent = (
            ConsentRecord.query.filter_by(id=consent_id, user_id=user_id).first()
            if str(consent_id).isdigit()
            else None
        )
        if not consent:
            raise AppError("Consent record not found.", 404)
        if consent.revoked_at is not None:
            return consent

        consent.revoked_at = datetime.now(timezone.utc)
        if consent.consent_type == "income_data_sharing":
            IncomeStatement.query.filter_by(worker_id=user_id, is_shared=True).update(
                {"is_shared": False}, synchronize_session=False
            )
        db.session.commit()
        return consent

