from domestiq.extensions import db
from domestiq.models.base import TimestampMixin


class PlatformSetting(TimestampMixin, db.Model):
    """Admin overrides for runtime knobs such as ``platform_fee_rate``."""

    __tablename__ = "platform_settings"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.String(255), nullable=False)
