from decimal import Decimal, InvalidOperation

from domestiq.errors import AppError
from domestiq.extensions import db
from domestiq.models import PlatformSetting

DECIMAL_SETTINGS = {"platform_fee_rate", "platform_fee_min", "platform_fee_max"}


class PlatformService:
    @staticmethod
    def get_setting(key, default=None):
        setting = db.session.get(PlatformSetting, key)
        if not setting:
            return default
        return setting.value

    @staticmethod
    def get_decimal(key, default):
        raw = PlatformService.get_setting(key)
        if raw is None:
            return None if default is None else Decimal(str(default))
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            return None if default is None else Decimal(str(default))

    @staticmethod
    def _validate(key, value):
        if key in DECIMAL_SETTINGS:
            try:
                if Decimal(str(value)) < 0:
                    raise InvalidOperation
            except InvalidOperation as exc:
                raise AppError(f"{key} must be a non-negative number.", 400) from exc

    @staticmethod
    def _upsert(key, value):
        setting = db.session.get(PlatformSetting, key)
        if setting:
            setting.value = str(value)
        else:
            setting = PlatformSetting(key=key, value=str(value))
            db.session.add(setting)
        return setting

    @staticmethod
    def set_setting(key, value):
        PlatformService._validate(key, value)
        setting = PlatformService._upsert(key, value)
        db.session.commit()
        return setting

    @staticmethod
    def set_settings(values):
        """Validate every value first, then write them in one commit."""
        for key, value in values.items():
            PlatformService._validate(key, value)
        settings = [PlatformService._upsert(key, value) for key, value in sorted(values.items())]
        db.session.commit()
        return settings
