import os
from datetime import timedelta


def normalize_database_url(raw_url: str) -> str:
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql://", 1)
    return raw_url


def _optional_env(name):
    value = os.getenv(name, "").strip()
    return value or None


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-unsafe-key")
    SQLALCHEMY_DATABASE_URI = normalize_database_url(
        os.getenv("DATABASE_URL", "sqlite:///instance/domestiq.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }
    CACHE_TYPE = os.getenv("CACHE_TYPE", "SimpleCache")
    CACHE_DEFAULT_TIMEOUT = int(os.getenv("CACHE_DEFAULT_TIMEOUT", "120"))
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "500 per day;120 per hour")

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"
    PERMANENT_SESSION_LIFETIME = timedelta(days=int(os.getenv("SESSION_DAYS", "7")))
    REMEMBER_COOKIE_HTTPONLY = True
    SENTRY_DSN = os.getenv("SENTRY_DSN")

    APP_URL = os.getenv("APP_URL", "http://localhost:3000")
    CURRENCY = os.getenv("CURRENCY", "ZAR")

    PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
    PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
    # Paystack signs webhooks with the account secret key unless told otherwise.
    PAYSTACK_WEBHOOK_SECRET = os.getenv("PAYSTACK_WEBHOOK_SECRET") or PAYSTACK_SECRET_KEY
    PAYSTACK_TIMEOUT = float(os.getenv("PAYSTACK_TIMEOUT", "10"))
    BANK_LIST_CACHE_SECONDS = int(os.getenv("BANK_LIST_CACHE_SECONDS", "3600"))

    PLATFORM_FEE_RATE = os.getenv("PLATFORM_FEE_RATE", "0.12")
    PLATFORM_FEE_MIN = _optional_env("PLATFORM_FEE_MIN")
    PLATFORM_FEE_MAX = _optional_env("PLATFORM_FEE_MAX")

    VAPID_PUBLIC_KEY = os.getenv("VAPID_PUBLIC_KEY", "")
    VAPID_PRIVATE_KEY = os.getenv("VAPID_PRIVATE_KEY", "")
    VAPID_SUBJECT = os.getenv("VAPID_SUBJECT", "mailto:support@domestiq.co.za")
    PUSH_MAX_WORKERS = int(os.getenv("PUSH_MAX_WORKERS", "8"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SESSION_COOKIE_SECURE = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True


class TestingConfig(BaseConfig):
    TESTING = True
    BCRYPT_LOG_ROUNDS = 4
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CACHE_TYPE = "NullCache"
    RATELIMIT_ENABLED = False
    PAYSTACK_SECRET_KEY = "sk_test_domestiq"
    PAYSTACK_WEBHOOK_SECRET = "sk_test_domestiq"
    PLATFORM_FEE_RATE = "0.1"
    PLATFORM_FEE_MIN = None
    PLATFORM_FEE_MAX = None
    VAPID_PUBLIC_KEY = ""
    VAPID_PRIVATE_KEY = ""


config_by_env = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
