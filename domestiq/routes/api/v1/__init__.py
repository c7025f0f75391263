from flask import Blueprint

from domestiq.extensions import csrf
from domestiq.routes.api.v1.auth import api_auth_bp
from domestiq.routes.api.v1.bookings import api_booking_bp
from domestiq.routes.api.v1.consent import api_consent_bp
from domestiq.routes.api.v1.income import api_income_bp
from domestiq.routes.api.v1.notifications import api_notification_bp
from domestiq.routes.api.v1.payments import api_payment_bp
from domestiq.routes.api.v1.reviews import api_review_bp
from domestiq.routes.api.v1.settings import api_settings_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_auth_bp, url_prefix="/auth")
api_v1_bp.register_blueprint(api_booking_bp, url_prefix="/bookings")
api_v1_bp.register_blueprint(api_payment_bp, url_prefix="/payments")
api_v1_bp.register_blueprint(api_notification_bp, url_prefix="/notifications")
api_v1_bp.register_blueprint(api_consent_bp, url_prefix="/consent")
api_v1_bp.register_blueprint(api_income_bp, url_prefix="/income")
api_v1_bp.register_blueprint(api_review_bp, url_prefix="/reviews")
api_v1_bp.register_blueprint(api_settings_bp, url_prefix="/settings")

csrf.exempt(api_v1_bp)
