from domestiq.services.auth_service import AuthService
from domestiq.services.booking_service import BookingService
from domestiq.services.consent_service import ConsentService
from domestiq.services.fee_service import FeeService
from domestiq.services.income_service import IncomeService
from domestiq.services.notification_service import NotificationService
from domestiq.services.payment_service import PaymentService
from domestiq.services.payout_service import PayoutService
from domestiq.services.platform_service import PlatformService
from domestiq.services.push_service import PushService
from domestiq.services.review_service import ReviewService
from domestiq.services.webhook_service import WebhookService

__all__ = [
    "AuthService",
    "BookingService",
    "ConsentService",
    "FeeService",
    "IncomeService",
    "NotificationService",
    "PaymentService",
    "PayoutService",
    "PlatformService",
    "PushService",
    "ReviewService",
    "WebhookService",
]
