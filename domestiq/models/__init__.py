from domestiq.models.booking import Booking
from domestiq.models.consent_record import ConsentRecord
from domestiq.models.income_statement import IncomeStatement
from domestiq.models.notification import Notification
from domestiq.models.platform_setting import PlatformSetting
from domestiq.models.push_subscription import PushSubscription
from domestiq.models.review import Review
from domestiq.models.revenue_ledger import RevenueLedgerEntry
from domestiq.models.transaction import Transaction
from domestiq.models.user import User
from domestiq.models.worker_payout import WorkerPayout

__all__ = [
    "User",
    "Booking",
    "Transaction",
    "RevenueLedgerEntry",
    "WorkerPayout",
    "Notification",
    "PushSubscription",
    "ConsentRecord",
    "IncomeStatement",
    "PlatformSetting",
    "Review",
]
