from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple, Optional

from flask import current_app

from domestiq.services.platform_service import PlatformService

CENT = Decimal("0.01")


class FeeBreakdown(NamedTuple):
    worker_amount: Decimal
    platform_fee: Decimal
    total_amount: Decimal
    fee_percent: Decimal

    def to_dict(self):
        return {
            "worker_amount": float(self.worker_amount),
            "platform_fee": float(self.platform_fee),
            "total_amount": float(self.total_amount),
            "fee_percent": float(self.fee_percent),
        }


class FeeService:
    @staticmethod
    def calculate(
        worker_amount,
        fee_rate,
        minimum: Optional[Decimal] = None,
        maximum: Optional[Decimal] = None,
    ) -> FeeBreakdown:
        """Client pays the worker's full amount plus the platform fee on top.

        ``fee_rate`` is a fraction (``0.12`` for 12%). Callers reject
        non-positive amounts before getting here.
        """
        amount = Decimal(str(worker_amount)).quantize(CENT, rounding=ROUND_HALF_UP)
        rate = Decimal(str(fee_rate))
        fee = (amount * rate).quantize(CENT, rounding=ROUND_HALF_UP)
        if minimum is not None:
            fee = max(fee, Decimal(str(minimum)).quantize(CENT))
        if maximum is not None:
            fee = min(fee, Decimal(str(maximum)).quantize(CENT))
        return FeeBreakdown(
            worker_amount=amount,
            platform_fee=fee,
            total_amount=amount + fee,
            fee_percent=rate,
        )

    @staticmethod
    def current_rate():
        return PlatformService.get_decimal("platform_fee_rate", current_app.config["PLATFORM_FEE_RATE"])

    @staticmethod
    def breakdown_for(worker_amount) -> FeeBreakdown:
        config = current_app.config
        return FeeService.calculate(
            worker_amount,
            FeeService.current_rate(),
            minimum=PlatformService.get_decimal("platform_fee_min", config.get("PLATFORM_FEE_MIN")),
            maximum=PlatformService.get_decimal("platform_fee_max", config.get("PLATFORM_FEE_MAX")),
        )
