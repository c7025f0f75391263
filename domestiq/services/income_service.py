"""Worker income summaries and verifiable monthly statements.

A statement's ``verification_hash`` is the SHA-256 of its figures serialised
as canonical JSON, so a third party handed the figures can recompute it.
"""

import hashlib
import json
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app

from domestiq.errors import AppError
from domestiq.extensions import db
from domestiq.lifecycle import TransactionStatus
from domestiq.models import Booking, IncomeStatement, Transaction
from domestiq.services.consent_service import ConsentService

CENT = Decimal("0.01")
PERIOD_DAYS = {"week": 7, "month": 30, "year": 365}
RECENT_TRANSACTIONS = 50
RECENT_STATEMENTS = 12


def _money(value):
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_month(value):
    raw = (value or "").strip() if isinstance(value, str) else ""
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            return datetime.strptime(raw, fmt).date().replace(day=1)
        except ValueError:
            continue
    raise AppError("month must be YYYY-MM or YYYY-MM-DD.", 400)


def _month_bounds(month_start):
    if month_start.month == 12:
        next_month = date(month_start.year + 1, 1, 1)
    else:
        next_month = date(month_start.year, month_start.month + 1, 1)
    return month_start, next_month - timedelta(days=1), next_month


class IncomeService:
    @staticmethod
    def _completed(worker_id):
        return Transaction.query.filter(
            Transaction.worker_id == worker_id,
            Transaction.status == TransactionStatus.COMPLETED.value,
        )

    @staticmethod
    def summary(worker_id, period="all"):
        period = (period or "all").strip().lower()
        if period != "all" and period not in PERIOD_DAYS:
            raise AppError("period must be one of all, week, month, year.", 400)

        query = IncomeService._completed(worker_id)
        if period in PERIOD_DAYS:
            since = datetime.now(timezone.utc) - timedelta(days=PERIOD_DAYS[period])
            query = query.filter(Transaction.paid_at >= since)

        transactions = query.order_by(Transaction.paid_at.desc(), Transaction.id.desc()).all()
        total = sum((_money(tx.worker_amount) for tx in transactions), Decimal("0"))
        count = len(transactions)
        average = (total / count).quantize(CENT, rounding=ROUND_HALF_UP) if count else Decimal("0")

        statements = (
            IncomeStatement.query.filter_by(worker_id=worker_id)
            .order_by(IncomeStatement.period_start.desc())
            .limit(RECENT_STATEMENTS)
            .all()
        )
        return {
            "period": period,
            "summary": {
                "total_earnings": float(total),
                "total_bookings": count,
                "avg_booking_value": float(average),
                "currency": current_app.config["CURRENCY"],
            },
            "transactions": [tx.to_dict() for tx in transactions[:RECENT_TRANSACTIONS]],
            "statements": [statement.to_dict() for statement in statements],
        }

    @staticmethod
    def compute_hash(statement):
        figures = {
            "worker_id": statement.worker_id,
            "period_start": statement.period_start.isoformat(),
            "period_end": statement.period_end.isoformat(),
            "total_earnings": str(_money(statement.total_earnings)),
            "total_bookings": int(statement.total_bookings),
            "avg_booking_value": str(_money(statement.avg_booking_value)),
            "services_breakdown": statement.services_breakdown or {},
        }
        canonical = json.dumps(figures, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @staticmethod
    def generate_statement(worker_id, month):
        period_start, period_end, next_month = _month_bounds(parse_month(month))
        window_start = datetime.combine(period_start, time.min, tzinfo=timezone.utc)
        window_end = datetime.combine(next_month, time.min, tzinfo=timezone.utc)

        rows = (
            IncomeService._completed(worker_id)
            .join(Booking, Booking.id == Transaction.booking_id)
            .filter(Transaction.paid_at >= window_start, Transaction.paid_at < window_end)
            .with_entities(Transaction.worker_amount, Booking.service_category)
            .all()
        )

        total = Decimal("0")
        breakdown = {}
        for amount, category in rows:
            amount = _money(amount)
            total += amount
            entry = breakdown.setdefault(category or "general", {"count": 0, "total": "0.00"})
            entry["count"] += 1
            entry["total"] = str(_money(Decimal(entry["total"]) + amount))
        count = len(rows)
        average = (total / count).quantize(CENT, rounding=ROUND_HALF_UP) if count else Decimal("0.00")

        statement = IncomeStatement.query.filter_by(worker_id=worker_id, period_start=period_start).first()
        if statement is None:
            statement = IncomeStatement(worker_id=worker_id, period_start=period_start)
            db.session.add(statement)
        statement.period_end = period_end
        statement.total_earnings = total
        statement.total_bookings = count
        statement.avg_booking_value = average
        statement.services_breakdown = breakdown
        statement.generated_at = datetime.now(timezone.utc)
        statement.verification_hash = IncomeService.compute_hash(statement)
        db.session.commit()
        return statement

    @staticmethod
    def get_statement(worker_id, statement_id):
        statement = IncomeStatement.query.filter_by(id=statement_id, worker_id=worker_id).first()
        if not statement:
            raise AppError("Statement not found.", 404)
        return statement

    @staticmethod
    def verify_statement(statement):
        return IncomeService.compute_hash(statement) == statement.verification_hash

    @staticmethod
    def share_statement(worker_id, statement_id):
        statement = IncomeService.get_statement(worker_id, statement_id)
        if not ConsentService.has_active(worker_id, "income_data_sharing"):
            raise AppError("Active income_data_sharing consent is required to share statements.", 403)
        statement.is_shared = True
        db.session.commit()
        return statement
