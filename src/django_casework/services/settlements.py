"""Settlement services: one SettlementRecord per case, plus reporting."""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db import transaction

from ..conf import default_commission_rate
from ..exceptions import NotFoundError, ValidationError
from ..ledger import ZERO, SettlementSummary, compute_commission, compute_settlement, summarize
from ..models import SettlementRecord
from ..workflow import PaymentStatus, coerce_choice
from .cases import resolve_case

logger = logging.getLogger(__name__)


@transaction.atomic
def upsert_settlement(
    case,
    received,
    sold,
    operating_cost,
    commission_rate=None,
    commission=None,
    notes: Optional[str] = None,
) -> SettlementRecord:
    """
    Create or overwrite the settlement of a case with fresh derived values.

    The case row is locked for the duration, so concurrent upserts for the
    same case run one after the other instead of losing updates.

    Args:
        case: TravelCase or its reference number.
        received: Amount received from the customer.
        sold: Amount remitted for sales.
        operating_cost: Operating cost of the trip.
        commission_rate: Optional percentage used when commission is None.
            Falls back to CASEWORK_DEFAULT_COMMISSION_RATE.
        commission: Optional explicit commission amount (wins over the rate).
        notes: Optional free text; None keeps existing notes.

    Returns:
        The saved SettlementRecord.

    Raises:
        NotFoundError: If the case does not exist.
        ValidationError: For negative or non-numeric amounts, or amounts with
            more than two decimal places.
    """
    case = resolve_case(case, for_update=True)

    if commission is None and commission_rate is None:
        commission_rate = default_commission_rate()

    figures = compute_settlement(
        received=received,
        sold=sold,
        operating_cost=operating_cost,
        commission_rate=commission_rate,
        commission=commission,
    )

    record = SettlementRecord.objects.select_for_update().filter(case=case).first()
    created = record is None
    if created:
        record = SettlementRecord(case=case)

    record.apply_figures(figures)
    if notes is not None:
        record.notes = notes
    record.save()

    action = "created" if created else "updated"
    logger.info(
        f"Settlement {action}: {case.reference} sub_total={record.sub_total} "
        f"commission={record.commission} unpaid={record.unpaid}"
    )
    return record


def get_settlement(case) -> SettlementRecord:
    """Return the settlement of a case or raise NotFoundError."""
    case = resolve_case(case)
    record = SettlementRecord.objects.for_case(case)
    if record is None:
        raise NotFoundError('SettlementRecord', case.reference)
    return record


def _locked_settlement(case) -> SettlementRecord:
    case = resolve_case(case, for_update=True)
    record = SettlementRecord.objects.select_for_update().filter(case=case).first()
    if record is None:
        raise NotFoundError('SettlementRecord', case.reference)
    return record


@transaction.atomic
def update_payment_status(case, status: str) -> SettlementRecord:
    """Set the payment status of a case's settlement."""
    status = coerce_choice(PaymentStatus, status, 'payment status')
    record = _locked_settlement(case)

    from_status = record.payment_status
    record.payment_status = status
    record.save(update_fields=['payment_status', 'updated_at'])

    logger.info(f"Settlement payment status: {record.case.reference} {from_status} -> {status}")
    return record


@transaction.atomic
def apply_commission_rate(case, commission_rate) -> SettlementRecord:
    """Recompute commission (and unpaid) from the stored subtotal and a percentage."""
    record = _locked_settlement(case)

    record.commission = compute_commission(record.sub_total, commission_rate)
    record.commission_rate = Decimal(str(commission_rate))
    record.save(update_fields=['commission', 'commission_rate', 'updated_at'])

    logger.info(
        f"Commission applied: {record.case.reference} rate={commission_rate}% "
        f"commission={record.commission}"
    )
    return record


@dataclass(frozen=True)
class SettlementReport:
    """summarize() totals plus breakdowns used by the back-office dashboard."""

    summary: SettlementSummary
    sub_total_by_payment_status: dict = field(default_factory=dict)
    outstanding_unpaid: Decimal = ZERO
    start: Optional[date] = None
    end: Optional[date] = None


def settlement_summary(start: Optional[date] = None, end: Optional[date] = None) -> SettlementReport:
    """
    Summarize all settlements, or those recorded within [start, end].

    Both bounds must be given together.
    """
    if (start is None) != (end is None):
        raise ValidationError("start and end must be given together")
    if start is not None and end < start:
        raise ValidationError(f"end {end} is before start {start}")

    qs = SettlementRecord.objects.all()
    if start is not None:
        qs = qs.recorded_between(start, end)
    records = list(qs)

    by_status = {str(status): ZERO for status in PaymentStatus.values}
    outstanding = ZERO
    for record in records:
        by_status[record.payment_status] += record.sub_total
        if record.payment_status in (PaymentStatus.PENDING, PaymentStatus.PARTIAL):
            outstanding += record.unpaid

    return SettlementReport(
        summary=summarize(records),
        sub_total_by_payment_status=by_status,
        outstanding_unpaid=outstanding,
        start=start,
        end=end,
    )


def monthly_settlement(year: int, month: int) -> SettlementReport:
    """settlement_summary() for one calendar month."""
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be 1-12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return settlement_summary(date(year, month, 1), date(year, month, last_day))
