"""Read-only queries for back-office listings.

Uses select_related to avoid N+1 queries when listing artifacts with their case.
"""

from datetime import date
from typing import Optional

from .exceptions import ValidationError
from .models import CaseDocument, GuideInstruction, SettlementRecord, TravelCase
from .workflow import CaseStatus, GuideStatus, PaymentStatus, coerce_choice


def search_cases(
    reference: Optional[str] = None,
    customer_name: Optional[str] = None,
    status: Optional[str] = None,
) -> list[TravelCase]:
    """Cases matching a partial reference, partial customer name and/or status."""
    if status:
        status = coerce_choice(CaseStatus, status, 'case status')
    return list(
        TravelCase.objects.search(
            reference=reference, customer_name=customer_name, status=status,
        )
    )


def cases_departing_between(start: date, end: date) -> list[TravelCase]:
    if end < start:
        raise ValidationError(f"end {end} is before start {start}")
    return list(TravelCase.objects.departing_between(start, end).order_by('departure_date'))


def pending_approvals() -> list[CaseDocument]:
    """Documents waiting for approval, oldest first."""
    return list(
        CaseDocument.objects.pending_approval()
        .select_related('case')
        .order_by('updated_at')
    )


def settlements_between(start: date, end: date) -> list[SettlementRecord]:
    """Settlement records created on a date within [start, end]."""
    if end < start:
        raise ValidationError(f"end {end} is before start {start}")
    return list(SettlementRecord.objects.recorded_between(start, end).select_related('case'))


def settlements_with_payment_status(status: str) -> list[SettlementRecord]:
    status = coerce_choice(PaymentStatus, status, 'payment status')
    return list(SettlementRecord.objects.with_payment_status(status).select_related('case'))


def guide_instructions_for(guide_name: str) -> list[GuideInstruction]:
    return list(GuideInstruction.objects.for_guide(guide_name).select_related('case'))


def guide_instructions_with_status(status: str) -> list[GuideInstruction]:
    status = coerce_choice(GuideStatus, status, 'guide instruction status')
    return list(GuideInstruction.objects.with_status(status).select_related('case'))
