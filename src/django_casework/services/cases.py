"""Case services: opening, editing, status changes and deletion of travel cases."""

import logging
from datetime import date
from typing import Optional

from django.db import transaction

from ..exceptions import CaseInUseError, InvalidTransitionError, NotFoundError, ValidationError
from ..models import CaseDocument, GuideInstruction, SettlementRecord, TravelCase
from ..references import issue_reference
from ..workflow import CASE_TRANSITIONS, CaseStatus, allowed_transitions, coerce_choice

logger = logging.getLogger(__name__)


def resolve_case(case, for_update: bool = False) -> TravelCase:
    """
    Accept a TravelCase or a reference string and return the TravelCase.

    Args:
        case: TravelCase instance or reference number.
        for_update: Lock the row with select_for_update() (caller must be
            inside a transaction).

    Raises:
        NotFoundError: If no such case exists.
    """
    qs = TravelCase.objects.all()
    if for_update:
        qs = qs.select_for_update()

    if isinstance(case, TravelCase):
        found = qs.filter(pk=case.pk).first()
        key = case.reference
    else:
        found = qs.by_reference(case)
        key = case

    if found is None:
        raise NotFoundError('Case', key)
    return found


def get_case(reference: str) -> TravelCase:
    """Return the case with this reference or raise NotFoundError."""
    return resolve_case(reference)


def _validate_case_fields(pax_count, departure_date, return_date):
    if isinstance(pax_count, bool) or not isinstance(pax_count, int) or pax_count < 1:
        raise ValidationError(f"pax_count must be a positive integer, got {pax_count!r}")
    if not isinstance(departure_date, date) or not isinstance(return_date, date):
        raise ValidationError("departure_date and return_date must be dates")
    if return_date < departure_date:
        raise ValidationError(
            f"return_date {return_date} is before departure_date {departure_date}"
        )


@transaction.atomic
def open_case(
    file_code: str,
    pax_count: int,
    departure_date: date,
    return_date: date,
    customer_name: str = '',
    remarks: str = '',
    created_by=None,
    today: Optional[date] = None,
) -> TravelCase:
    """
    Register a new booking under a freshly issued reference number.

    The reference is reserved and the case saved in the same transaction,
    so the day's counter lock is held until the case row is committed.

    Args:
        file_code: Internal file code of the booking.
        pax_count: Number of passengers (>= 1).
        departure_date: First day of travel.
        return_date: Last day of travel (>= departure_date).
        customer_name: Optional customer display name.
        remarks: Optional free text.
        created_by: Optional user opening the case.
        today: Day embedded in the reference (defaults to the local date).

    Returns:
        The saved TravelCase in status NEW.

    Raises:
        ValidationError: For a blank file code or invalid pax/dates.
        CapacityExceededError: If the day's reference sequence is exhausted.
    """
    if not file_code or not str(file_code).strip():
        raise ValidationError("file_code is required")
    _validate_case_fields(pax_count, departure_date, return_date)

    reference = issue_reference(today)

    case = TravelCase.objects.create(
        reference=reference,
        file_code=file_code,
        customer_name=customer_name,
        pax_count=pax_count,
        departure_date=departure_date,
        return_date=return_date,
        remarks=remarks,
        created_by=created_by,
    )

    logger.info(f"Case opened: {case.reference} (file {file_code}, pax {pax_count})")
    return case


@transaction.atomic
def update_case(
    reference: str,
    pax_count: Optional[int] = None,
    remarks: Optional[str] = None,
    customer_name: Optional[str] = None,
) -> TravelCase:
    """Update the editable fields of a case; None leaves a field unchanged."""
    case = resolve_case(reference, for_update=True)

    new_pax = pax_count if pax_count is not None else case.pax_count
    _validate_case_fields(new_pax, case.departure_date, case.return_date)

    case.pax_count = new_pax
    if remarks is not None:
        case.remarks = remarks
    if customer_name is not None:
        case.customer_name = customer_name
    case.save(update_fields=['pax_count', 'remarks', 'customer_name', 'updated_at'])

    logger.info(f"Case updated: {case.reference}")
    return case


@transaction.atomic
def change_case_status(reference: str, status: str) -> TravelCase:
    """
    Move a case along NEW -> IN_PROGRESS -> COMPLETED, or to CANCELLED.

    Raises:
        ValidationError: If status is not a case status.
        InvalidTransitionError: If the move is not allowed from the current status.
    """
    status = coerce_choice(CaseStatus, status, 'case status')
    case = resolve_case(reference, for_update=True)

    if status not in allowed_transitions(CASE_TRANSITIONS, case.status):
        raise InvalidTransitionError(case.status, status)

    from_status = case.status
    case.status = status
    case.save(update_fields=['status', 'updated_at'])

    logger.info(f"Case status changed: {case.reference} {from_status} -> {status}")
    return case


def cancel_case(reference: str) -> TravelCase:
    return change_case_status(reference, CaseStatus.CANCELLED)


@transaction.atomic
def delete_case(reference: str) -> None:
    """
    Remove a case that owns no artifacts.

    Raises:
        CaseInUseError: If any document, settlement or guide instruction exists.
    """
    case = resolve_case(reference, for_update=True)

    dependents = []
    if CaseDocument.objects.filter(case=case).exists():
        dependents.append('documents')
    if SettlementRecord.objects.filter(case=case).exists():
        dependents.append('settlement')
    if GuideInstruction.objects.filter(case=case).exists():
        dependents.append('guide instruction')
    if dependents:
        raise CaseInUseError(case.reference, dependents)

    case.delete()
    logger.info(f"Case deleted: {reference}")
