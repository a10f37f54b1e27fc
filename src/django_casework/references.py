"""Case reference numbers of the form PREFIX-YYYYMMDD-NNN.

generate_reference() is the pure rule: scan the references already issued
for the day, take the highest trailing serial and add one.

issue_reference() wraps it for concurrent use. It locks the day's
DailyReferenceCounter row with select_for_update(), so two requests opening
cases on the same day queue up instead of computing the same serial. Call
it inside the transaction that saves the case so the lock is held until
the case row is committed.
"""

import re
from datetime import date
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone

from .conf import reference_max_daily, reference_prefix
from .exceptions import CapacityExceededError, ValidationError

SERIAL_WIDTH = 3

REFERENCE_RE = re.compile(r'^(?P<prefix>[A-Za-z0-9]+)-(?P<day>\d{8})-(?P<serial>\d{3,})$')


def day_prefix(today: date, prefix: Optional[str] = None) -> str:
    """Return 'PREFIX-YYYYMMDD' for the given day."""
    prefix = prefix if prefix is not None else reference_prefix()
    return f"{prefix}-{today.strftime('%Y%m%d')}"


def format_reference(today: date, serial: int, prefix: Optional[str] = None) -> str:
    return f"{day_prefix(today, prefix)}-{str(serial).zfill(SERIAL_WIDTH)}"


def parse_serial(reference: str, for_day_prefix: str) -> Optional[int]:
    """
    Return the trailing serial of reference if it belongs to for_day_prefix.

    References from other days, other prefixes, or with a malformed tail
    return None and are ignored by the scan.
    """
    head = f"{for_day_prefix}-"
    if not reference.startswith(head):
        return None
    tail = reference[len(head):]
    if not tail.isdigit():
        return None
    return int(tail)


def is_valid_reference(reference: str) -> bool:
    return bool(REFERENCE_RE.match(reference or ''))


def generate_reference(
    today: date,
    issued: Iterable[str],
    prefix: Optional[str] = None,
    last_issued: int = 0,
    capacity: Optional[int] = None,
) -> str:
    """
    Compute the next reference for today from the set already issued.

    Args:
        today: Calendar day embedded in the reference.
        issued: Reference numbers already handed out (any day).
        prefix: Reference prefix (defaults to CASEWORK_REFERENCE_PREFIX).
        last_issued: Floor for the serial, e.g. from a persisted counter.
        capacity: Highest allowed serial (defaults to CASEWORK_REFERENCE_MAX_DAILY).

    Returns:
        The next reference, e.g. "GF-20260314-001".

    Raises:
        CapacityExceededError: If the next serial would exceed capacity.
    """
    dp = day_prefix(today, prefix)
    capacity = capacity if capacity is not None else reference_max_daily()

    highest = last_issued
    for reference in issued:
        serial = parse_serial(reference, dp)
        if serial is not None and serial > highest:
            highest = serial

    next_serial = highest + 1
    if next_serial > capacity:
        raise CapacityExceededError(dp, capacity)

    return format_reference(today, next_serial, prefix)


def issue_reference(today: Optional[date] = None) -> str:
    """
    Reserve the next reference number for today.

    Serialized per day through DailyReferenceCounter. The counter only moves
    forward, so a reference is never handed out twice even if a case that
    used it is later deleted.

    Returns:
        The reserved reference string.

    Raises:
        CapacityExceededError: If the daily capacity is exhausted.
    """
    from .models import DailyReferenceCounter, TravelCase

    today = today or timezone.localdate()
    if not isinstance(today, date):
        raise ValidationError(f"today must be a date, got {today!r}")

    prefix = reference_prefix()
    dp = day_prefix(today, prefix)

    with transaction.atomic():
        counter, _ = DailyReferenceCounter.objects.get_or_create(prefix=prefix, day=today)
        counter = DailyReferenceCounter.objects.select_for_update().get(pk=counter.pk)

        issued = TravelCase.objects.filter(
            reference__startswith=f"{dp}-"
        ).values_list('reference', flat=True)

        reference = generate_reference(
            today, issued, prefix=prefix, last_issued=counter.last_serial,
        )

        counter.last_serial = parse_serial(reference, dp)
        counter.save(update_fields=['last_serial', 'updated_at'])

    return reference
