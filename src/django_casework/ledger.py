"""Settlement arithmetic.

Pure functions over Decimal. Every derived amount is rounded half-up to two
places at the step that produces it; nothing is re-rounded afterwards.

Usage:
    from django_casework.ledger import compute_settlement, summarize

    figures = compute_settlement(
        received=Decimal("100000"),
        sold=Decimal("80000"),
        operating_cost=Decimal("10000"),
        commission_rate=Decimal("10"),
    )
    figures.sub_total   # Decimal("10000.00")
    figures.commission  # Decimal("1000.00")
    figures.unpaid      # Decimal("9000.00")
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from .exceptions import ValidationError

TWO_PLACES = Decimal('0.01')
RATIO_PLACES = Decimal('0.0001')
ZERO = Decimal('0.00')

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, label: str = 'amount') -> Decimal:
    """Normalize a numeric input to Decimal, rejecting garbage and non-finite values."""
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{label} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValidationError(f"{label} must be finite, got {value!r}")
    return result


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _non_negative(value: Number, label: str) -> Decimal:
    amount = to_decimal(value, label)
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative, got {amount}")
    return amount


def _money(value: Number, label: str) -> Decimal:
    """A non-negative amount with at most two decimal places, unrounded."""
    amount = _non_negative(value, label)
    if amount.as_tuple().exponent < -2:
        raise ValidationError(f"{label} must have at most two decimal places, got {amount}")
    return amount


@dataclass(frozen=True)
class SettlementFigures:
    """Inputs and derived amounts of one settlement, at most two decimal places each."""

    received: Decimal
    sold: Decimal
    operating_cost: Decimal
    sub_total: Decimal
    commission: Decimal
    unpaid: Decimal
    commission_rate: Optional[Decimal] = None


def derive_totals(
    received: Number,
    sold: Number,
    operating_cost: Number,
    commission: Number,
) -> tuple[Decimal, Decimal]:
    """Return (sub_total, unpaid) for already-validated stored amounts."""
    sub_total = round2(
        to_decimal(received, 'received')
        - to_decimal(sold, 'sold')
        - to_decimal(operating_cost, 'operating_cost')
    )
    unpaid = round2(sub_total - to_decimal(commission, 'commission'))
    return sub_total, unpaid


def compute_commission(sub_total: Decimal, commission_rate: Number) -> Decimal:
    """Commission for a percentage rate: round2(sub_total * rate / 100)."""
    rate = _non_negative(commission_rate, 'commission_rate')
    if rate > 100:
        raise ValidationError(f"commission_rate must be a percentage (0-100), got {rate}")
    return round2(sub_total * rate / Decimal('100'))


def compute_settlement(
    received: Number,
    sold: Number,
    operating_cost: Number,
    commission_rate: Optional[Number] = None,
    commission: Optional[Number] = None,
) -> SettlementFigures:
    """
    Derive subtotal, commission and unpaid amount.

    sub_total = received - sold - operating_cost
    commission = explicit amount if given, else sub_total * rate / 100 if a
                 rate is given, else zero
    unpaid = sub_total - commission

    Input amounts and an explicit commission are used as given; they may
    carry at most two decimal places, so the stored inputs always reproduce
    the stored subtotal exactly.

    Raises:
        ValidationError: If any amount is negative, not a number or has more
            than two decimal places, or the rate is outside 0-100.
    """
    received = _money(received, 'received')
    sold = _money(sold, 'sold')
    operating_cost = _money(operating_cost, 'operating_cost')

    sub_total = round2(received - sold - operating_cost)

    rate = None
    if commission is not None:
        commission_amount = _money(commission, 'commission')
    elif commission_rate is not None:
        rate = to_decimal(commission_rate, 'commission_rate')
        commission_amount = compute_commission(sub_total, rate)
    else:
        commission_amount = ZERO

    unpaid = round2(sub_total - commission_amount)

    return SettlementFigures(
        received=received,
        sold=sold,
        operating_cost=operating_cost,
        sub_total=sub_total,
        commission=commission_amount,
        unpaid=unpaid,
        commission_rate=rate,
    )


def figures_drift(record) -> dict:
    """
    Compare stored derived values against a fresh computation.

    Returns {field: {"stored": x, "expected": y}} for every mismatch
    (empty = consistent).
    """
    sub_total, unpaid = derive_totals(
        record.received, record.sold, record.operating_cost, record.commission,
    )
    expected = {'sub_total': sub_total, 'unpaid': unpaid}
    drift = {}
    for field, wanted in expected.items():
        stored = getattr(record, field)
        if stored != wanted:
            drift[field] = {"stored": stored, "expected": wanted}
    return drift


@dataclass(frozen=True)
class SettlementSummary:
    """Aggregate totals over a set of settlement records."""

    count: int
    total_received: Decimal
    total_sold: Decimal
    total_operating_cost: Decimal
    total_sub_total: Decimal
    total_commission: Decimal
    total_unpaid: Decimal
    profit_margin: Decimal

    @property
    def profit_margin_percent(self) -> Decimal:
        return (self.profit_margin * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def summarize(records: Iterable) -> SettlementSummary:
    """
    Sum every settlement field across records.

    profit_margin = total_sub_total / total_received, rounded half-up to four
    places, and zero when nothing was received.
    """
    records = list(records)

    def total(field: str) -> Decimal:
        return sum((getattr(r, field) for r in records), ZERO)

    total_received = total('received')
    total_sub_total = total('sub_total')

    if total_received == 0:
        margin = Decimal('0.0000')
    else:
        margin = (total_sub_total / total_received).quantize(
            RATIO_PLACES, rounding=ROUND_HALF_UP
        )

    return SettlementSummary(
        count=len(records),
        total_received=total_received,
        total_sold=total('sold'),
        total_operating_cost=total('operating_cost'),
        total_sub_total=total_sub_total,
        total_commission=total('commission'),
        total_unpaid=total('unpaid'),
        profit_margin=margin,
    )
