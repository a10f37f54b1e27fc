"""Tests for case reference generation."""
from datetime import date

import pytest

from django_casework.exceptions import CapacityExceededError, ValidationError
from django_casework.models import DailyReferenceCounter, TravelCase
from django_casework.references import (
    day_prefix,
    format_reference,
    generate_reference,
    is_valid_reference,
    issue_reference,
    parse_serial,
)

DAY = date(2026, 3, 14)


class TestGenerateReference:
    """The pure next-serial rule."""

    def test_first_of_the_day(self):
        assert generate_reference(DAY, []) == "GF-20260314-001"

    def test_takes_highest_plus_one(self):
        issued = ["GF-20260314-001", "GF-20260314-007", "GF-20260314-003"]
        assert generate_reference(DAY, issued) == "GF-20260314-008"

    def test_ignores_other_days(self):
        issued = ["GF-20260313-045", "GF-20260315-002"]
        assert generate_reference(DAY, issued) == "GF-20260314-001"

    def test_ignores_malformed_tails(self):
        issued = ["GF-20260314-abc", "GF-20260314-002"]
        assert generate_reference(DAY, issued) == "GF-20260314-003"

    def test_last_issued_is_a_floor(self):
        assert generate_reference(DAY, ["GF-20260314-002"], last_issued=5) == "GF-20260314-006"

    def test_capacity_exceeded(self):
        with pytest.raises(CapacityExceededError) as exc_info:
            generate_reference(DAY, ["GF-20260314-999"])
        assert exc_info.value.day_prefix == "GF-20260314"
        assert exc_info.value.capacity == 999

    def test_custom_prefix(self):
        assert generate_reference(DAY, [], prefix="TR") == "TR-20260314-001"


class TestReferenceHelpers:

    def test_day_prefix(self):
        assert day_prefix(DAY) == "GF-20260314"

    def test_format_pads_to_three_digits(self):
        assert format_reference(DAY, 42) == "GF-20260314-042"

    def test_parse_serial_other_day(self):
        assert parse_serial("GF-20260313-010", "GF-20260314") is None

    def test_parse_serial(self):
        assert parse_serial("GF-20260314-010", "GF-20260314") == 10

    def test_is_valid_reference(self):
        assert is_valid_reference("GF-20260314-001")
        assert not is_valid_reference("GF-2026-001")
        assert not is_valid_reference("")


@pytest.mark.django_db
class TestIssueReference:
    """issue_reference() against the database."""

    def _make_case(self, reference):
        return TravelCase.objects.create(
            reference=reference,
            file_code="F1",
            departure_date=DAY,
            return_date=DAY,
        )

    def test_sequential_issue(self):
        issued = []
        for _ in range(3):
            reference = issue_reference(DAY)
            self._make_case(reference)
            issued.append(reference)
        assert issued == ["GF-20260314-001", "GF-20260314-002", "GF-20260314-003"]

    def test_counter_never_reuses_a_serial(self):
        first = issue_reference(DAY)
        # No case saved with the first reference
        second = issue_reference(DAY)
        assert first == "GF-20260314-001"
        assert second == "GF-20260314-002"

    def test_counter_row_per_day(self):
        issue_reference(DAY)
        issue_reference(date(2026, 3, 15))
        assert DailyReferenceCounter.objects.count() == 2
        counter = DailyReferenceCounter.objects.get(prefix="GF", day=DAY)
        assert counter.last_serial == 1

    def test_existing_cases_are_scanned(self):
        self._make_case("GF-20260314-010")
        assert issue_reference(DAY) == "GF-20260314-011"

    def test_capacity(self, settings):
        settings.CASEWORK_REFERENCE_MAX_DAILY = 2
        issue_reference(DAY)
        issue_reference(DAY)
        with pytest.raises(CapacityExceededError):
            issue_reference(DAY)

    def test_rejects_non_date(self):
        with pytest.raises(ValidationError):
            issue_reference("2026-03-14")
