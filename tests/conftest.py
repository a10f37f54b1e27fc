# tests/conftest.py
"""
Shared fixtures for django-casework tests.
"""
from datetime import date
from decimal import Decimal

import pytest

from django_casework.services import approve_document, create_document, open_case


TODAY = date(2026, 3, 14)


@pytest.fixture
def user(db, django_user_model):
    """Create a test user."""
    return django_user_model.objects.create_user(
        username="agent", email="agent@example.com", password="test",
    )


@pytest.fixture
def case(db, user):
    """Open a case on a fixed day so its reference is predictable."""
    return open_case(
        "FIT-0001",
        pax_count=2,
        departure_date=date(2026, 4, 1),
        return_date=date(2026, 4, 5),
        customer_name="Kim Minji",
        created_by=user,
        today=TODAY,
    )


@pytest.fixture
def approved_chain(case, user):
    """Return a helper that creates and approves core documents in order."""

    def _approve_through(*document_types):
        documents = []
        for document_type in document_types:
            document = create_document(
                case, document_type, title=document_type.title(), amount=Decimal("0"),
            )
            documents.append(approve_document(document.pk, approver=user))
        return documents

    return _approve_through
