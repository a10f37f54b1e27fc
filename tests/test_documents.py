"""Tests for document workflow services."""
import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest

from django_casework.exceptions import (
    DuplicateDocumentError,
    ImmutableDocumentError,
    NotFoundError,
    ValidationError,
    WorkflowOrderError,
)
from django_casework.models import CaseDocument, DocumentTemplate, DocumentTransition
from django_casework.services import (
    approve_document,
    create_document,
    create_document_from_template,
    delete_document,
    documents_for_case,
    get_document,
    next_document_types,
    reject_document,
    render_template,
    submit_document,
    transition_status,
    update_content,
)

CORE = ["QUOTATION", "ALLOCATION", "INVOICE", "CONFIRMATION", "GUIDE_INSTRUCTION"]


@pytest.mark.django_db
class TestCreateDocument:
    """Test suite for create_document."""

    def test_creates_draft_version_one(self, case, user):
        document = create_document(
            case, "QUOTATION", title="Quote", content="3 nights", amount="1500000", created_by=user,
        )
        assert document.status == "DRAFT"
        assert document.version == 1
        assert document.workflow_position == 1
        assert document.amount == Decimal("1500000.00")
        assert document.created_by == user

    def test_accepts_reference_string(self, case):
        document = create_document(case.reference, "QUOTATION", title="Quote")
        assert document.case_id == case.pk

    def test_unknown_case(self, db):
        with pytest.raises(NotFoundError):
            create_document("GF-20990101-001", "QUOTATION", title="Quote")

    def test_unknown_type(self, case):
        with pytest.raises(ValidationError):
            create_document(case, "VISA", title="Visa")

    def test_blank_title(self, case):
        with pytest.raises(ValidationError):
            create_document(case, "QUOTATION", title="  ")

    def test_negative_amount(self, case):
        with pytest.raises(ValidationError):
            create_document(case, "QUOTATION", title="Quote", amount="-1")

    def test_duplicate_type_rejected(self, case):
        create_document(case, "QUOTATION", title="Quote")
        with pytest.raises(DuplicateDocumentError) as exc_info:
            create_document(case, "QUOTATION", title="Quote again")
        assert exc_info.value.reference == case.reference
        assert exc_info.value.document_type == "QUOTATION"
        assert CaseDocument.objects.filter(case=case).count() == 1

    def test_allocation_requires_quotation(self, case):
        with pytest.raises(WorkflowOrderError) as exc_info:
            create_document(case, "ALLOCATION", title="Allocation")
        assert exc_info.value.prerequisite == "QUOTATION"

    def test_allocation_requires_approved_quotation(self, case):
        create_document(case, "QUOTATION", title="Quote")
        with pytest.raises(WorkflowOrderError):
            create_document(case, "ALLOCATION", title="Allocation")

    def test_pending_quotation_is_not_enough(self, case):
        quote = create_document(case, "QUOTATION", title="Quote")
        submit_document(quote.pk)
        with pytest.raises(WorkflowOrderError):
            create_document(case, "ALLOCATION", title="Allocation")

    def test_allocation_after_approved_quotation(self, case, user):
        quote = create_document(case, "QUOTATION", title="Quote")
        approve_document(quote.pk, approver=user)
        allocation = create_document(case, "ALLOCATION", title="Allocation")
        assert allocation.workflow_position == 2

    def test_full_core_chain(self, case, approved_chain):
        documents = approved_chain(*CORE)
        assert [d.document_type for d in documents] == CORE
        assert all(d.status == "APPROVED" for d in documents)

    def test_supplementary_type_without_prerequisite(self, case):
        document = create_document(case, "HOTEL_OTHERS", title="Hotel")
        assert document.workflow_position == 6

    def test_unique_constraint_reported_as_duplicate(self, case):
        """A create that slips past the lookup still fails on the constraint."""
        create_document(case, "QUOTATION", title="Quote")
        with patch.object(CaseDocument.objects, "of_type", return_value=None):
            with pytest.raises(DuplicateDocumentError) as exc_info:
                create_document(case, "QUOTATION", title="Quote again")
        assert exc_info.value.document_type == "QUOTATION"
        assert CaseDocument.objects.filter(case=case).count() == 1


@pytest.mark.django_db
class TestUpdateContent:

    def test_bumps_version_once(self, case):
        document = create_document(case, "QUOTATION", title="Quote", content="v1")
        document = update_content(document.pk, title="Quote (rev)", content="v2", amount=10)
        assert document.version == 2
        assert document.title == "Quote (rev)"
        assert document.content == "v2"
        assert document.amount == Decimal("10.00")

    def test_each_edit_bumps_version(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        update_content(document.pk, content="a")
        document = update_content(document.pk, content="b")
        assert document.version == 3

    def test_rejected_document_can_be_edited(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        reject_document(document.pk, reason="price")
        document = update_content(document.pk, content="new price")
        assert document.version == 2
        assert document.status == "REJECTED"

    def test_no_fields_is_noop(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        document = update_content(document.pk)
        assert document.version == 1

    def test_approved_document_cannot_be_edited(self, case, user):
        document = create_document(case, "QUOTATION", title="Quote", content="final")
        approve_document(document.pk, approver=user)
        with pytest.raises(ImmutableDocumentError):
            update_content(document.pk, content="changed")
        document.refresh_from_db()
        assert document.content == "final"
        assert document.version == 1

    def test_unknown_document(self, db):
        with pytest.raises(NotFoundError):
            update_content(uuid.uuid4(), content="x")

    def test_malformed_id(self, db):
        with pytest.raises(NotFoundError):
            get_document("not-a-uuid")


@pytest.mark.django_db
class TestTransitions:

    def test_submit_then_approve(self, case, user):
        document = create_document(case, "QUOTATION", title="Quote")
        submit_document(document.pk, actor=user)
        document = approve_document(document.pk, approver=user)
        assert document.status == "APPROVED"
        assert document.approved_by == "agent@example.com"
        assert document.approved_at is not None

    def test_approver_string(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        document = approve_document(document.pk, approver="manager")
        assert document.approved_by == "manager"

    @pytest.mark.parametrize("approver", [None, ""])
    def test_approval_requires_approver(self, case, approver):
        document = create_document(case, "QUOTATION", title="Quote")
        with pytest.raises(ValidationError):
            transition_status(document.pk, "APPROVED", approver=approver)
        document.refresh_from_db()
        assert document.status == "DRAFT"
        assert document.approved_at is None
        assert not document.transitions.exists()

    def test_reject_and_resubmit(self, case, user):
        document = create_document(case, "QUOTATION", title="Quote")
        submit_document(document.pk)
        reject_document(document.pk, actor=user, reason="wrong hotel")
        document = submit_document(document.pk)
        assert document.status == "PENDING_APPROVAL"
        assert document.approved_at is None

    def test_approved_is_terminal(self, case, user):
        document = create_document(case, "QUOTATION", title="Quote")
        approve_document(document.pk, approver=user)
        for status in ("DRAFT", "PENDING_APPROVAL", "REJECTED"):
            with pytest.raises(ImmutableDocumentError):
                transition_status(document.pk, status)

    def test_approval_recorded_once(self, case, user):
        document = create_document(case, "QUOTATION", title="Quote")
        first = approve_document(document.pk, approver=user)
        with pytest.raises(ImmutableDocumentError):
            approve_document(document.pk, approver="someone-else")
        document.refresh_from_db()
        assert document.approved_by == first.approved_by
        assert document.approved_at == first.approved_at

    def test_same_status_is_noop(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        transition_status(document.pk, "DRAFT")
        assert DocumentTransition.objects.filter(document=document).count() == 0

    def test_unknown_status(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        with pytest.raises(ValidationError):
            transition_status(document.pk, "ARCHIVED")

    def test_audit_trail(self, case, user):
        document = create_document(case, "QUOTATION", title="Quote")
        submit_document(document.pk, actor=user)
        reject_document(document.pk, actor=user, reason="price")
        transitions = list(document.transitions.order_by("created_at"))
        assert [(t.from_status, t.to_status) for t in transitions] == [
            ("DRAFT", "PENDING_APPROVAL"),
            ("PENDING_APPROVAL", "REJECTED"),
        ]
        assert transitions[1].metadata == {"reason": "price"}
        assert transitions[1].actor == "agent@example.com"


@pytest.mark.django_db
class TestDeleteDocument:

    def test_delete_draft(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        delete_document(document.pk)
        assert not CaseDocument.objects.filter(pk=document.pk).exists()

    def test_delete_approved_refused(self, case, user):
        document = create_document(case, "QUOTATION", title="Quote")
        approve_document(document.pk, approver=user)
        with pytest.raises(ImmutableDocumentError):
            delete_document(document.pk)
        assert CaseDocument.objects.filter(pk=document.pk).exists()

    def test_type_can_be_recreated_after_delete(self, case):
        document = create_document(case, "QUOTATION", title="Quote")
        delete_document(document.pk)
        again = create_document(case, "QUOTATION", title="Quote")
        assert again.pk != document.pk


@pytest.mark.django_db
class TestWorkflowQueries:

    def test_documents_in_workflow_order(self, case, approved_chain):
        create_document(case, "COMMISSION", title="Commission")
        create_document(case, "HOTEL_OTHERS", title="Hotel")
        approved_chain("QUOTATION", "ALLOCATION")
        types = [d.document_type for d in documents_for_case(case)]
        assert types == ["QUOTATION", "ALLOCATION", "HOTEL_OTHERS", "COMMISSION"]

    def test_empty_case_has_no_documents(self, case):
        assert documents_for_case(case) == []

    def test_next_types_for_new_case(self, case):
        assert next_document_types(case) == [
            "QUOTATION", "HOTEL_OTHERS", "FINAL", "COMMISSION",
            "TOUR_SCHEDULE_APPROVAL", "TOUR_CONFIRMATION_APPROVAL",
        ]

    def test_next_types_after_approved_quotation(self, case, approved_chain):
        approved_chain("QUOTATION")
        next_types = next_document_types(case)
        assert "QUOTATION" not in next_types
        assert next_types[0] == "ALLOCATION"
        assert "INVOICE" not in next_types


@pytest.mark.django_db
class TestTemplates:

    def test_render_template(self):
        text = "Dear {{ customer_name }}, ref {{reference}} {{unknown}}"
        rendered = render_template(text, {"customer_name": "Kim", "reference": "GF-1"})
        assert rendered == "Dear Kim, ref GF-1 {{unknown}}"

    def test_create_from_template(self, case):
        DocumentTemplate.objects.create(
            name="Standard quotation",
            document_type="QUOTATION",
            template_content="Quotation for {{customer_name}} ({{pax_count}} pax) {{note}}",
        )
        document = create_document_from_template(
            case, "Standard quotation", variables={"note": "incl. breakfast"},
        )
        assert document.document_type == "QUOTATION"
        assert document.title == "Standard quotation"
        assert document.content == "Quotation for Kim Minji (2 pax) incl. breakfast"

    def test_template_goes_through_order_rules(self, case):
        template = DocumentTemplate.objects.create(
            name="Invoice", document_type="INVOICE", template_content="Invoice {{reference}}",
        )
        with pytest.raises(WorkflowOrderError):
            create_document_from_template(case, template)

    def test_unknown_template(self, case):
        with pytest.raises(NotFoundError):
            create_document_from_template(case, "missing")

    def test_inactive_template(self, case):
        DocumentTemplate.objects.create(
            name="Old", document_type="QUOTATION", template_content="x", is_active=False,
        )
        with pytest.raises(ValidationError):
            create_document_from_template(case, "Old")
