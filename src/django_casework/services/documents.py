"""Document workflow services.

Provides:
- create_document: create a case document in DRAFT, enforcing uniqueness and order
- update_content: edit title/content/amount of a non-approved document
- transition_status: move a document between statuses (APPROVED is terminal)
- delete_document: remove a non-approved document
- documents_for_case / next_document_types: workflow-ordered queries
- render_template / create_document_from_template: template-based creation
"""

import logging
import re
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from ..exceptions import (
    DuplicateDocumentError,
    ImmutableDocumentError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    WorkflowOrderError,
)
from ..ledger import round2, to_decimal
from ..models import CaseDocument, DocumentTemplate, DocumentTransition
from ..workflow import (
    DOCUMENT_TRANSITIONS,
    WORKFLOW_STEPS,
    DocumentStatus,
    allowed_transitions,
    coerce_choice,
    get_step,
    missing_prerequisite,
)
from .cases import resolve_case

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r'\{\{\s*(\w+)\s*\}\}')


def actor_display(actor) -> str:
    """Get display string for an approver/actor (user, string or None)."""
    if not actor:
        return ''
    if hasattr(actor, 'email') and actor.email:
        return actor.email
    if hasattr(actor, 'username') and actor.username:
        return actor.username
    return str(actor)


def _clean_amount(amount):
    if amount is None:
        return None
    value = to_decimal(amount, 'amount')
    if value < 0:
        raise ValidationError(f"amount cannot be negative, got {value}")
    return round2(value)


def get_document(document_id) -> CaseDocument:
    """Return a document by id or raise NotFoundError."""
    return _get_document(document_id)


def _get_document(document_id, for_update: bool = False) -> CaseDocument:
    qs = CaseDocument.objects.select_related('case')
    if for_update:
        qs = qs.select_for_update()
    try:
        document = qs.filter(pk=document_id).first()
    except (DjangoValidationError, ValueError):
        document = None
    if document is None:
        raise NotFoundError('Document', document_id)
    return document


@transaction.atomic
def create_document(
    case,
    document_type: str,
    title: str,
    content: str = '',
    amount=None,
    created_by=None,
) -> CaseDocument:
    """
    Create a workflow document for a case in DRAFT, version 1.

    Creating the document at workflow position k requires the document at
    position k-1 to exist and be APPROVED. Supplementary types (position > 5)
    have no precondition.

    Args:
        case: TravelCase or its reference number.
        document_type: One of DocumentType.
        title: Document title.
        content: Free-text body.
        amount: Optional monetary amount (>= 0).
        created_by: Optional user creating the document.

    Returns:
        The created CaseDocument.

    Raises:
        NotFoundError: If the case does not exist.
        ValidationError: For an unknown type, blank title or bad amount.
        DuplicateDocumentError: If the case already has a document of this type.
        WorkflowOrderError: If the prerequisite is missing or not approved.
    """
    case = resolve_case(case)
    step = get_step(document_type)
    document_type = str(step.document_type)

    if not title or not str(title).strip():
        raise ValidationError("title is required")
    amount = _clean_amount(amount)

    if CaseDocument.objects.of_type(case, document_type) is not None:
        raise DuplicateDocumentError(case.reference, document_type)

    approved_types = (
        CaseDocument.objects.filter(case=case)
        .approved()
        .values_list('document_type', flat=True)
    )
    blocker = missing_prerequisite(document_type, approved_types)
    if blocker is not None:
        raise WorkflowOrderError(document_type, blocker)

    try:
        with transaction.atomic():
            document = CaseDocument.objects.create(
                case=case,
                document_type=document_type,
                title=title,
                content=content or '',
                amount=amount,
                status=DocumentStatus.DRAFT,
                version=1,
                created_by=created_by,
            )
    except IntegrityError:
        # Concurrent create of the same (case, type) lost the race
        raise DuplicateDocumentError(case.reference, document_type)

    logger.info(f"Document created: {case.reference} {document_type} ({document.pk})")
    return document


@transaction.atomic
def update_content(
    document_id,
    title: Optional[str] = None,
    content: Optional[str] = None,
    amount=None,
) -> CaseDocument:
    """
    Edit a document and bump its version by exactly one.

    Fields left as None are unchanged. A call that passes no field at all
    is a no-op and does not bump the version.

    Raises:
        NotFoundError: If the document does not exist.
        ImmutableDocumentError: If the document is APPROVED.
        ValidationError: For a blank title or bad amount.
    """
    document = _get_document(document_id, for_update=True)
    if document.is_approved:
        raise ImmutableDocumentError(document.pk, 'edit')

    if title is not None and not str(title).strip():
        raise ValidationError("title cannot be blank")
    amount = _clean_amount(amount)

    changed = []
    if title is not None:
        document.title = title
        changed.append('title')
    if content is not None:
        document.content = content
        changed.append('content')
    if amount is not None:
        document.amount = amount
        changed.append('amount')

    if not changed:
        return document

    document.version += 1
    document.save(update_fields=changed + ['version', 'updated_at'])

    logger.info(
        f"Document updated: {document.case.reference} {document.document_type} "
        f"v{document.version} ({', '.join(changed)})"
    )
    return document


@transaction.atomic
def transition_status(
    document_id,
    new_status: str,
    approver=None,
    metadata: Optional[dict] = None,
) -> CaseDocument:
    """
    Move a document to a new status.

    Moving to APPROVED records the approver and approval time once; no
    transition leaves APPROVED. Every change is written to DocumentTransition.

    Args:
        document_id: Document primary key.
        new_status: One of DocumentStatus.
        approver: User or identity string performing the change.
        metadata: Optional notes stored on the audit record.

    Raises:
        NotFoundError: If the document does not exist.
        ValidationError: If new_status is not a document status, or an
            approval names no approver.
        ImmutableDocumentError: If the document is already APPROVED.
        InvalidTransitionError: If the status graph forbids the move.
    """
    new_status = coerce_choice(DocumentStatus, new_status, 'document status')
    document = _get_document(document_id, for_update=True)

    if document.is_approved:
        raise ImmutableDocumentError(document.pk, 'change the status of')

    from_status = document.status
    if new_status == from_status:
        return document
    if new_status not in allowed_transitions(DOCUMENT_TRANSITIONS, from_status):
        raise InvalidTransitionError(from_status, new_status)

    actor = actor_display(approver)
    if new_status == DocumentStatus.APPROVED and not actor:
        raise ValidationError("approver is required to approve a document")

    document.status = new_status
    update_fields = ['status', 'updated_at']
    if new_status == DocumentStatus.APPROVED:
        document.approved_by = actor
        document.approved_at = timezone.now()
        update_fields += ['approved_by', 'approved_at']
    document.save(update_fields=update_fields)

    DocumentTransition.objects.create(
        document=document,
        from_status=from_status,
        to_status=new_status,
        actor=actor,
        metadata=metadata or {},
    )

    logger.info(
        f"Document status changed: {document.case.reference} {document.document_type} "
        f"{from_status} -> {new_status}"
    )
    return document


def submit_document(document_id, actor=None) -> CaseDocument:
    """Send a draft or rejected document for approval."""
    return transition_status(document_id, DocumentStatus.PENDING_APPROVAL, approver=actor)


def approve_document(document_id, approver) -> CaseDocument:
    return transition_status(document_id, DocumentStatus.APPROVED, approver=approver)


def reject_document(document_id, actor=None, reason: str = '') -> CaseDocument:
    metadata = {'reason': reason} if reason else None
    return transition_status(document_id, DocumentStatus.REJECTED, approver=actor, metadata=metadata)


@transaction.atomic
def delete_document(document_id) -> None:
    """
    Delete a document that has not been approved.

    Raises:
        NotFoundError: If the document does not exist.
        ImmutableDocumentError: If the document is APPROVED.
    """
    document = _get_document(document_id, for_update=True)
    if document.is_approved:
        raise ImmutableDocumentError(document.pk, 'delete')

    reference = document.case.reference
    document_type = document.document_type
    document.delete()

    logger.info(f"Document deleted: {reference} {document_type}")


def documents_for_case(case) -> list[CaseDocument]:
    """All documents of a case, core types first in workflow order, then supplementary ones."""
    case = resolve_case(case)
    return list(CaseDocument.objects.for_case(case))


def next_document_types(case) -> list[str]:
    """
    Document types that could be created on the case right now.

    A type qualifies when the case has no document of that type and its
    prerequisite (if any) is approved.
    """
    case = resolve_case(case)
    documents = CaseDocument.objects.filter(case=case)
    existing = set(documents.values_list('document_type', flat=True))
    approved = set(documents.approved().values_list('document_type', flat=True))

    return [
        str(step.document_type)
        for step in WORKFLOW_STEPS
        if str(step.document_type) not in existing
        and missing_prerequisite(step.document_type, approved) is None
    ]


def render_template(text: str, variables: Optional[dict] = None) -> str:
    """
    Replace {{name}} placeholders with values from variables.

    Placeholders without a matching variable are left as they are.
    """
    variables = variables or {}

    def _substitute(match):
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return PLACEHOLDER_RE.sub(_substitute, text)


def create_document_from_template(
    case,
    template,
    variables: Optional[dict] = None,
    title: Optional[str] = None,
    created_by=None,
) -> CaseDocument:
    """
    Create a document from a DocumentTemplate (instance or name).

    Goes through create_document, so duplicate and ordering rules apply.
    The title defaults to variables["title"], then to the template name.

    Raises:
        NotFoundError: If the template name is unknown.
        ValidationError: If the template is inactive.
    """
    if not isinstance(template, DocumentTemplate):
        name = template
        template = DocumentTemplate.objects.filter(name=name).first()
        if template is None:
            raise NotFoundError('DocumentTemplate', name)
    if not template.is_active:
        raise ValidationError(f"Template '{template.name}' is inactive")

    variables = variables or {}
    case = resolve_case(case)
    context = {
        'reference': case.reference,
        'file_code': case.file_code,
        'customer_name': case.customer_name,
        'pax_count': case.pax_count,
        'departure_date': case.departure_date.isoformat(),
        'return_date': case.return_date.isoformat(),
    }
    context.update(variables)

    return create_document(
        case,
        template.document_type,
        title=title or variables.get('title') or template.name,
        content=render_template(template.template_content, context),
        created_by=created_by,
    )
