"""
Workflow tables for case documents, cases and guide instructions.

The document order lives in exactly one place: WORKFLOW_STEPS. Services
consult it through the helpers below and never hard-code positions.

Everything here is pure (no database access) so it can be tested directly.
"""

from dataclasses import dataclass
from typing import Optional

from django.db import models

from .exceptions import ValidationError


class CaseStatus(models.TextChoices):
    NEW = 'NEW', 'New'
    IN_PROGRESS = 'IN_PROGRESS', 'In progress'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class DocumentType(models.TextChoices):
    QUOTATION = 'QUOTATION', 'Quotation'
    ALLOCATION = 'ALLOCATION', 'Allocation'
    INVOICE = 'INVOICE', 'Invoice'
    CONFIRMATION = 'CONFIRMATION', 'Tour confirmation'
    GUIDE_INSTRUCTION = 'GUIDE_INSTRUCTION', 'Guide instruction'
    HOTEL_OTHERS = 'HOTEL_OTHERS', 'Hotel & others'
    FINAL = 'FINAL', 'Final'
    COMMISSION = 'COMMISSION', 'Commission'
    TOUR_SCHEDULE_APPROVAL = 'TOUR_SCHEDULE_APPROVAL', 'Tour schedule approval'
    TOUR_CONFIRMATION_APPROVAL = 'TOUR_CONFIRMATION_APPROVAL', 'Tour confirmation approval'


class DocumentStatus(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    PENDING_APPROVAL = 'PENDING_APPROVAL', 'Pending approval'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


class GuideStatus(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    FINALIZED = 'FINALIZED', 'Finalized'
    DISTRIBUTED = 'DISTRIBUTED', 'Distributed'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PARTIAL = 'PARTIAL', 'Partially paid'
    COMPLETED = 'COMPLETED', 'Completed'
    OVERDUE = 'OVERDUE', 'Overdue'


@dataclass(frozen=True)
class WorkflowStep:
    """One row of the document workflow table."""

    document_type: str
    position: int
    prerequisite: Optional[str] = None

    @property
    def is_supplementary(self) -> bool:
        return self.position > CORE_STEP_COUNT


CORE_STEP_COUNT = 5

WORKFLOW_STEPS = (
    WorkflowStep(DocumentType.QUOTATION, 1),
    WorkflowStep(DocumentType.ALLOCATION, 2, prerequisite=DocumentType.QUOTATION),
    WorkflowStep(DocumentType.INVOICE, 3, prerequisite=DocumentType.ALLOCATION),
    WorkflowStep(DocumentType.CONFIRMATION, 4, prerequisite=DocumentType.INVOICE),
    WorkflowStep(DocumentType.GUIDE_INSTRUCTION, 5, prerequisite=DocumentType.CONFIRMATION),
    # Supplementary types: fixed display order, no creation precondition
    WorkflowStep(DocumentType.HOTEL_OTHERS, 6),
    WorkflowStep(DocumentType.FINAL, 7),
    WorkflowStep(DocumentType.COMMISSION, 8),
    WorkflowStep(DocumentType.TOUR_SCHEDULE_APPROVAL, 9),
    WorkflowStep(DocumentType.TOUR_CONFIRMATION_APPROVAL, 10),
)

_STEPS_BY_TYPE = {str(step.document_type): step for step in WORKFLOW_STEPS}


# Statuses a document may move to from each status. APPROVED is terminal.
DOCUMENT_TRANSITIONS = {
    DocumentStatus.DRAFT: [
        DocumentStatus.PENDING_APPROVAL, DocumentStatus.REJECTED, DocumentStatus.APPROVED,
    ],
    DocumentStatus.PENDING_APPROVAL: [
        DocumentStatus.DRAFT, DocumentStatus.REJECTED, DocumentStatus.APPROVED,
    ],
    DocumentStatus.REJECTED: [
        DocumentStatus.DRAFT, DocumentStatus.PENDING_APPROVAL, DocumentStatus.APPROVED,
    ],
}

CASE_TRANSITIONS = {
    CaseStatus.NEW: [CaseStatus.IN_PROGRESS, CaseStatus.CANCELLED],
    CaseStatus.IN_PROGRESS: [CaseStatus.COMPLETED, CaseStatus.CANCELLED],
}

GUIDE_TRANSITIONS = {
    GuideStatus.DRAFT: [GuideStatus.FINALIZED],
    GuideStatus.FINALIZED: [GuideStatus.DISTRIBUTED],
}


def get_step(document_type: str) -> WorkflowStep:
    """Return the workflow row for a document type.

    Raises:
        ValidationError: If the type is not part of the catalogue.
    """
    try:
        return _STEPS_BY_TYPE[str(document_type)]
    except KeyError:
        raise ValidationError(f"Unknown document type '{document_type}'")


def position_of(document_type: str) -> int:
    return get_step(document_type).position


def missing_prerequisite(document_type: str, approved_types) -> Optional[str]:
    """
    Return the prerequisite type that blocks creation, or None if allowed.

    Args:
        document_type: Type the caller wants to create.
        approved_types: Iterable of document types already APPROVED on the case.
    """
    step = get_step(document_type)
    if step.prerequisite is None:
        return None
    if str(step.prerequisite) in {str(t) for t in approved_types}:
        return None
    return str(step.prerequisite)


def allowed_transitions(transitions: dict, state: str) -> list[str]:
    """Return the states reachable in one step from state (empty if terminal)."""
    return [str(s) for s in transitions.get(state, [])]


def coerce_choice(choices, value, label: str) -> str:
    """Return value as a member of choices or raise ValidationError."""
    if value not in choices.values:
        raise ValidationError(f"Invalid {label} '{value}'")
    return str(value)


def validate_workflow_table(steps) -> list[str]:
    """
    Validate a document workflow table.

    Returns list of error messages (empty = valid).

    Checks:
    - positions are unique and contiguous from 1
    - each prerequisite names a type in the table
    - each core step (except the first) requires the step right before it
    - supplementary steps carry no prerequisite
    """
    errors = []
    positions = [step.position for step in steps]
    if sorted(positions) != list(range(1, len(steps) + 1)):
        errors.append(f"positions must be contiguous from 1, got {sorted(positions)}")

    by_position = {step.position: step for step in steps}
    known_types = {str(step.document_type) for step in steps}

    for step in steps:
        prereq = step.prerequisite
        if prereq is not None and str(prereq) not in known_types:
            errors.append(f"'{step.document_type}' requires unknown type '{prereq}'")
        if step.position > CORE_STEP_COUNT:
            if prereq is not None:
                errors.append(f"supplementary type '{step.document_type}' has a prerequisite")
            continue
        if step.position == 1:
            if prereq is not None:
                errors.append(f"first type '{step.document_type}' has a prerequisite")
            continue
        previous = by_position.get(step.position - 1)
        if previous is None or str(prereq) != str(previous.document_type):
            errors.append(
                f"'{step.document_type}' must require the type at position {step.position - 1}"
            )

    return errors


def validate_state_graph(
    states: list[str],
    transitions: dict[str, list[str]],
    initial_state: str,
    terminal_states: list[str],
) -> list[str]:
    """
    Validate a status graph is sane and usable.

    Returns list of error messages (empty = valid).
    """
    errors = []
    states_set = set(states)

    if initial_state not in states_set:
        errors.append(f"initial_state '{initial_state}' not in states")

    for ts in terminal_states:
        if ts not in states_set:
            errors.append(f"terminal_state '{ts}' not in states")

    for from_state, to_states in transitions.items():
        if from_state not in states_set:
            errors.append(f"transition from unknown state '{from_state}'")
        for to_state in to_states:
            if to_state not in states_set:
                errors.append(f"transition to unknown state '{to_state}'")

    for ts in terminal_states:
        if transitions.get(ts):
            errors.append(f"terminal state '{ts}' has outgoing transitions")

    if initial_state in states_set:
        reachable = _find_reachable_states(initial_state, transitions)
        for state in states:
            if state not in reachable:
                errors.append(f"state '{state}' unreachable from initial_state")

    return errors


def _find_reachable_states(start: str, transitions: dict[str, list[str]]) -> set[str]:
    visited = {start}
    queue = [start]

    while queue:
        current = queue.pop(0)
        for next_state in transitions.get(current, []):
            if next_state not in visited:
                visited.add(next_state)
                queue.append(next_state)

    return visited
