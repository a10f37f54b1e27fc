"""Exceptions for django-casework."""


class CaseworkError(Exception):
    """Base exception for casework errors."""
    pass


class NotFoundError(CaseworkError):
    """Raised when a case, document, settlement or guide instruction is missing."""

    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' not found")


class ValidationError(CaseworkError, ValueError):
    """Raised for malformed input (negative amounts, unknown status values, etc.)."""
    pass


class DuplicateDocumentError(CaseworkError):
    """Raised when a document of the requested type already exists for the case."""

    def __init__(self, reference: str, document_type: str):
        self.reference = reference
        self.document_type = document_type
        super().__init__(
            f"Case {reference} already has a {document_type} document"
        )


class WorkflowOrderError(CaseworkError):
    """Raised when the prerequisite document is missing or not yet approved."""

    def __init__(self, document_type: str, prerequisite: str):
        self.document_type = document_type
        self.prerequisite = prerequisite
        super().__init__(
            f"Cannot create {document_type}: {prerequisite} must exist and be approved first"
        )


class ImmutableDocumentError(CaseworkError):
    """Raised when attempting to edit, delete or move away from an approved document."""

    def __init__(self, document_id, action: str = "modify"):
        self.document_id = document_id
        self.action = action
        super().__init__(
            f"Cannot {action} document {document_id} - approved documents are immutable"
        )


class ImmutableArtifactError(CaseworkError):
    """Raised when attempting to edit or delete a distributed guide instruction."""

    def __init__(self, guide_id, action: str = "modify"):
        self.guide_id = guide_id
        self.action = action
        super().__init__(
            f"Cannot {action} guide instruction {guide_id} - it has been distributed"
        )


class InvalidTransitionError(CaseworkError):
    """Raised when attempting an invalid state transition."""

    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from '{from_state}' to '{to_state}'"
        super().__init__(self.reason)


class CapacityExceededError(CaseworkError):
    """Raised when the daily reference sequence is exhausted."""

    def __init__(self, day_prefix: str, capacity: int):
        self.day_prefix = day_prefix
        self.capacity = capacity
        super().__init__(
            f"Reference sequence for {day_prefix} exhausted ({capacity} per day)"
        )


class CaseInUseError(CaseworkError):
    """Raised when deleting a case that still owns documents or other artifacts."""

    def __init__(self, reference: str, dependents: list[str]):
        self.reference = reference
        self.dependents = dependents
        super().__init__(
            f"Cannot delete case {reference} - it still has: {', '.join(dependents)}"
        )
