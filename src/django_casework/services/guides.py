"""Guide instruction lifecycle: DRAFT -> FINALIZED -> DISTRIBUTED."""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from ..exceptions import (
    ImmutableArtifactError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..guide_templates import default_sections
from ..models import GuideInstruction
from ..workflow import GUIDE_TRANSITIONS, GuideStatus, allowed_transitions
from .cases import resolve_case

logger = logging.getLogger(__name__)


def _get_guide(guide_id, for_update: bool = False) -> GuideInstruction:
    qs = GuideInstruction.objects.select_related('case')
    if for_update:
        qs = qs.select_for_update()
    try:
        guide = qs.filter(pk=guide_id).first()
    except (DjangoValidationError, ValueError):
        guide = None
    if guide is None:
        raise NotFoundError('GuideInstruction', guide_id)
    return guide


def get_guide_instruction(case) -> GuideInstruction:
    """Return the guide instruction of a case or raise NotFoundError."""
    case = resolve_case(case)
    guide = GuideInstruction.objects.for_case(case)
    if guide is None:
        raise NotFoundError('GuideInstruction', case.reference)
    return guide


@transaction.atomic
def create_or_update_guide_instruction(case, created_by=None, **fields) -> GuideInstruction:
    """
    Create the case's guide instruction in DRAFT, or overwrite its fields.

    Only GuideInstruction.EDITABLE_FIELDS are accepted; a None value leaves
    the field unchanged. Status is never changed here.

    Raises:
        NotFoundError: If the case does not exist.
        ValidationError: For unknown field names.
        ImmutableArtifactError: If the instruction was already distributed.
    """
    unknown = sorted(set(fields) - set(GuideInstruction.EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown guide instruction fields: {', '.join(unknown)}")
    values = {name: value for name, value in fields.items() if value is not None}

    case = resolve_case(case, for_update=True)
    guide = GuideInstruction.objects.select_for_update().filter(case=case).first()

    if guide is None:
        guide = GuideInstruction.objects.create(
            case=case,
            status=GuideStatus.DRAFT,
            created_by=created_by,
            **values,
        )
        logger.info(f"Guide instruction created: {case.reference} ({guide.pk})")
        return guide

    if guide.is_distributed:
        raise ImmutableArtifactError(guide.pk, 'edit')

    for name, value in values.items():
        setattr(guide, name, value)
    if values:
        guide.save(update_fields=list(values) + ['updated_at'])

    logger.info(f"Guide instruction updated: {case.reference} ({', '.join(values) or 'no changes'})")
    return guide


def create_from_template(case, guide_name: str, guide_phone: str = '', created_by=None) -> GuideInstruction:
    """
    Fill the guide instruction of a case from the default template.

    Raises:
        ImmutableArtifactError: If the instruction was already distributed.
    """
    case = resolve_case(case)
    sections = default_sections(case, guide_name=guide_name, guide_phone=guide_phone)
    return create_or_update_guide_instruction(
        case,
        created_by=created_by,
        guide_name=guide_name,
        guide_phone=guide_phone,
        **sections,
    )


def _advance(guide_id, to_status: str, timestamp_field: str) -> GuideInstruction:
    guide = _get_guide(guide_id, for_update=True)

    if to_status not in allowed_transitions(GUIDE_TRANSITIONS, guide.status):
        raise InvalidTransitionError(guide.status, to_status)

    from_status = guide.status
    guide.status = to_status
    setattr(guide, timestamp_field, timezone.now())
    guide.save(update_fields=['status', timestamp_field, 'updated_at'])

    logger.info(f"Guide instruction {guide.case.reference}: {from_status} -> {to_status}")
    return guide


@transaction.atomic
def finalize_guide_instruction(guide_id) -> GuideInstruction:
    """
    DRAFT -> FINALIZED.

    Raises:
        InvalidTransitionError: If the instruction is not in DRAFT.
    """
    return _advance(guide_id, GuideStatus.FINALIZED, 'finalized_at')


@transaction.atomic
def distribute_guide_instruction(guide_id) -> GuideInstruction:
    """
    FINALIZED -> DISTRIBUTED. Irreversible.

    Raises:
        InvalidTransitionError: If the instruction is not FINALIZED.
    """
    return _advance(guide_id, GuideStatus.DISTRIBUTED, 'distributed_at')


@transaction.atomic
def delete_guide_instruction(guide_id) -> None:
    """
    Delete a guide instruction that has not been distributed.

    Raises:
        ImmutableArtifactError: If the instruction was distributed.
    """
    guide = _get_guide(guide_id, for_update=True)
    if guide.is_distributed:
        raise ImmutableArtifactError(guide.pk, 'delete')

    reference = guide.case.reference
    guide.delete()
    logger.info(f"Guide instruction deleted: {reference}")
