"""Service functions for django-casework.

Usage:
    from django_casework.services import open_case, create_document, approve_document

    case = open_case("FIT-01", pax_count=2, departure_date=d1, return_date=d2)
    quote = create_document(case, "QUOTATION", title="Quotation")
    approve_document(quote.pk, approver=request.user)
"""

from .cases import (
    cancel_case,
    change_case_status,
    delete_case,
    get_case,
    open_case,
    resolve_case,
    update_case,
)
from .documents import (
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
from .guides import (
    create_from_template,
    create_or_update_guide_instruction,
    delete_guide_instruction,
    distribute_guide_instruction,
    finalize_guide_instruction,
    get_guide_instruction,
)
from .settlements import (
    SettlementReport,
    apply_commission_rate,
    get_settlement,
    monthly_settlement,
    settlement_summary,
    update_payment_status,
    upsert_settlement,
)

__all__ = [
    "open_case",
    "get_case",
    "resolve_case",
    "update_case",
    "change_case_status",
    "cancel_case",
    "delete_case",
    "create_document",
    "get_document",
    "update_content",
    "transition_status",
    "submit_document",
    "approve_document",
    "reject_document",
    "delete_document",
    "documents_for_case",
    "next_document_types",
    "render_template",
    "create_document_from_template",
    "upsert_settlement",
    "get_settlement",
    "update_payment_status",
    "apply_commission_rate",
    "settlement_summary",
    "monthly_settlement",
    "SettlementReport",
    "create_or_update_guide_instruction",
    "create_from_template",
    "get_guide_instruction",
    "finalize_guide_instruction",
    "distribute_guide_instruction",
    "delete_guide_instruction",
]
