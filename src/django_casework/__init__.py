"""django-casework: case workflow and settlement core for travel back offices.

Provides:
- TravelCase: a booking tracked end-to-end by a PREFIX-YYYYMMDD-NNN reference
- CaseDocument: ordered, approval-gated documents attached to a case
- SettlementRecord: derived settlement figures (subtotal, commission, unpaid)
- GuideInstruction: on-tour instruction sheet with a one-way publish lifecycle
"""

__version__ = "0.1.0"

__all__ = [
    "TravelCase",
    "CaseDocument",
    "DocumentTransition",
    "DocumentTemplate",
    "SettlementRecord",
    "GuideInstruction",
    "DailyReferenceCounter",
]


def __getattr__(name):
    """Lazy import models to avoid AppRegistryNotReady errors."""
    if name in __all__:
        from django_casework import models
        return getattr(models, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
