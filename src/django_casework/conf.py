"""Configuration helpers for django-casework."""

from decimal import Decimal

from django.conf import settings


DEFAULTS = {
    'REFERENCE_PREFIX': 'GF',
    'REFERENCE_MAX_DAILY': 999,
    'DEFAULT_COMMISSION_RATE': None,
    'EMERGENCY_HOTLINE': '',
}


def get_setting(name: str, default=None):
    """Get a setting with CASEWORK_ prefix, falling back to DEFAULTS."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"CASEWORK_{name}", default)


def reference_prefix() -> str:
    return get_setting('REFERENCE_PREFIX')


def reference_max_daily() -> int:
    return int(get_setting('REFERENCE_MAX_DAILY'))


def default_commission_rate():
    """Return the configured default commission rate as Decimal, or None."""
    rate = get_setting('DEFAULT_COMMISSION_RATE')
    if rate is None:
        return None
    return Decimal(str(rate))
