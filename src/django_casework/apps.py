"""Django app configuration for django-casework."""

from django.apps import AppConfig
from django.core import checks


class DjangoCaseworkConfig(AppConfig):
    """App configuration for django-casework."""

    name = 'django_casework'
    verbose_name = 'Casework'
    default_auto_field = 'django.db.models.BigAutoField'

    def ready(self):
        """Register the workflow table checks."""
        from .checks import check_workflow_tables

        checks.register(check_workflow_tables)
