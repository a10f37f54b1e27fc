"""Models for django-casework.

Provides:
- TravelCase: a booking identified by a generated reference number
- DailyReferenceCounter: per-day lock row serializing reference issuance
- CaseDocument: one document per (case, type), ordered by the workflow table
- DocumentTransition: audit log of document status changes
- DocumentTemplate: reusable document content with {{placeholders}}
- SettlementRecord: settlement inputs plus derived subtotal/commission/unpaid
- GuideInstruction: guide sheet with a DRAFT -> FINALIZED -> DISTRIBUTED lifecycle

The custom QuerySets are the storage boundary: services only reach the
database through them.
"""

import uuid

from django.conf import settings
from django.db import models

from .exceptions import ValidationError
from .ledger import derive_totals
from .workflow import (
    CaseStatus,
    DocumentStatus,
    DocumentType,
    GuideStatus,
    PaymentStatus,
    position_of,
)


class CaseworkBaseModel(models.Model):
    """Base model with UUID primary key and timestamps."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class TravelCaseQuerySet(models.QuerySet):
    """Custom queryset for TravelCase model."""

    def by_reference(self, reference):
        """Return the case with this reference, or None."""
        return self.filter(reference=reference).first()

    def exists_by_reference(self, reference) -> bool:
        return self.filter(reference=reference).exists()

    def with_status(self, status):
        return self.filter(status=status)

    def departing_between(self, start, end):
        """Cases whose departure date falls within [start, end]."""
        return self.filter(departure_date__gte=start, departure_date__lte=end)

    def search(self, reference=None, customer_name=None, status=None):
        """Filter by partial reference, partial customer name and exact status."""
        qs = self
        if reference:
            qs = qs.filter(reference__icontains=reference)
        if customer_name:
            qs = qs.filter(customer_name__icontains=customer_name)
        if status:
            qs = qs.filter(status=status)
        return qs


class TravelCase(CaseworkBaseModel):
    """
    A travel booking tracked end-to-end by its reference number.

    The reference is assigned once at creation (see services.cases.open_case)
    and cannot change afterwards.
    """

    reference = models.CharField(
        max_length=50,
        unique=True,
        help_text="Generated reference, e.g. GF-20260314-001",
    )
    file_code = models.CharField(
        max_length=20,
        help_text="Internal file code of the booking",
    )
    customer_name = models.CharField(
        max_length=200,
        blank=True,
        default='',
    )
    pax_count = models.PositiveIntegerField(
        default=1,
        help_text="Number of passengers",
    )
    departure_date = models.DateField()
    return_date = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=CaseStatus.choices,
        default=CaseStatus.NEW,
    )
    remarks = models.TextField(blank=True, default='')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='casework_cases',
    )

    objects = TravelCaseQuerySet.as_manager()

    class Meta:
        app_label = 'django_casework'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='casework_case_status_idx'),
            models.Index(fields=['departure_date'], name='casework_case_departure_idx'),
        ]

    def __str__(self):
        return f"{self.reference} ({self.status})"

    def save(self, *args, **kwargs):
        """Refuse to change the reference of an existing case."""
        if not self._state.adding:
            stored = (
                type(self).objects.filter(pk=self.pk)
                .values_list('reference', flat=True)
                .first()
            )
            if stored is not None and stored != self.reference:
                raise ValidationError(
                    f"Reference of case {stored} is immutable"
                )
        super().save(*args, **kwargs)


class DailyReferenceCounter(CaseworkBaseModel):
    """Highest serial handed out for one (prefix, day); locked while issuing."""

    prefix = models.CharField(max_length=20)
    day = models.DateField()
    last_serial = models.PositiveIntegerField(default=0)

    class Meta:
        app_label = 'django_casework'
        unique_together = ['prefix', 'day']

    def __str__(self):
        return f"{self.prefix}-{self.day:%Y%m%d}: {self.last_serial}"


class CaseDocumentQuerySet(models.QuerySet):
    """Custom queryset for CaseDocument model."""

    def for_case(self, case):
        """All documents of a case in workflow order."""
        return self.filter(case=case).order_by('workflow_position')

    def of_type(self, case, document_type):
        """Return the case's document of this type, or None."""
        return self.filter(case=case, document_type=document_type).first()

    def approved(self):
        return self.filter(status=DocumentStatus.APPROVED)

    def pending_approval(self):
        return self.filter(status=DocumentStatus.PENDING_APPROVAL)


class CaseDocument(CaseworkBaseModel):
    """
    A workflow document attached to a case.

    At most one document per (case, document_type) exists; the unique
    constraint backs the service-level duplicate check under concurrency.
    Approved documents are immutable.
    """

    case = models.ForeignKey(
        TravelCase,
        on_delete=models.PROTECT,
        related_name='documents',
    )
    document_type = models.CharField(
        max_length=40,
        choices=DocumentType.choices,
    )
    workflow_position = models.PositiveSmallIntegerField(
        editable=False,
        help_text="Position of document_type in the workflow table",
    )
    title = models.CharField(max_length=200)
    content = models.TextField(blank=True, default='')
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
    )
    status = models.CharField(
        max_length=20,
        choices=DocumentStatus.choices,
        default=DocumentStatus.DRAFT,
    )
    version = models.PositiveIntegerField(default=1)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='casework_documents',
    )
    approved_by = models.CharField(
        max_length=150,
        blank=True,
        default='',
        help_text="Display identity of the approver",
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    objects = CaseDocumentQuerySet.as_manager()

    class Meta:
        app_label = 'django_casework'
        ordering = ['case', 'workflow_position']
        constraints = [
            models.UniqueConstraint(
                fields=['case', 'document_type'],
                name='casework_unique_document_per_type',
            ),
        ]
        indexes = [
            models.Index(fields=['status'], name='casework_doc_status_idx'),
        ]

    def __str__(self):
        return f"{self.case.reference} {self.document_type} v{self.version} ({self.status})"

    def save(self, *args, **kwargs):
        """Derive workflow_position from the workflow table."""
        self.workflow_position = position_of(self.document_type)
        super().save(*args, **kwargs)

    @property
    def is_approved(self) -> bool:
        return self.status == DocumentStatus.APPROVED


class DocumentTransition(CaseworkBaseModel):
    """Audit log of document status changes."""

    document = models.ForeignKey(
        CaseDocument,
        on_delete=models.CASCADE,
        related_name='transitions',
    )
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)
    actor = models.CharField(max_length=150, blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        app_label = 'django_casework'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.document_id}: {self.from_status} -> {self.to_status}"


class DocumentTemplate(CaseworkBaseModel):
    """Reusable content for a document type; {{name}} marks a placeholder."""

    name = models.CharField(max_length=200, unique=True)
    document_type = models.CharField(max_length=40, choices=DocumentType.choices)
    template_content = models.TextField()
    description = models.CharField(max_length=500, blank=True, default='')
    is_active = models.BooleanField(default=True)

    class Meta:
        app_label = 'django_casework'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.document_type})"


class SettlementRecordQuerySet(models.QuerySet):
    """Custom queryset for SettlementRecord model."""

    def for_case(self, case):
        """Return the case's settlement record, or None."""
        return self.filter(case=case).first()

    def recorded_between(self, start, end):
        """Records created on a date within [start, end]."""
        return self.filter(created_at__date__gte=start, created_at__date__lte=end)

    def with_payment_status(self, status):
        return self.filter(payment_status=status)


class SettlementRecord(CaseworkBaseModel):
    """
    Settlement of one case.

    sub_total and unpaid are always re-derived from the inputs in save(),
    so they cannot be persisted out of sync with received/sold/operating_cost
    and commission.
    """

    case = models.OneToOneField(
        TravelCase,
        on_delete=models.PROTECT,
        related_name='settlement',
    )
    received = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    sold = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    operating_cost = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    sub_total = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Percentage used to derive commission, if any",
    )
    commission = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    unpaid = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    notes = models.TextField(blank=True, default='')

    objects = SettlementRecordQuerySet.as_manager()

    class Meta:
        app_label = 'django_casework'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['payment_status'], name='casework_settle_payment_idx'),
        ]

    def __str__(self):
        return f"Settlement {self.case.reference}: {self.sub_total}"

    def apply_figures(self, figures):
        """Copy a SettlementFigures result onto this record."""
        self.received = figures.received
        self.sold = figures.sold
        self.operating_cost = figures.operating_cost
        self.sub_total = figures.sub_total
        self.commission = figures.commission
        self.commission_rate = figures.commission_rate
        self.unpaid = figures.unpaid

    def save(self, *args, **kwargs):
        """Re-derive sub_total and unpaid before writing."""
        self.sub_total, self.unpaid = derive_totals(
            self.received, self.sold, self.operating_cost, self.commission,
        )
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'sub_total', 'unpaid'}
        super().save(*args, **kwargs)


class GuideInstructionQuerySet(models.QuerySet):
    """Custom queryset for GuideInstruction model."""

    def for_case(self, case):
        """Return the case's guide instruction, or None."""
        return self.filter(case=case).first()

    def with_status(self, status):
        return self.filter(status=status)

    def for_guide(self, guide_name):
        return self.filter(guide_name=guide_name)


class GuideInstruction(CaseworkBaseModel):
    """
    Guide instruction sheet of a case.

    Lifecycle DRAFT -> FINALIZED -> DISTRIBUTED, one way only. Once
    distributed, no field may change and the record cannot be deleted.
    """

    EDITABLE_FIELDS = (
        'guide_name',
        'guide_phone',
        'travel_schedule',
        'safety_rules',
        'precautions',
        'emergency_contact',
        'special_instructions',
    )

    case = models.OneToOneField(
        TravelCase,
        on_delete=models.PROTECT,
        related_name='guide_instruction',
    )
    guide_name = models.CharField(max_length=100, blank=True, default='')
    guide_phone = models.CharField(max_length=30, blank=True, default='')
    travel_schedule = models.TextField(blank=True, default='')
    safety_rules = models.TextField(blank=True, default='')
    precautions = models.TextField(blank=True, default='')
    emergency_contact = models.TextField(blank=True, default='')
    special_instructions = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=GuideStatus.choices,
        default=GuideStatus.DRAFT,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='casework_guide_instructions',
    )
    finalized_at = models.DateTimeField(null=True, blank=True)
    distributed_at = models.DateTimeField(null=True, blank=True)

    objects = GuideInstructionQuerySet.as_manager()

    class Meta:
        app_label = 'django_casework'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='casework_guide_status_idx'),
        ]

    def __str__(self):
        return f"Guide instruction {self.case.reference} ({self.status})"

    @property
    def is_distributed(self) -> bool:
        return self.status == GuideStatus.DISTRIBUTED
