# Generated manually for standalone django-casework package

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


CASE_STATUS_CHOICES = [
    ("NEW", "New"),
    ("IN_PROGRESS", "In progress"),
    ("COMPLETED", "Completed"),
    ("CANCELLED", "Cancelled"),
]

DOCUMENT_TYPE_CHOICES = [
    ("QUOTATION", "Quotation"),
    ("ALLOCATION", "Allocation"),
    ("INVOICE", "Invoice"),
    ("CONFIRMATION", "Tour confirmation"),
    ("GUIDE_INSTRUCTION", "Guide instruction"),
    ("HOTEL_OTHERS", "Hotel & others"),
    ("FINAL", "Final"),
    ("COMMISSION", "Commission"),
    ("TOUR_SCHEDULE_APPROVAL", "Tour schedule approval"),
    ("TOUR_CONFIRMATION_APPROVAL", "Tour confirmation approval"),
]

DOCUMENT_STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("PENDING_APPROVAL", "Pending approval"),
    ("APPROVED", "Approved"),
    ("REJECTED", "Rejected"),
]

PAYMENT_STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("PARTIAL", "Partially paid"),
    ("COMPLETED", "Completed"),
    ("OVERDUE", "Overdue"),
]

GUIDE_STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("FINALIZED", "Finalized"),
    ("DISTRIBUTED", "Distributed"),
]


def _base_fields():
    return [
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4, editable=False, primary_key=True, serialize=False
            ),
        ),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TravelCase",
            fields=_base_fields() + [
                (
                    "reference",
                    models.CharField(
                        help_text="Generated reference, e.g. GF-20260314-001",
                        max_length=50,
                        unique=True,
                    ),
                ),
                (
                    "file_code",
                    models.CharField(
                        help_text="Internal file code of the booking", max_length=20
                    ),
                ),
                ("customer_name", models.CharField(blank=True, default="", max_length=200)),
                (
                    "pax_count",
                    models.PositiveIntegerField(default=1, help_text="Number of passengers"),
                ),
                ("departure_date", models.DateField()),
                ("return_date", models.DateField()),
                (
                    "status",
                    models.CharField(choices=CASE_STATUS_CHOICES, default="NEW", max_length=20),
                ),
                ("remarks", models.TextField(blank=True, default="")),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="casework_cases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="casework_case_status_idx"),
                    models.Index(fields=["departure_date"], name="casework_case_departure_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DailyReferenceCounter",
            fields=_base_fields() + [
                ("prefix", models.CharField(max_length=20)),
                ("day", models.DateField()),
                ("last_serial", models.PositiveIntegerField(default=0)),
            ],
            options={
                "unique_together": {("prefix", "day")},
            },
        ),
        migrations.CreateModel(
            name="CaseDocument",
            fields=_base_fields() + [
                (
                    "document_type",
                    models.CharField(choices=DOCUMENT_TYPE_CHOICES, max_length=40),
                ),
                (
                    "workflow_position",
                    models.PositiveSmallIntegerField(
                        editable=False,
                        help_text="Position of document_type in the workflow table",
                    ),
                ),
                ("title", models.CharField(max_length=200)),
                ("content", models.TextField(blank=True, default="")),
                (
                    "amount",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True),
                ),
                (
                    "status",
                    models.CharField(
                        choices=DOCUMENT_STATUS_CHOICES, default="DRAFT", max_length=20
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                (
                    "approved_by",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Display identity of the approver",
                        max_length=150,
                    ),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="documents",
                        to="django_casework.travelcase",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="casework_documents",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["case", "workflow_position"],
                "indexes": [
                    models.Index(fields=["status"], name="casework_doc_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("case", "document_type"),
                        name="casework_unique_document_per_type",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DocumentTransition",
            fields=_base_fields() + [
                ("from_status", models.CharField(max_length=20)),
                ("to_status", models.CharField(max_length=20)),
                ("actor", models.CharField(blank=True, default="", max_length=150)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "document",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transitions",
                        to="django_casework.casedocument",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="DocumentTemplate",
            fields=_base_fields() + [
                ("name", models.CharField(max_length=200, unique=True)),
                (
                    "document_type",
                    models.CharField(choices=DOCUMENT_TYPE_CHOICES, max_length=40),
                ),
                ("template_content", models.TextField()),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SettlementRecord",
            fields=_base_fields() + [
                ("received", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("sold", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                (
                    "operating_cost",
                    models.DecimalField(decimal_places=2, default=0, max_digits=14),
                ),
                ("sub_total", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                (
                    "commission_rate",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Percentage used to derive commission, if any",
                        max_digits=5,
                        null=True,
                    ),
                ),
                ("commission", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("unpaid", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                (
                    "payment_status",
                    models.CharField(
                        choices=PAYMENT_STATUS_CHOICES, default="PENDING", max_length=20
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "case",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="settlement",
                        to="django_casework.travelcase",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["payment_status"], name="casework_settle_payment_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="GuideInstruction",
            fields=_base_fields() + [
                ("guide_name", models.CharField(blank=True, default="", max_length=100)),
                ("guide_phone", models.CharField(blank=True, default="", max_length=30)),
                ("travel_schedule", models.TextField(blank=True, default="")),
                ("safety_rules", models.TextField(blank=True, default="")),
                ("precautions", models.TextField(blank=True, default="")),
                ("emergency_contact", models.TextField(blank=True, default="")),
                ("special_instructions", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(choices=GUIDE_STATUS_CHOICES, default="DRAFT", max_length=20),
                ),
                ("finalized_at", models.DateTimeField(blank=True, null=True)),
                ("distributed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "case",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="guide_instruction",
                        to="django_casework.travelcase",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="casework_guide_instructions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="casework_guide_status_idx"),
                ],
            },
        ),
    ]
