"""
Management command to verify settlement consistency.

Recomputes sub_total and unpaid of every SettlementRecord from its stored
inputs and reports records whose derived values drifted (e.g. after a raw
SQL fix or a bulk update that bypassed save()).
"""

import json

from django.core.management.base import BaseCommand, CommandError

from django_casework.ledger import figures_drift
from django_casework.models import SettlementRecord


class Command(BaseCommand):
    help = "Verify settlement derived amounts against their inputs"

    def add_arguments(self, parser):
        parser.add_argument(
            "--format",
            choices=["text", "json"],
            default="text",
            help="Output format (default: text)",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show every record checked",
        )
        parser.add_argument(
            "--fail-on-drift",
            action="store_true",
            help="Exit with an error when any record drifted",
        )

    def handle(self, *args, **options):
        output_format = options["format"]
        verbose = options["verbose"]

        ok_count = 0
        drifted = []

        for record in SettlementRecord.objects.select_related("case").order_by("created_at"):
            drift = figures_drift(record)
            if not drift:
                ok_count += 1
                if verbose and output_format == "text":
                    self.stdout.write(f"OK: {record.case.reference}")
                continue

            drifted.append({
                "reference": record.case.reference,
                "fields": {
                    name: {"stored": str(values["stored"]), "expected": str(values["expected"])}
                    for name, values in drift.items()
                },
            })
            if verbose and output_format == "text":
                self.stdout.write(self.style.ERROR(f"DRIFT: {record.case.reference}"))

        scanned = ok_count + len(drifted)

        if output_format == "json":
            self.stdout.write(json.dumps({
                "scanned": scanned,
                "ok": ok_count,
                "drifted": len(drifted),
                "records": drifted,
            }))
        else:
            self.stdout.write("\nSettlement Verification Results")
            self.stdout.write("=" * 31)
            self.stdout.write(f"Scanned: {scanned}")
            self.stdout.write(self.style.SUCCESS(f"OK: {ok_count}"))
            if drifted:
                self.stdout.write(self.style.ERROR(f"DRIFTED: {len(drifted)}"))
                for item in drifted:
                    for name, values in item["fields"].items():
                        self.stdout.write(
                            f"  - {item['reference']} {name}: "
                            f"stored {values['stored']}, expected {values['expected']}"
                        )
            else:
                self.stdout.write("DRIFTED: 0")

        if drifted and options["fail_on_drift"]:
            raise CommandError(f"{len(drifted)} settlement record(s) drifted")
