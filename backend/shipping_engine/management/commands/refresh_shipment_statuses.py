from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from fulfillment.models import Shipment
from fulfillment.services import refresh_statuses
from shipping.dataclasses import TERMINAL_STATUSES
from shipping_engine.carriers import load as load_carrier


class Command(BaseCommand):
    help = "Poll carrier tracking for open shipments and apply the returned status codes."

    def add_arguments(self, parser):
        parser.add_argument("--company", type=str, help="Only shipments of this company code, e.g. FEST")

    def handle(self, *args, **options):
        qs = (Shipment.objects
              .exclude(status__in=TERMINAL_STATUSES)
              .select_related("company"))
        if options.get("company"):
            qs = qs.filter(company__code=options["company"].strip().upper())

        report = refresh_statuses(list(qs), carrier_for=load_carrier)

        stuck = 0
        for shipment, c in report.applied:
            flags = []
            if c.is_problematic:
                flags.append("PROBLEM")
            if shipment.stuck():
                flags.append("STUCK")
                stuck += 1
            if not c.is_known:
                flags.append("UNKNOWN-CODE")
            self.stdout.write(
                f"{shipment.tracking_code}: {c.code} -> {shipment.status}"
                + (f" [{' '.join(flags)}]" if flags else "")
            )
        self.stdout.write(self.style.SUCCESS(f"Updated {len(report.applied)} shipment(s); {stuck} stuck"))
        for code, error in sorted(report.failed.items()):
            self.stderr.write(self.style.ERROR(f"{code}: tracking failed: {error}"))
        if report.failed:
            # other companies were applied above; exit non-zero for the scheduler
            raise CommandError(f"Status refresh failed for {len(report.failed)} company(ies)")
