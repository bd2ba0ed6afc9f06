from django.core.management.base import BaseCommand

from scheduling.models import FailedSideEffect
from scheduling.side_effects import StatusSideEffects


class Command(BaseCommand):
    help = "Re-run patient sync / notification work that failed after a status change."

    def add_arguments(self, parser):
        parser.add_argument("--appointment", type=int, help="Only replay failures for this appointment id.")
        parser.add_argument("--dry-run", action="store_true", help="List pending failures without replaying.")

    def handle(self, *args, **options):
        qs = FailedSideEffect.objects.filter(resolved_at__isnull=True).select_related("appointment").order_by("id")
        if options["appointment"]:
            qs = qs.filter(appointment_id=options["appointment"])

        if options["dry_run"]:
            for failed in qs:
                self.stdout.write(f"#{failed.pk} {failed}")
            self.stdout.write(f"{qs.count()} unresolved failure(s).")
            return

        handler = StatusSideEffects()
        replayed = failed_again = 0
        for failed in qs:
            if handler.replay(failed):
                replayed += 1
            else:
                failed_again += 1
                self.stderr.write(f"#{failed.pk} failed again: {failed.error}")

        self.stdout.write(self.style.SUCCESS(f"Replayed {replayed}, still failing {failed_again}."))
