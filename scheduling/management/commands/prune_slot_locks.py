from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from scheduling.locks import prune_slot_locks
from scheduling.models import SlotLock
from scheduling.utils.time_utils import parse_date


class Command(BaseCommand):
    help = "Delete slot lock rows for past dates."

    def add_arguments(self, parser):
        parser.add_argument("--before", help="Prune slots dated before this day (YYYY-MM-DD). Defaults to today.")
        parser.add_argument("--dry-run", action="store_true", help="Count the rows without deleting them.")

    def handle(self, *args, **options):
        if options["before"]:
            before = parse_date(options["before"])
            if before is None:
                raise CommandError(f"--before must be YYYY-MM-DD, got {options['before']!r}")
        else:
            before = timezone.localdate()

        if options["dry_run"]:
            count = SlotLock.objects.filter(date__lt=before).count()
            self.stdout.write(f"{count} slot lock(s) dated before {before}.")
            return

        deleted = prune_slot_locks(before)
        self.stdout.write(self.style.SUCCESS(f"Pruned {deleted} slot lock(s) dated before {before}."))
