from datetime import date, time
from io import StringIO

from django.core.management import CommandError, call_command
from django.test import TestCase

from scheduling.models import SlotLock


class PruneSlotLocksTests(TestCase):
    def setUp(self):
        for day in (date(2020, 3, 2), date(2020, 3, 3), date(2030, 1, 7)):
            SlotLock.objects.create(provider_name="Dr. A", date=day, time=time(9, 0))

    def test_prunes_before_given_day(self):
        out = StringIO()
        call_command("prune_slot_locks", "--before", "2020-03-03", stdout=out)

        self.assertIn("Pruned 1", out.getvalue())
        self.assertEqual(
            sorted(SlotLock.objects.values_list("date", flat=True)),
            [date(2020, 3, 3), date(2030, 1, 7)],
        )

    def test_defaults_to_today(self):
        call_command("prune_slot_locks", stdout=StringIO())

        self.assertEqual(list(SlotLock.objects.values_list("date", flat=True)), [date(2030, 1, 7)])

    def test_dry_run_keeps_rows(self):
        out = StringIO()
        call_command("prune_slot_locks", "--dry-run", stdout=out)

        self.assertIn("2 slot lock(s)", out.getvalue())
        self.assertEqual(SlotLock.objects.count(), 3)

    def test_bad_date(self):
        with self.assertRaises(CommandError):
            call_command("prune_slot_locks", "--before", "March 3", stdout=StringIO())
