from datetime import time

from django.test import TestCase

from scheduling.availability import AvailabilityRegistry
from scheduling.exceptions import NotFoundError, ValidationError
from scheduling.models import AvailabilityWindow, Provider


class AvailabilityRegistryTests(TestCase):
    def setUp(self):
        self.registry = AvailabilityRegistry()
        self.provider = Provider.objects.create(name="Dr. A")

    def test_add_window_accepts_day_names_and_strings(self):
        window_id = self.registry.add_window(self.provider.pk, "mon", "08:00", "17:00", 2)

        window = AvailabilityWindow.objects.get(pk=window_id)
        self.assertEqual(window.day_of_week, AvailabilityWindow.DayOfWeek.MONDAY)
        self.assertEqual(window.start_time, time(8, 0))
        self.assertEqual(window.end_time, time(17, 0))
        self.assertEqual(window.max_appointments_per_slot, 2)
        self.assertTrue(window.is_available)

    def test_add_window_defaults_max_per_slot(self):
        window_id = self.registry.add_window(self.provider.pk, "FRIDAY", time(9, 0), time(12, 0))
        self.assertEqual(AvailabilityWindow.objects.get(pk=window_id).max_appointments_per_slot, 3)

    def test_add_window_rejects_start_not_before_end(self):
        with self.assertRaises(ValidationError) as ctx:
            self.registry.add_window(self.provider.pk, 0, "17:00", "17:00", 2)
        self.assertIn("end_time", ctx.exception.errors)
        self.assertFalse(AvailabilityWindow.objects.exists())

    def test_add_window_rejects_non_positive_capacity(self):
        for bad in (0, -1):
            with self.assertRaises(ValidationError) as ctx:
                self.registry.add_window(self.provider.pk, 0, "08:00", "17:00", bad)
            self.assertIn("max_per_slot", ctx.exception.errors)

    def test_add_window_rejects_unknown_day(self):
        with self.assertRaises(ValidationError) as ctx:
            self.registry.add_window(self.provider.pk, "Funday", "08:00", "17:00", 2)
        self.assertIn("day_of_week", ctx.exception.errors)

    def test_add_window_unknown_provider(self):
        with self.assertRaises(NotFoundError):
            self.registry.add_window(self.provider.pk + 100, 0, "08:00", "17:00", 2)

    def test_remove_window_is_idempotent(self):
        window_id = self.registry.add_window(self.provider.pk, 0, "08:00", "17:00", 2)

        self.registry.remove_window(window_id)
        self.registry.remove_window(window_id)

        self.assertFalse(AvailabilityWindow.objects.filter(pk=window_id).exists())

    def test_remove_window_malformed_id_is_a_no_op(self):
        window_id = self.registry.add_window(self.provider.pk, 0, "08:00", "17:00", 2)

        self.registry.remove_window("abc")
        self.registry.remove_window(None)

        self.assertTrue(AvailabilityWindow.objects.filter(pk=window_id).exists())

    def test_list_windows_without_provider_lists_all(self):
        other = Provider.objects.create(name="Dr. B")
        b_window = self.registry.add_window(other.pk, "MON", "08:00", "12:00", 1)
        a_window = self.registry.add_window(self.provider.pk, "TUE", "08:00", "12:00", 1)

        windows = self.registry.list_windows()

        self.assertEqual([w.pk for w in windows], [a_window, b_window])
        self.assertEqual(windows[1].provider.name, "Dr. B")

    def test_list_providers_skips_inactive(self):
        Provider.objects.create(name="Dr. Retired", is_active=False)
        Provider.objects.create(name="Dr. B")

        names = [p.name for p in self.registry.list_providers()]
        self.assertEqual(names, ["Dr. A", "Dr. B"])
        self.assertEqual(len(self.registry.list_providers(include_inactive=True)), 3)

    def test_list_windows_ordered_by_day_then_start(self):
        self.registry.add_window(self.provider.pk, "WED", "13:00", "15:00", 1)
        self.registry.add_window(self.provider.pk, "MON", "13:00", "17:00", 1)
        self.registry.add_window(self.provider.pk, "MON", "08:00", "12:00", 1)

        listed = [(w.day_of_week, w.start_time) for w in self.registry.list_windows(self.provider.pk)]

        self.assertEqual(listed, [(0, time(8, 0)), (0, time(13, 0)), (2, time(13, 0))])

    def test_find_window_is_half_open(self):
        window_id = self.registry.add_window(self.provider.pk, 0, "08:00", "17:00", 2)

        self.assertEqual(self.registry.find_window(self.provider.pk, 0, time(8, 0)).pk, window_id)
        self.assertEqual(self.registry.find_window(self.provider.pk, 0, time(16, 30)).pk, window_id)
        self.assertIsNone(self.registry.find_window(self.provider.pk, 0, time(17, 0)))
        self.assertIsNone(self.registry.find_window(self.provider.pk, 0, time(7, 30)))
        self.assertIsNone(self.registry.find_window(self.provider.pk, 1, time(9, 0)))

    def test_find_window_overlap_uses_creation_order(self):
        later_start = self.registry.add_window(self.provider.pk, 0, "09:00", "12:00", 5)
        earlier_start = self.registry.add_window(self.provider.pk, 0, "08:00", "17:00", 1)

        self.assertEqual(self.registry.find_window(self.provider.pk, 0, time(10, 0)).pk, later_start)
        self.assertEqual(self.registry.find_window(self.provider.pk, 0, time(8, 30)).pk, earlier_start)

    def test_find_window_skips_unavailable(self):
        window_id = self.registry.add_window(self.provider.pk, 0, "08:00", "17:00", 2)
        self.registry.set_window_available(window_id, False)

        self.assertIsNone(self.registry.find_window(self.provider.pk, 0, time(9, 0)))

    def test_set_window_available_unknown_window(self):
        with self.assertRaises(NotFoundError):
            self.registry.set_window_available(9999, False)
