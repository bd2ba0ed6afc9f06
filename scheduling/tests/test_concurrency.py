import threading
from datetime import time
from unittest import mock

from django.db import connections
from django.test import SimpleTestCase, TransactionTestCase

from patients.models import AppointmentHistory, Patient
from scheduling.exceptions import InvalidTransitionError
from scheduling.locks import KeyedLock, slot_locks
from scheduling.models import Appointment, AvailabilityWindow
from scheduling.services import BookingService, Conflict
from scheduling.side_effects import StatusSideEffects

from .helpers import MONDAY, booking_request, make_provider


def run_concurrently(*calls):
    """Start every call at the same moment on its own thread; return results in order."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)
    errors = []

    def worker(idx, fn):
        try:
            barrier.wait()
            results[idx] = fn()
        except Exception as exc:
            errors.append(exc)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=worker, args=(i, fn)) for i, fn in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results, errors


class BookingRaceTests(TransactionTestCase):
    def setUp(self):
        self.side_effects = mock.Mock()
        self.side_effects.handle.return_value = []
        self.service = BookingService(side_effects=self.side_effects)

    def test_last_seat_goes_to_exactly_one_caller(self):
        make_provider(windows=((AvailabilityWindow.DayOfWeek.MONDAY, time(8, 0), time(17, 0), 1),))

        results, errors = run_concurrently(
            lambda: self.service.book(booking_request(email="first@test.com")),
            lambda: self.service.book(booking_request(email="second@test.com")),
        )

        self.assertEqual(errors, [])
        booked = [r for r in results if isinstance(r, Appointment)]
        refused = [r for r in results if isinstance(r, Conflict)]
        self.assertEqual(len(booked), 1)
        self.assertEqual(len(refused), 1)
        self.assertEqual((refused[0].current_count, refused[0].max_allowed), (1, 1))
        self.assertEqual(Appointment.objects.count(), 1)

    def test_capacity_never_exceeded_under_load(self):
        make_provider(windows=((AvailabilityWindow.DayOfWeek.MONDAY, time(8, 0), time(17, 0), 2),))

        calls = [
            (lambda i=i: self.service.book(booking_request(email=f"p{i}@test.com")))
            for i in range(6)
        ]
        results, errors = run_concurrently(*calls)

        self.assertEqual(errors, [])
        self.assertEqual(sum(isinstance(r, Appointment) for r in results), 2)
        self.assertEqual(sum(isinstance(r, Conflict) for r in results), 4)
        self.assertEqual(
            Appointment.objects.filter(
                provider_name="Dr. A", date=MONDAY, time=time(9, 0),
                status__in=Appointment.OCCUPYING_STATUSES,
            ).count(),
            2,
        )
        self.assertEqual(len(slot_locks), 0)

    def test_reschedule_race_for_one_seat(self):
        make_provider(windows=((AvailabilityWindow.DayOfWeek.MONDAY, time(8, 0), time(17, 0), 1),))
        a = self.service.book(booking_request(time=time(9, 0), email="a@test.com"))
        b = self.service.book(booking_request(time=time(9, 30), email="b@test.com"))

        results, errors = run_concurrently(
            lambda: self.service.reschedule(a.pk, MONDAY, time(11, 0)),
            lambda: self.service.reschedule(b.pk, MONDAY, time(11, 0)),
        )

        self.assertEqual(errors, [])
        self.assertEqual(sum(isinstance(r, Appointment) for r in results), 1)
        self.assertEqual(sum(isinstance(r, Conflict) for r in results), 1)
        self.assertEqual(Appointment.objects.filter(time=time(11, 0)).count(), 1)
        # the loser stays where it was
        self.assertEqual(
            sorted(Appointment.objects.values_list("time", flat=True)),
            sorted([time(11, 0), time(9, 0) if isinstance(results[1], Appointment) else time(9, 30)]),
        )

    def test_concurrent_approvals_share_one_patient(self):
        make_provider(windows=((AvailabilityWindow.DayOfWeek.MONDAY, time(8, 0), time(17, 0), 5),))
        dispatcher = mock.Mock()
        service = BookingService(side_effects=StatusSideEffects(dispatcher=dispatcher))
        a = service.book(booking_request(time=time(9, 0), email="same@test.com"))
        b = service.book(booking_request(time=time(10, 0), email="SAME@test.com"))

        results, errors = run_concurrently(
            lambda: service.approve(a.pk),
            lambda: service.approve(b.pk),
        )

        self.assertEqual(errors, [])
        self.assertEqual(Patient.objects.count(), 1)
        patient = Patient.objects.get()
        self.assertEqual(patient.email, "same@test.com")
        self.assertEqual(AppointmentHistory.objects.filter(patient=patient).count(), 2)

    def test_same_appointment_cannot_be_transitioned_twice(self):
        make_provider()
        a = self.service.book(booking_request())

        results, errors = run_concurrently(
            lambda: self.service.approve(a.pk),
            lambda: self.service.reject(a.pk),
        )

        # one wins, the other sees a terminal/changed state
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], InvalidTransitionError)
        a.refresh_from_db()
        self.assertIn(a.status, (Appointment.Status.APPROVED, Appointment.Status.REJECTED))


class KeyedLockTests(SimpleTestCase):
    def test_entries_are_dropped_when_idle(self):
        locks = KeyedLock()
        with locks.hold("a"):
            with locks.hold("a"):
                self.assertEqual(len(locks), 1)
            with locks.hold("b"):
                self.assertEqual(len(locks), 2)
        self.assertEqual(len(locks), 0)

    def test_same_key_excludes_other_threads(self):
        locks = KeyedLock()
        inside = []
        overlap = []

        def worker():
            with locks.hold("slot"):
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(True)
                threading.Event().wait(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(overlap, [])
