from datetime import time
from unittest import mock

from django.test import TestCase, override_settings

from scheduling.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from scheduling.models import Appointment, AvailabilityWindow
from scheduling.services import BookingService, Conflict
from scheduling.side_effects import StatusSideEffects

from .helpers import MONDAY, TUESDAY, booking_request, make_provider


@override_settings(NOTIFICATIONS_ASYNC=False)
class BookingServiceTests(TestCase):
    def setUp(self):
        make_provider()
        self.service = BookingService()

    def availability(self, t=time(9, 0), day=MONDAY, provider="Dr. A"):
        return self.service.check_availability({"provider_name": provider, "date": day, "time": t})

    def test_dr_a_scenario(self):
        print("\n[TEST] window MON 08:00-17:00 max 2 for Dr. A")

        first = self.service.book(booking_request(email="one@test.com"))
        second = self.service.book(booking_request(email="two@test.com"))
        print("  - booked:", first, "|", second)
        self.assertIsInstance(first, Appointment)
        self.assertIsInstance(second, Appointment)
        self.assertEqual(first.status, Appointment.Status.PENDING)

        third = self.service.book(booking_request(email="three@test.com"))
        print("  - third booking:", third)
        self.assertIsInstance(third, Conflict)
        self.assertEqual((third.current_count, third.max_allowed), (2, 2))

        result = self.availability()
        self.assertEqual(result.as_dict()["available"], False)
        self.assertEqual((result.current_count, result.max_allowed), (2, 2))

        self.service.approve(first.pk)
        self.assertEqual(self.availability().current_count, 2)

        self.service.reject(second.pk)
        result = self.availability()
        print("  - after reject:", result.as_dict())
        self.assertEqual(result.current_count, 1)
        self.assertTrue(result.available)

    def test_accepts_portal_keys_and_strings(self):
        appt = self.service.book({
            "doctorName": "Dr. A",
            "appointmentDate": "2030-01-07",
            "appointmentTime": "09:30",
            "fullName": "Maria Clara",
            "email": "maria@test.com",
            "contactNumber": "0917",
            "dateOfBirth": "1990-05-01",
            "gender": "female",
        })

        self.assertIsInstance(appt, Appointment)
        self.assertEqual(appt.time, time(9, 30))
        self.assertEqual(appt.phone, "0917")
        self.assertEqual(appt.gender, "FEMALE")

    def test_invalid_request_touches_nothing(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.book(booking_request(email="not-an-email", time="25:00"))

        self.assertIn("email", ctx.exception.errors)
        self.assertIn("time", ctx.exception.errors)
        self.assertFalse(Appointment.objects.exists())

    def test_off_grid_time_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.book(booking_request(time=time(9, 10)))
        self.assertIn("time", ctx.exception.errors)

    def test_no_window_never_bookable(self):
        for request in (booking_request(date=TUESDAY), booking_request(time=time(17, 0)),
                        booking_request(provider_name="Dr. Nobody")):
            result = self.service.book(request)
            self.assertIsInstance(result, Conflict)
            self.assertEqual(result.max_allowed, 0)
            self.assertEqual(result.as_dict()["conflict"], True)
        self.assertFalse(Appointment.objects.exists())

    def test_cancel_frees_capacity(self):
        a = self.service.book(booking_request())
        self.service.book(booking_request(email="b@test.com"))
        self.assertFalse(self.availability().available)

        self.service.cancel(a.pk)

        self.assertEqual(self.availability().current_count, 1)
        self.assertIsInstance(self.service.book(booking_request(email="c@test.com")), Appointment)

    def test_completed_still_occupies(self):
        a = self.service.book(booking_request())
        self.service.approve(a.pk)
        self.service.complete(a.pk)

        self.assertEqual(self.availability().current_count, 1)

    def test_update_status_validates(self):
        a = self.service.book(booking_request())

        with self.assertRaises(ValidationError):
            self.service.update_status(a.pk, "archived")
        with self.assertRaises(InvalidTransitionError):
            self.service.complete(a.pk)
        with self.assertRaises(NotFoundError):
            self.service.approve(a.pk + 99)

    def test_reschedule_moves_occupancy(self):
        AvailabilityWindow.objects.create(
            provider=AvailabilityWindow.objects.first().provider,
            day_of_week=AvailabilityWindow.DayOfWeek.TUESDAY,
            start_time=time(8, 0),
            end_time=time(12, 0),
            max_appointments_per_slot=1,
        )
        a = self.service.book(booking_request())
        self.service.approve(a.pk)

        moved = self.service.reschedule(a.pk, TUESDAY, time(10, 0))

        self.assertIsInstance(moved, Appointment)
        self.assertEqual(moved.status, Appointment.Status.PENDING)
        self.assertEqual(self.availability().current_count, 0)
        self.assertEqual(self.availability(day=TUESDAY, t=time(10, 0)).current_count, 1)

    def test_reschedule_into_full_slot_is_conflict(self):
        self.service.book(booking_request(time=time(10, 0)))
        self.service.book(booking_request(time=time(10, 0), email="b@test.com"))
        a = self.service.book(booking_request(email="c@test.com"))

        result = self.service.reschedule(a.pk, MONDAY, time(10, 0))

        self.assertIsInstance(result, Conflict)
        a.refresh_from_db()
        self.assertEqual(a.time, time(9, 0))

    def test_reschedule_to_own_slot_does_not_self_collide(self):
        a = self.service.book(booking_request())
        self.service.book(booking_request(email="b@test.com"))

        result = self.service.reschedule(a.pk, MONDAY, time(9, 0))

        self.assertIsInstance(result, Appointment)

    def test_reschedule_without_window_is_conflict(self):
        a = self.service.book(booking_request())
        result = self.service.reschedule(a.pk, TUESDAY, time(9, 0))
        self.assertIsInstance(result, Conflict)

    def test_reschedule_terminal_appointment_fails(self):
        a = self.service.book(booking_request())
        self.service.reject(a.pk)

        with self.assertRaises(InvalidTransitionError):
            self.service.reschedule(a.pk, MONDAY, time(10, 0))

    def test_reschedule_unknown_appointment(self):
        with self.assertRaises(NotFoundError):
            self.service.reschedule(999, MONDAY, time(10, 0))

    def test_side_effects_get_new_status(self):
        side_effects = mock.Mock()
        side_effects.handle.return_value = []
        service = BookingService(side_effects=side_effects)

        a = service.book(booking_request())
        service.approve(a.pk)

        statuses = [c.args[1] for c in side_effects.handle.call_args_list]
        self.assertEqual(statuses, [Appointment.Status.PENDING, Appointment.Status.APPROVED])

    def test_side_effect_failure_does_not_roll_back_transition(self):
        directory = mock.Mock()
        directory.upsert_by_email.side_effect = RuntimeError("patients table unavailable")
        service = BookingService(side_effects=StatusSideEffects(directory=directory))

        a = service.book(booking_request())
        with self.assertLogs("scheduling.side_effects", level="ERROR"):
            approved = service.approve(a.pk)

        self.assertEqual(approved.status, Appointment.Status.APPROVED)
        a.refresh_from_db()
        self.assertEqual(a.status, Appointment.Status.APPROVED)
        self.assertEqual(a.failed_side_effects.count(), 1)
