from datetime import time

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse

from scheduling.models import Appointment, AvailabilityWindow
from scheduling.services import BookingService

from .helpers import MONDAY, booking_request, make_provider


@override_settings(
    NOTIFICATIONS_ASYNC=False,
    STORAGES={
        "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    },
)
class AppointmentAdminTests(TestCase):
    def setUp(self):
        make_provider(windows=((AvailabilityWindow.DayOfWeek.MONDAY, time(8, 0), time(17, 0), 1),))
        service = BookingService()
        self.first = service.book(booking_request(email="a@test.com"))
        self.second = service.book(booking_request(email="b@test.com", time=time(9, 30)))

        admin_user = get_user_model().objects.create_superuser("staff", "staff@test.com", "pass12345")
        self.client.force_login(admin_user)

    def change_form(self, **overrides):
        data = {
            "full_name": "Maria Santos",
            "phone": "09170000000",
            "email": "b@test.com",
            "address": "",
            "date_of_birth": "",
            "blood_type": "",
            "gender": "",
            "emergency_contact_name": "",
            "emergency_contact_number": "",
            "reason": "Check-up",
            "notes": "",
            "_save": "Save",
        }
        data.update(overrides)
        return data

    def test_change_view_cannot_move_slot(self):
        url = reverse("admin:scheduling_appointment_change", args=[self.second.pk])
        response = self.client.post(url, self.change_form(
            provider_name="Dr. A", date="2030-01-07", time="09:00", status="approved",
        ))
        print("\n[TEST] admin POST status:", response.status_code)

        self.assertEqual(response.status_code, 302)
        self.second.refresh_from_db()
        # personal details are editable, the slot and status are not
        self.assertEqual(self.second.full_name, "Maria Santos")
        self.assertEqual(self.second.time, time(9, 30))
        self.assertEqual(self.second.status, Appointment.Status.PENDING)

        occupying = Appointment.objects.filter(
            provider_name="Dr. A", date=MONDAY, time=time(9, 0),
            status__in=Appointment.OCCUPYING_STATUSES,
        ).count()
        self.assertEqual(occupying, 1)

    def test_add_view_is_disabled(self):
        response = self.client.post(reverse("admin:scheduling_appointment_add"), self.change_form(
            provider_name="Dr. A", date="2030-01-07", time="09:00",
        ))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(Appointment.objects.count(), 2)
