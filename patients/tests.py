from datetime import date, time

from django.test import TestCase

from .directory import PatientDirectory
from .models import AppointmentHistory, Patient


class PatientDirectoryTests(TestCase):
    def setUp(self):
        self.directory = PatientDirectory()
        self.profile = {
            "email": "Juan@Test.com ",
            "full_name": "Juan Dela Cruz",
            "contact_number": "09171234567",
            "blood_type": "",
        }

    def test_upsert_creates_then_reuses(self):
        first = self.directory.upsert_by_email(self.profile)
        second = self.directory.upsert_by_email({**self.profile, "email": "juan@test.com"})

        self.assertEqual(first, second)
        patient = Patient.objects.get()
        self.assertEqual(patient.email, "juan@test.com")
        self.assertEqual(patient.blood_type, "")

    def test_upsert_keeps_first_profile(self):
        pk = self.directory.upsert_by_email(self.profile)
        self.directory.upsert_by_email({**self.profile, "full_name": "J. Dela Cruz"})

        self.assertEqual(Patient.objects.get(pk=pk).full_name, "Juan Dela Cruz")

    def test_upsert_requires_email(self):
        with self.assertRaises(ValueError):
            self.directory.upsert_by_email({"full_name": "Nobody"})

    def test_insert_history(self):
        pk = self.directory.upsert_by_email(self.profile)
        row_id = self.directory.insert_history(pk, {
            "appointment_id": 42,
            "date": date(2030, 1, 7),
            "time": time(9, 0),
            "consultation_type": "",
            "provider_name": "Dr. A",
            "status": "approved",
        })

        row = AppointmentHistory.objects.get(pk=row_id)
        self.assertEqual(row.source_appointment_id, 42)
        self.assertEqual(row.consultation_type, "General Consultation")
        self.assertEqual(self.directory.history_for(pk), [row])
