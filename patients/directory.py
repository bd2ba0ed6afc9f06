import logging

from .models import AppointmentHistory, Patient

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "full_name",
    "address",
    "date_of_birth",
    "blood_type",
    "contact_number",
    "gender",
    "emergency_contact_name",
    "emergency_contact_number",
)


class PatientDirectory:
    """
    Patient records keyed by email.

    Concurrent upserts for the same email converge on one row: the unique
    index on Patient.email rejects the second insert and get_or_create
    falls back to reading the winner.
    """

    def upsert_by_email(self, profile) -> int:
        email = (profile.get("email") or "").strip().lower()
        if not email:
            raise ValueError("Patient profile has no email")

        defaults = {k: profile[k] for k in PROFILE_FIELDS if profile.get(k) not in (None, "")}
        patient, created = Patient.objects.get_or_create(email=email, defaults=defaults)
        if created:
            logger.info("Created patient %s for %s", patient.pk, email)
        else:
            logger.debug("Reusing patient %s for %s", patient.pk, email)
        return patient.pk

    def insert_history(self, patient_id, visit_summary) -> int:
        row = AppointmentHistory.objects.create(
            patient_id=patient_id,
            source_appointment_id=visit_summary.get("appointment_id"),
            appointment_date=visit_summary["date"],
            appointment_time=visit_summary["time"],
            consultation_type=visit_summary.get("consultation_type") or "General Consultation",
            provider_name=visit_summary.get("provider_name", ""),
            notes=visit_summary.get("notes", ""),
            status=visit_summary.get("status", ""),
        )
        return row.pk

    def history_for(self, patient_id):
        return list(AppointmentHistory.objects.filter(patient_id=patient_id))
