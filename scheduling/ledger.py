import logging

from .exceptions import InvalidTransitionError, NotFoundError, ValidationError
from .locks import appointment_guard
from .models import Appointment

logger = logging.getLogger(__name__)

DETAIL_FIELDS = (
    "full_name",
    "email",
    "phone",
    "address",
    "date_of_birth",
    "blood_type",
    "gender",
    "emergency_contact_name",
    "emergency_contact_number",
    "reason",
    "notes",
    "provider_name",
    "date",
    "time",
)


class AppointmentLedger:
    """
    Authoritative store of appointment records, backed by the ORM.

    create() performs no capacity check; callers that need the slot
    invariant wrap it in scheduling.locks.slot_guard.
    """

    def create(self, details) -> Appointment:
        fields = {k: details[k] for k in DETAIL_FIELDS if details.get(k) not in (None, "")}
        appt = Appointment.objects.create(status=Appointment.Status.PENDING, **fields)
        logger.info(
            "Created appointment %s for %s at %s %s %s",
            appt.pk, appt.email, appt.provider_name, appt.date, appt.time,
        )
        return appt

    def transition(self, appointment_id, new_status) -> Appointment:
        if new_status not in Appointment.Status.values:
            raise ValidationError(
                f"Unknown status: {new_status!r}",
                {"status": [f"Must be one of {', '.join(Appointment.Status.values)}."]},
            )

        with appointment_guard(appointment_id) as appt:
            if appt is None:
                raise NotFoundError(f"Appointment {appointment_id} does not exist")
            if not appt.can_transition(new_status):
                raise InvalidTransitionError(appt.pk, appt.status, new_status)

            previous = appt.status
            appt.status = new_status
            appt.save(update_fields=["status", "updated_at"])

        logger.info("Appointment %s: %s -> %s", appt.pk, previous, new_status)
        return appt

    def reschedule(self, appointment_id, new_date, new_time, new_provider_name=None) -> Appointment:
        """
        Move an appointment to another slot and send it back to review.
        date, time and provider change in one UPDATE, so occupancy moves
        from the old slot to the new one without an intermediate state.
        """
        with appointment_guard(appointment_id) as appt:
            if appt is None:
                raise NotFoundError(f"Appointment {appointment_id} does not exist")
            if appt.status not in Appointment.RESCHEDULABLE_STATUSES:
                raise InvalidTransitionError(appt.pk, appt.status, "reschedule")

            old_slot = appt.slot_key
            appt.date = new_date
            appt.time = new_time
            appt.provider_name = new_provider_name or appt.provider_name
            appt.status = Appointment.Status.PENDING
            appt.save(update_fields=["date", "time", "provider_name", "status", "updated_at"])

        logger.info("Rescheduled appointment %s from %s to %s", appt.pk, old_slot, appt.slot_key)
        return appt

    def find_by_id(self, appointment_id) -> Appointment:
        appt = Appointment.objects.filter(pk=appointment_id).first()
        if appt is None:
            raise NotFoundError(f"Appointment {appointment_id} does not exist")
        return appt

    def find_by_patient_email(self, email):
        if not email:
            return []
        return list(
            Appointment.objects
            .filter(email__iexact=email.strip())
            .order_by("date", "time", "id")
        )

    def list_all(self):
        return list(Appointment.objects.order_by("id"))

    def count_occupying(self, provider_name, date, time, exclude_id=None) -> int:
        qs = Appointment.objects.filter(
            provider_name=provider_name,
            date=date,
            time=time,
            status__in=Appointment.OCCUPYING_STATUSES,
        )
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.count()
