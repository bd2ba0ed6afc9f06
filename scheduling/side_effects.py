import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from notifications.dispatcher import NotificationMessage, get_dispatcher
from notifications.models import Notification
from patients.directory import PatientDirectory

from .exceptions import SideEffectFailure
from .models import Appointment, FailedSideEffect
from .utils.time_utils import format_timeslot

logger = logging.getLogger(__name__)

Status = Appointment.Status


def build_message(appt: Appointment, status) -> NotificationMessage:
    when = f"{appt.date:%B %d, %Y} at {format_timeslot(appt.time)}"
    reason = appt.reason or "your consultation"
    name = appt.full_name

    if status == Status.PENDING:
        title = "Appointment Request Received"
        message = (f"Dear {name}, your appointment request for {reason} on {when} has been "
                   f"received and is pending approval. We'll notify you once it's confirmed.")
        category = Notification.CATEGORY_INFO
    elif status == Status.APPROVED:
        title = "Appointment Approved"
        message = (f"Great news {name}! Your appointment for {reason} on {when} has been "
                   f"approved. Please arrive 10 minutes early.")
        category = Notification.CATEGORY_SUCCESS
    elif status == Status.REJECTED:
        title = "Appointment Not Available"
        message = (f"Dear {name}, unfortunately we cannot accommodate your appointment request "
                   f"for {reason} on {when}. Please contact us to reschedule.")
        category = Notification.CATEGORY_ERROR
    elif status == Status.CANCELLED:
        title = "Appointment Cancelled"
        message = (f"Dear {name}, your appointment for {reason} on {when} has been cancelled. "
                   f"Contact us if you'd like to reschedule.")
        category = Notification.CATEGORY_WARNING
    elif status == Status.COMPLETED:
        title = "Appointment Completed"
        message = f"Thank you for visiting our clinic, {name}! Your appointment on {when} has been completed."
        category = Notification.CATEGORY_SUCCESS
    else:
        title = "Appointment Update"
        message = f"Dear {name}, your appointment status has been updated."
        category = Notification.CATEGORY_INFO

    return NotificationMessage(
        recipient_email=appt.email,
        recipient_phone=appt.phone,
        title=title,
        message=message,
        category=category,
        appointment_id=appt.pk,
        details={
            "Date": when,
            "Provider": appt.provider_name,
            "Reason": reason,
            "Status": str(status).upper(),
        },
    )


class StatusSideEffects:
    """
    Downstream work that follows a committed status change.

    Nothing here can undo the transition. Failures are logged on this
    module's logger, stored as FailedSideEffect rows for replay, and
    returned to the caller. Email delivery happens after commit (or on the
    dispatcher's worker), so its failures are only recorded, not returned.
    """

    def __init__(self, directory=None, dispatcher=None):
        self.directory = directory or PatientDirectory()
        self._dispatcher = dispatcher

    @property
    def dispatcher(self):
        return self._dispatcher or get_dispatcher()

    def handle(self, appt: Appointment, new_status) -> list:
        failures = []

        if new_status == Status.APPROVED:
            failure = self.sync_patient(appt, new_status)
            if failure:
                failures.append(failure)

        failure = self.notify(appt, new_status)
        if failure:
            failures.append(failure)

        return failures

    def sync_patient(self, appt: Appointment, status=Status.APPROVED):
        target = FailedSideEffect.TARGET_PATIENT
        try:
            with transaction.atomic():
                patient_id = self.directory.upsert_by_email(self._profile(appt))
                target = FailedSideEffect.TARGET_HISTORY
                self.directory.insert_history(patient_id, self._visit_summary(appt, status))
        except Exception as exc:
            return self._record_failure(appt, status, target, exc)

        logger.info("Appointment %s synced to patient %s", appt.pk, patient_id)
        return None

    def notify(self, appt: Appointment, status):
        try:
            self._notify(appt, status)
        except Exception as exc:
            return self._record_failure(appt, status, FailedSideEffect.TARGET_NOTIFICATION, exc)
        return None

    def replay(self, failed: FailedSideEffect) -> bool:
        """Re-run a recorded failure; marks it resolved on success."""
        appt, status = failed.appointment, failed.status
        try:
            if failed.target in (FailedSideEffect.TARGET_PATIENT, FailedSideEffect.TARGET_HISTORY):
                self._sync_patient(appt, status)
            elif failed.target == FailedSideEffect.TARGET_EMAIL:
                self.dispatcher.deliver(build_message(appt, status))
            else:
                self._notify(appt, status)
        except Exception as exc:
            logger.warning("Replay of failed side effect %s failed again: %r", failed.pk, exc)
            failed.error = repr(exc)
            failed.save(update_fields=["error"])
            return False

        failed.resolved_at = timezone.now()
        failed.save(update_fields=["resolved_at"])
        return True

    def _profile(self, appt):
        return {
            "email": appt.email,
            "full_name": appt.full_name,
            "address": appt.address,
            "date_of_birth": appt.date_of_birth,
            "blood_type": appt.blood_type,
            "contact_number": appt.phone,
            "gender": appt.gender,
            "emergency_contact_name": appt.emergency_contact_name,
            "emergency_contact_number": appt.emergency_contact_number,
        }

    def _visit_summary(self, appt, status):
        return {
            "appointment_id": appt.pk,
            "date": appt.date,
            "time": appt.time,
            "consultation_type": appt.reason,
            "provider_name": appt.provider_name,
            "notes": appt.notes,
            "status": str(status),
        }

    def _sync_patient(self, appt, status):
        """Upsert the patient by email and add a history row, as one unit."""
        with transaction.atomic():
            patient_id = self.directory.upsert_by_email(self._profile(appt))
            self.directory.insert_history(patient_id, self._visit_summary(appt, status))
        return patient_id

    def _notify(self, appt, status):
        def email_failed(exc):
            self._record_failure(appt, status, FailedSideEffect.TARGET_EMAIL, exc)

        with transaction.atomic():
            self.dispatcher.send(build_message(appt, status), on_failure=email_failed)

    def _record_failure(self, appt, status, target, exc) -> SideEffectFailure:
        failure = SideEffectFailure(appt.pk, str(status), target, exc)
        logger.error(
            "Side effect failed: appointment=%s status=%s target=%s cause=%r",
            appt.pk, status, target, exc,
            exc_info=exc,
        )
        try:
            FailedSideEffect.objects.create(
                appointment_id=appt.pk,
                status=str(status),
                target=target,
                error=repr(exc),
            )
        except DatabaseError:
            logger.exception("Could not store failed side effect for appointment %s", appt.pk)
        return failure
