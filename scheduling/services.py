import logging
from dataclasses import dataclass

from .availability import AvailabilityRegistry
from .capacity import SlotCapacityEvaluator
from .exceptions import InvalidTransitionError
from .forms import AvailabilityQueryForm, BookingForm, RescheduleForm, StatusChangeForm, validate
from .ledger import AppointmentLedger
from .locks import appointment_locks, slot_guard
from .models import Appointment
from .side_effects import StatusSideEffects

logger = logging.getLogger(__name__)

Status = Appointment.Status


@dataclass(frozen=True)
class Conflict:
    """
    Slot full or not bookable. Returned, not raised: the caller should
    pick another slot rather than retry. Losing a race for the last seat
    produces the same result as finding the slot already full.
    """

    reason: str
    current_count: int = 0
    max_allowed: int = 0

    def as_dict(self):
        return {
            "conflict": True,
            "reason": self.reason,
            "current_count": self.current_count,
            "max_allowed": self.max_allowed,
        }


class BookingService:
    """
    Use-case layer over the registry, evaluator and ledger.

    book() and reschedule() are atomic per slot: the capacity check and
    the write run under slot_guard, so for a given (provider, date, time)
    the occupying appointments never exceed max_appointments_per_slot.
    """

    def __init__(self, registry=None, ledger=None, evaluator=None, side_effects=None):
        self.registry = registry or AvailabilityRegistry()
        self.ledger = ledger or AppointmentLedger()
        self.evaluator = evaluator or SlotCapacityEvaluator(self.registry, self.ledger)
        self.side_effects = side_effects or StatusSideEffects()

    # ----- queries -----

    def check_availability(self, query):
        cleaned = validate(AvailabilityQueryForm, query)
        return self.evaluator.check_availability(
            cleaned["provider_name"], cleaned["date"], cleaned["time"]
        )

    def list_slots(self, provider_name, day):
        return self.evaluator.list_slots(provider_name, day)

    def get(self, appointment_id):
        return self.ledger.find_by_id(appointment_id)

    def search_by_email(self, email):
        return self.ledger.find_by_patient_email(email)

    def list_appointments(self):
        return self.ledger.list_all()

    # ----- booking -----

    def book(self, request):
        """
        Create a pending appointment if the slot has a free seat.
        Returns the Appointment, or a Conflict when the slot is full or
        the provider has no window covering it.
        """
        details = validate(BookingForm, request)
        provider, day, t = details["provider_name"], details["date"], details["time"]

        with slot_guard(provider, day, t):
            result = self.evaluator.check_availability(provider, day, t)
            if not result.available:
                logger.info("Booking refused for %s %s %s: %s", provider, day, t, result.reason)
                return Conflict(result.reason, result.current_count, result.max_allowed)
            appt = self.ledger.create(details)

        self.side_effects.handle(appt, Status.PENDING)
        return appt

    def reschedule(self, appointment_id, new_date, new_time, new_provider_name=None):
        """
        Move an appointment to a new slot, re-validating capacity there.
        The appointment's own seat is not counted against the destination.
        """
        cleaned = validate(RescheduleForm, {
            "new_date": new_date,
            "new_time": new_time,
            "new_provider_name": new_provider_name,
        })
        new_date, new_time = cleaned["new_date"], cleaned["new_time"]

        # lock order: appointment, then destination slot
        with appointment_locks.hold(appointment_id):
            current = self.ledger.find_by_id(appointment_id)
            if current.status not in Appointment.RESCHEDULABLE_STATUSES:
                raise InvalidTransitionError(current.pk, current.status, "reschedule")
            provider = cleaned["new_provider_name"] or current.provider_name

            with slot_guard(provider, new_date, new_time):
                result = self.evaluator.check_availability(
                    provider, new_date, new_time, exclude_id=current.pk
                )
                if not result.available:
                    logger.info(
                        "Reschedule of %s to %s %s %s refused: %s",
                        appointment_id, provider, new_date, new_time, result.reason,
                    )
                    return Conflict(result.reason, result.current_count, result.max_allowed)
                appt = self.ledger.reschedule(appointment_id, new_date, new_time, provider)

        self.side_effects.handle(appt, Status.PENDING)
        return appt

    # ----- status changes -----

    def update_status(self, appointment_id, new_status):
        new_status = validate(StatusChangeForm, {"status": new_status})["status"]
        appt = self.ledger.transition(appointment_id, new_status)
        failures = self.side_effects.handle(appt, new_status)
        for failure in failures:
            logger.warning("Appointment %s is %s but %s", appt.pk, new_status, failure)
        return appt

    def approve(self, appointment_id):
        return self.update_status(appointment_id, Status.APPROVED)

    def reject(self, appointment_id):
        return self.update_status(appointment_id, Status.REJECTED)

    def cancel(self, appointment_id):
        return self.update_status(appointment_id, Status.CANCELLED)

    def complete(self, appointment_id):
        return self.update_status(appointment_id, Status.COMPLETED)
