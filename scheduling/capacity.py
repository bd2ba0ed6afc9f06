from dataclasses import dataclass, field
import datetime
from typing import Optional

from django.conf import settings

from .availability import AvailabilityRegistry
from .ledger import AppointmentLedger
from .utils.time_utils import iter_slot_times

NOT_AVAILABLE_REASON = "provider not available at this time"


@dataclass(frozen=True)
class SlotAvailability:
    available: bool
    current_count: int
    max_allowed: int
    reason: str
    time: Optional[datetime.time] = field(default=None, compare=False)

    def as_dict(self):
        data = {
            "available": self.available,
            "current_count": self.current_count,
            "max_allowed": self.max_allowed,
            "reason": self.reason,
        }
        if self.time is not None:
            data["time"] = self.time.strftime("%H:%M")
        return data


class SlotCapacityEvaluator:
    """
    Read-only capacity check for one (provider, date, time) slot.
    The result is not a reservation; booking re-runs it under slot_guard.
    """

    def __init__(self, registry=None, ledger=None):
        self.registry = registry or AvailabilityRegistry()
        self.ledger = ledger or AppointmentLedger()

    def check_availability(self, provider_name: str, day: datetime.date, t: datetime.time, exclude_id=None) -> SlotAvailability:
        current = self.ledger.count_occupying(provider_name, day, t, exclude_id=exclude_id)

        provider = self.registry.get_provider_by_name(provider_name)
        window = None
        if provider is not None:
            # civil date, no timezone conversion
            window = self.registry.find_window(provider.pk, day.weekday(), t)

        if window is None:
            return SlotAvailability(
                available=False,
                current_count=current,
                max_allowed=0,
                reason=NOT_AVAILABLE_REASON,
            )

        max_allowed = window.max_appointments_per_slot
        if current >= max_allowed:
            reason = f"This time slot is fully booked ({current}/{max_allowed} appointments)"
        else:
            reason = f"Available ({current}/{max_allowed} appointments)"

        return SlotAvailability(
            available=current < max_allowed,
            current_count=current,
            max_allowed=max_allowed,
            reason=reason,
        )

    def list_slots(self, provider_name: str, day: datetime.date):
        """
        Every bookable grid time for the provider on that date, with its
        availability. Times covered by several windows are listed once and
        evaluated against the window that find_window picks.
        """
        provider = self.registry.get_provider_by_name(provider_name)
        if provider is None:
            return []

        step = settings.SCHEDULING_SLOT_MINUTES
        times = set()
        for window in self.registry.windows_for_day(provider.pk, day.weekday()):
            times.update(iter_slot_times(window.start_time, window.end_time, step))

        slots = []
        for t in sorted(times):
            result = self.check_availability(provider_name, day, t)
            slots.append(SlotAvailability(
                available=result.available,
                current_count=result.current_count,
                max_allowed=result.max_allowed,
                reason=result.reason,
                time=t,
            ))
        return slots
