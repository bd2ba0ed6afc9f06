import logging

from django.conf import settings

from .exceptions import NotFoundError, ValidationError
from .models import AvailabilityWindow, Provider
from .utils.time_utils import parse_day_of_week, parse_time

logger = logging.getLogger(__name__)


def _as_pk(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise NotFoundError(f"No such id: {value!r}") from None


class AvailabilityRegistry:
    """
    Recurring weekly bookable windows per provider, plus the lookup that
    resolves a (weekday, time) pair to the window that governs it.
    """

    def add_window(self, provider_id, day_of_week, start_time, end_time, max_per_slot=None) -> int:
        errors = {}

        day = parse_day_of_week(day_of_week)
        if day is None:
            errors["day_of_week"] = [f"Unknown day of week: {day_of_week!r}"]

        start = parse_time(start_time)
        end = parse_time(end_time)
        if start is None:
            errors["start_time"] = ["Enter a valid time (HH:MM)."]
        if end is None:
            errors["end_time"] = ["Enter a valid time (HH:MM)."]
        if start is not None and end is not None and start >= end:
            errors["end_time"] = ["End time must be after start time."]

        if max_per_slot is None:
            max_per_slot = settings.SCHEDULING_DEFAULT_MAX_PER_SLOT
        try:
            max_per_slot = int(max_per_slot)
        except (TypeError, ValueError):
            errors["max_per_slot"] = ["Enter a whole number."]
        else:
            if max_per_slot <= 0:
                errors["max_per_slot"] = ["Must be at least 1."]

        if errors:
            raise ValidationError("Invalid availability window.", errors)

        provider = Provider.objects.filter(pk=_as_pk(provider_id)).first()
        if provider is None:
            raise NotFoundError(f"Provider {provider_id} does not exist")

        window = AvailabilityWindow.objects.create(
            provider=provider,
            day_of_week=day,
            start_time=start,
            end_time=end,
            max_appointments_per_slot=max_per_slot,
        )
        logger.info("Added availability window %s for %s", window.pk, provider.name)
        return window.pk

    def get_window(self, window_id):
        window = AvailabilityWindow.objects.filter(pk=_as_pk(window_id)).first()
        if window is None:
            raise NotFoundError(f"Availability window {window_id} does not exist")
        return window

    def remove_window(self, window_id):
        try:
            pk = _as_pk(window_id)
        except NotFoundError:
            # a malformed id names no window, so there is nothing to remove
            return
        deleted, _ = AvailabilityWindow.objects.filter(pk=pk).delete()
        if deleted:
            logger.info("Removed availability window %s", window_id)

    def set_window_available(self, window_id, is_available: bool):
        updated = AvailabilityWindow.objects.filter(pk=_as_pk(window_id)).update(is_available=is_available)
        if not updated:
            raise NotFoundError(f"Availability window {window_id} does not exist")

    def list_windows(self, provider_id=None):
        """
        Windows of one provider by weekday and start time, or with no
        provider id every window, grouped by provider name.
        """
        qs = AvailabilityWindow.objects.select_related("provider")
        if provider_id is None:
            return list(qs.order_by("provider__name", "day_of_week", "start_time", "id"))
        return list(
            qs
            .filter(provider_id=_as_pk(provider_id))
            .order_by("day_of_week", "start_time", "id")
        )

    def find_window(self, provider_id, day_of_week, time):
        """
        First window by creation order with start_time <= time < end_time.
        Overlapping windows are allowed; the oldest one wins.
        None means "not bookable", which callers must keep distinct from "full".
        """
        return (
            AvailabilityWindow.objects
            .filter(
                provider_id=provider_id,
                day_of_week=day_of_week,
                is_available=True,
                start_time__lte=time,
                end_time__gt=time,
            )
            .order_by("id")
            .first()
        )

    def windows_for_day(self, provider_id, day_of_week):
        return list(
            AvailabilityWindow.objects
            .filter(provider_id=provider_id, day_of_week=day_of_week, is_available=True)
            .order_by("id")
        )

    def get_provider_by_name(self, name):
        if not name:
            return None
        return Provider.objects.filter(name=name.strip(), is_active=True).first()

    def list_providers(self, include_inactive=False):
        qs = Provider.objects.all() if include_inactive else Provider.objects.filter(is_active=True)
        return list(qs.order_by("name"))
