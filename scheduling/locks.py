import threading
from contextlib import contextmanager

from django.db import transaction

from .models import Appointment, SlotLock


class KeyedLock:
    """
    One re-entrant lock per key. Entries are refcounted and dropped once
    no thread holds or waits on them, so the map does not grow with every
    slot ever booked.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1

        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


slot_locks = KeyedLock()
appointment_locks = KeyedLock()


@contextmanager
def slot_guard(provider_name, date, time):
    """
    Mutual exclusion for one (provider, date, time) slot.

    In-process threads serialize on a keyed lock; other processes serialize
    on the SlotLock row, locked FOR UPDATE for the rest of the transaction.
    Everything done inside the block commits or rolls back together.
    """
    with slot_locks.hold((provider_name, date, time)), transaction.atomic():
        SlotLock.objects.select_for_update().get_or_create(
            provider_name=provider_name,
            date=date,
            time=time,
        )
        yield


@contextmanager
def appointment_guard(appointment_id):
    """Serializes status changes on one appointment and yields the locked row."""
    with appointment_locks.hold(appointment_id), transaction.atomic():
        yield Appointment.objects.select_for_update().filter(pk=appointment_id).first()


def prune_slot_locks(before) -> int:
    """Delete SlotLock rows for dates earlier than ``before``; returns how many went."""
    deleted, _ = SlotLock.objects.filter(date__lt=before).delete()
    return deleted
