from datetime import date, time

from scheduling.models import AvailabilityWindow, Provider

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY = date(2030, 1, 13)


def make_provider(name="Dr. A", windows=((AvailabilityWindow.DayOfWeek.MONDAY, time(8, 0), time(17, 0), 2),)):
    provider = Provider.objects.create(name=name, email="doctor@test.com")
    for day, start, end, max_per_slot in windows:
        AvailabilityWindow.objects.create(
            provider=provider,
            day_of_week=day,
            start_time=start,
            end_time=end,
            max_appointments_per_slot=max_per_slot,
        )
    return provider


def booking_request(**overrides):
    data = {
        "provider_name": "Dr. A",
        "date": MONDAY,
        "time": time(9, 0),
        "full_name": "Juan Dela Cruz",
        "email": "juan@test.com",
        "phone": "09171234567",
        "reason": "Check-up",
    }
    data.update(overrides)
    return data
