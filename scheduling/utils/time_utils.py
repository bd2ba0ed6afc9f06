from datetime import date, datetime, time

DISPLAY_FORMAT = "%I:%M %p"      # '10:00 AM'
INPUT_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p")  # what we accept in parse_time

DAY_NAMES = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


def format_timeslot(t: time) -> str:
    """
    Convert a time to the display string 'h:MM AM/PM'.
    Used in notification messages.
    """
    return t.strftime(DISPLAY_FORMAT).lstrip("0")


def parse_time(value):
    """
    Parse 'HH:MM' (also 'HH:MM:SS' or '10:00 AM') into a time object.
    Returns None if parsing fails. time objects pass through.
    """
    if isinstance(value, time):
        return value
    if not value:
        return None

    value = str(value).strip().upper()
    for fmt in INPUT_FORMATS:
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    return None


def parse_date(value):
    """
    Parse a date string in 'YYYY-MM-DD' format into a date object.
    Returns None if parsing fails. date objects pass through.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def parse_day_of_week(value):
    """
    Accept 0-6 (Monday=0), 'MON' or 'MONDAY' in any case.
    Returns None when the value names no weekday.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 <= value <= 6 else None
    if not value:
        return None

    text = str(value).strip().upper()
    if text.isdigit():
        return parse_day_of_week(int(text))
    for idx, name in enumerate(DAY_NAMES):
        if text == name or text == name[:3]:
            return idx
    return None


def is_on_slot_grid(t: time, step_minutes: int) -> bool:
    """True when t falls on a step boundary counted from midnight."""
    if t.second or t.microsecond:
        return False
    return (t.hour * 60 + t.minute) % step_minutes == 0


def iter_slot_times(start: time, end: time, step_minutes: int):
    """
    Yield every grid time t with start <= t < end.
    The first slot is the first grid boundary at or after start.
    """
    start_min = start.hour * 60 + start.minute + (1 if start.second or start.microsecond else 0)
    end_min = end.hour * 60 + end.minute + (1 if end.second or end.microsecond else 0)

    first = -(-start_min // step_minutes) * step_minutes
    for minutes in range(first, end_min, step_minutes):
        yield time(minutes // 60, minutes % 60)

