"""
slot_utils.py
-------------
Pure time helpers used by availability and booking code:

- parsing 'YYYY-MM-DD' / 'HH:MM' input
- the half-open overlap rule
- candidate slot generation inside opening hours (with an optional break)
- marking candidates free/busy against already-loaded intervals

Nothing here touches the database.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


@dataclass(frozen=True)
class TimeSlot:
    start: time
    end: time
    is_available: bool = True

    def as_dict(self) -> dict:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
            "is_available": self.is_available,
        }


def parse_date(value: str) -> date:
    """Parse 'YYYY-MM-DD'. Raises ValueError on anything else."""
    return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse 'HH:MM' (seconds allowed and ignored). Raises ValueError."""
    value = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).time().replace(second=0)
        except ValueError:
            continue
    raise ValueError(f"Invalid time {value!r}; expected HH:MM")


def add_minutes(t: time, minutes: int) -> time | None:
    """
    t + minutes on the same day, or None if the result falls outside it.
    Exactly midnight also counts as passing it since 00:00 sorts before t.
    """
    total = t.hour * 60 + t.minute + minutes
    if total < 0 or total >= 24 * 60:
        return None
    return time(total // 60, total % 60)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    # [a_start, a_end) and [b_start, b_end)
    return a_start < b_end and b_start < a_end


def generate_slots(
    open_time: time,
    close_time: time,
    service_duration_minutes: int,
    interval_minutes: int,
    break_start: time | None = None,
    break_end: time | None = None,
) -> list[tuple[time, time]]:
    """
    Candidate (start, end) pairs for one day, ascending by start.

    Starts at open_time and steps by interval_minutes. A candidate is kept when
    start + duration <= close_time and it does not overlap [break_start, break_end).
    """
    if service_duration_minutes <= 0 or interval_minutes <= 0:
        raise ValueError("duration and interval must be positive")

    current = datetime.combine(date.min, open_time)
    close = datetime.combine(date.min, close_time)
    duration = timedelta(minutes=service_duration_minutes)
    step = timedelta(minutes=interval_minutes)
    has_break = break_start is not None and break_end is not None

    slots = []
    while current + duration <= close:
        end = current + duration
        start_t, end_t = current.time(), end.time()
        if not (has_break and overlaps(start_t, end_t, break_start, break_end)):
            slots.append((start_t, end_t))
        current += step
    return slots


def mark_slots(candidates, busy) -> list[TimeSlot]:
    """
    Flag each candidate against the busy intervals (any iterable of
    (start, end) pairs). In-memory only; callers load `busy` once per day.
    """
    busy = list(busy)
    return [
        TimeSlot(start, end, not any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy))
        for start, end in candidates
    ]
