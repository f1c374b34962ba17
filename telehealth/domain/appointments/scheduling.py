"""
Slot computation for appointment booking.

Pure functions: working-hour windows plus existing bookings in, ordered
candidate start times out. Nothing here touches the database, so the same
code serves slot listing and the re-check done when a booking is written.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class WorkingWindow:
    """Working hours on one weekday (0=Monday, 6=Sunday)"""
    day_of_week: int
    start: time
    end: time


@dataclass(frozen=True)
class Booking:
    """Occupied interval [start, start + duration_minutes)"""
    start: datetime
    duration_minutes: int

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


def intervals_overlap(
    start_a: datetime, end_a: datetime,
    start_b: datetime, end_b: datetime
) -> bool:
    """Half-open interval intersection; touching intervals do not overlap"""
    return start_a < end_b and start_b < end_a


def default_windows(working_days: Iterable[int], start: time, end: time) -> List[WorkingWindow]:
    """Fallback calendar used for providers without configured schedules"""
    return [WorkingWindow(day, start, end) for day in working_days]


def generate_candidate_slots(
    windows: Iterable[WorkingWindow],
    target_date: date,
    duration_minutes: int,
    granularity_minutes: int = 30
) -> List[datetime]:
    """Candidate start times on target_date, ascending.

    Starts are spaced by granularity_minutes from the beginning of each
    matching window and a slot is only emitted when it ends inside that
    window. No window for the weekday yields an empty list.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if granularity_minutes <= 0:
        raise ValueError("granularity_minutes must be positive")

    step = timedelta(minutes=granularity_minutes)
    length = timedelta(minutes=duration_minutes)
    weekday = target_date.weekday()

    starts = set()
    for window in windows:
        if window.day_of_week != weekday:
            continue
        current = datetime.combine(target_date, window.start)
        window_end = datetime.combine(target_date, window.end)
        while current + length <= window_end:
            starts.add(current)
            current += step

    return sorted(starts)


def conflicts_with(
    start: datetime,
    duration_minutes: int,
    bookings: Iterable[Booking]
) -> bool:
    end = start + timedelta(minutes=duration_minutes)
    return any(intervals_overlap(start, end, b.start, b.end) for b in bookings)


def filter_available_slots(
    candidates: Sequence[datetime],
    duration_minutes: int,
    bookings: Iterable[Booking],
    now: datetime
) -> List[datetime]:
    """Drop candidates that overlap a booking or start at or before now"""
    bookings = list(bookings)
    return [
        slot for slot in candidates
        if slot > now and not conflicts_with(slot, duration_minutes, bookings)
    ]


def fits_working_hours(
    windows: Iterable[WorkingWindow],
    start: datetime,
    duration_minutes: int,
    granularity_minutes: Optional[int] = None
) -> bool:
    """True when [start, start + duration) lies inside one window.

    With granularity_minutes set, start must also be one of the window's
    candidate starts (window start plus a whole number of steps).
    """
    end = start + timedelta(minutes=duration_minutes)
    if end.date() != start.date():
        return False
    weekday = start.weekday()
    for window in windows:
        if window.day_of_week != weekday:
            continue
        window_start = datetime.combine(start.date(), window.start)
        if not (window_start <= start and end <= datetime.combine(start.date(), window.end)):
            continue
        if granularity_minutes and (start - window_start) % timedelta(minutes=granularity_minutes):
            continue
        return True
    return False
