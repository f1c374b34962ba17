import pytest
from datetime import date, datetime, time

from telehealth.domain.appointments.scheduling import (
    Booking, WorkingWindow, conflicts_with, default_windows,
    filter_available_slots, fits_working_hours, generate_candidate_slots,
    intervals_overlap
)

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
MORNING = [WorkingWindow(0, time(9, 0), time(12, 0))]


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime.combine(day, time(hour, minute))


@pytest.mark.unit
@pytest.mark.appointments
class TestCandidateSlots:
    """Test slot generation from working-hour windows."""

    def test_half_hour_slots_fill_window(self):
        """Test 30-minute slots cover a three hour window."""
        slots = generate_candidate_slots(MORNING, MONDAY, 30)
        assert slots == [at(9), at(9, 30), at(10), at(10, 30), at(11), at(11, 30)]

    def test_long_duration_must_end_inside_window(self):
        """Test a 60-minute appointment cannot start at 11:30."""
        slots = generate_candidate_slots(MORNING, MONDAY, 60)
        assert slots[-1] == at(11)
        assert len(slots) == 5

    def test_no_window_for_weekday(self):
        """Test a day without working hours has no slots."""
        assert generate_candidate_slots(MORNING, TUESDAY, 30) == []

    def test_overlapping_windows_are_deduplicated(self):
        """Test overlapping windows yield each start once, ascending."""
        windows = [
            WorkingWindow(0, time(10, 0), time(12, 0)),
            WorkingWindow(0, time(9, 0), time(11, 0)),
        ]
        slots = generate_candidate_slots(windows, MONDAY, 30)
        assert slots == sorted(set(slots))
        assert slots[0] == at(9)
        assert slots.count(at(10)) == 1

    def test_split_shift(self):
        """Test a lunch break produces no slots."""
        windows = [
            WorkingWindow(0, time(9, 0), time(10, 0)),
            WorkingWindow(0, time(13, 0), time(14, 0)),
        ]
        slots = generate_candidate_slots(windows, MONDAY, 30)
        assert slots == [at(9), at(9, 30), at(13), at(13, 30)]

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            generate_candidate_slots(MORNING, MONDAY, 0)

    def test_default_calendar_is_weekdays(self):
        """Test the fallback calendar covers Monday to Friday."""
        windows = default_windows([0, 1, 2, 3, 4], time(9, 0), time(17, 0))
        assert [w.day_of_week for w in windows] == [0, 1, 2, 3, 4]
        assert len(generate_candidate_slots(windows, MONDAY, 30)) == 16
        assert generate_candidate_slots(windows, date(2030, 1, 12), 30) == []


@pytest.mark.unit
@pytest.mark.appointments
class TestConflictFilter:
    """Test removal of booked and past slots."""

    def test_booking_removes_only_its_slot(self):
        """Test a 10:00 booking leaves the neighbouring slots free."""
        candidates = generate_candidate_slots(MORNING, MONDAY, 30)
        bookings = [Booking(at(10), 30)]
        available = filter_available_slots(candidates, 30, bookings, now=at(8))
        assert available == [at(9), at(9, 30), at(10, 30), at(11), at(11, 30)]

    def test_touching_intervals_do_not_overlap(self):
        assert not intervals_overlap(at(9), at(10), at(10), at(11))
        assert intervals_overlap(at(9), at(10, 1), at(10), at(11))

    def test_long_booking_blocks_several_slots(self):
        """Test a 90-minute booking blocks every slot it covers."""
        candidates = generate_candidate_slots(MORNING, MONDAY, 30)
        available = filter_available_slots(candidates, 30, [Booking(at(9, 30), 90)], now=at(8))
        assert available == [at(9), at(11), at(11, 30)]

    def test_longer_request_conflicts_with_later_booking(self):
        """Test a 60-minute request at 9:30 overlaps a 10:00 booking."""
        assert conflicts_with(at(9, 30), 60, [Booking(at(10), 30)])
        assert not conflicts_with(at(9), 60, [Booking(at(10), 30)])

    def test_booking_from_previous_day_spills_over(self):
        """Test a booking that starts before midnight still blocks early slots."""
        windows = [WorkingWindow(1, time(0, 0), time(2, 0))]
        candidates = generate_candidate_slots(windows, TUESDAY, 30)
        late = Booking(datetime(2030, 1, 7, 23, 30), 60)
        available = filter_available_slots(candidates, 30, [late], now=at(8))
        assert available[0] == at(0, 30, TUESDAY)

    def test_past_and_current_slots_removed(self):
        """Test slots at or before now are never offered."""
        candidates = generate_candidate_slots(MORNING, MONDAY, 30)
        available = filter_available_slots(candidates, 30, [], now=at(10))
        assert available == [at(10, 30), at(11), at(11, 30)]
        assert all(slot > at(10) for slot in available)

    def test_order_preserved(self):
        candidates = generate_candidate_slots(MORNING, MONDAY, 30)
        available = filter_available_slots(candidates, 30, [Booking(at(11), 30)], now=at(8))
        assert available == sorted(available)


@pytest.mark.unit
@pytest.mark.appointments
class TestWorkingHoursFit:

    def test_inside_window(self):
        assert fits_working_hours(MORNING, at(11, 30), 30)

    def test_runs_past_window_end(self):
        assert not fits_working_hours(MORNING, at(11, 30), 60)

    def test_before_window_start(self):
        assert not fits_working_hours(MORNING, at(8, 30), 30)

    def test_other_weekday(self):
        assert not fits_working_hours(MORNING, at(10, 0, TUESDAY), 30)

    def test_off_grid_start(self):
        assert fits_working_hours(MORNING, at(9, 10), 30)
        assert not fits_working_hours(MORNING, at(9, 10), 30, granularity_minutes=30)
        assert fits_working_hours(MORNING, at(10, 30), 30, granularity_minutes=30)

    def test_grid_follows_window_start(self):
        windows = [WorkingWindow(0, time(9, 15), time(12, 0))]
        assert fits_working_hours(windows, at(9, 45), 30, granularity_minutes=30)
        assert not fits_working_hours(windows, at(10, 0), 30, granularity_minutes=30)
