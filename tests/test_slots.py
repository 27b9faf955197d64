"""Tests for SlotGenerator candidate start times."""

from datetime import datetime, time

import pytest

from conftest import MONDAY, NOW, SATURDAY, SUNDAY, TUESDAY, make_calendar
from glam_booking.domain.scheduling.slots import SlotGenerator


def hhmm(times):
    return [t.strftime("%H:%M") for t in times]


class TestGenerateCandidates:
    def test_full_day_on_the_grid(self, calendar):
        slots = SlotGenerator(calendar).generate_candidates(TUESDAY, 45, now=NOW)

        # Last start must end by 19:00
        assert hhmm(slots)[0] == "09:00"
        assert hhmm(slots)[-1] == "18:00"
        assert len(slots) == 19

    def test_exact_fit_at_closing(self, calendar):
        slots = SlotGenerator(calendar).generate_candidates(TUESDAY, 60, now=NOW)
        assert hhmm(slots)[-1] == "18:00"

    def test_every_candidate_is_inside_hours_and_on_grid(self, calendar):
        for duration in (15, 30, 45, 90, 600):
            for start in SlotGenerator(calendar).generate_candidates(TUESDAY, duration, now=NOW):
                start_min = start.hour * 60 + start.minute
                assert start >= time(9, 0)
                assert start_min + duration <= 19 * 60
                assert (start_min - 9 * 60) % 30 == 0

    def test_service_longer_than_the_day_has_no_slots(self, calendar):
        assert SlotGenerator(calendar).generate_candidates(TUESDAY, 601, now=NOW) == []

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_has_no_slots(self, calendar, duration):
        assert SlotGenerator(calendar).generate_candidates(TUESDAY, duration, now=NOW) == []

    @pytest.mark.parametrize("day", [MONDAY, SUNDAY])
    def test_closed_day_has_no_slots(self, calendar, day):
        assert SlotGenerator(calendar).generate_candidates(day, 30, now=NOW) == []

    def test_past_day_has_no_slots(self, calendar):
        later = datetime(2030, 6, 5, 8, 0)
        assert SlotGenerator(calendar).generate_candidates(TUESDAY, 30, now=later) == []

    def test_today_drops_elapsed_starts(self, calendar):
        now = datetime(2030, 6, 4, 10, 0)
        slots = SlotGenerator(calendar).generate_candidates(TUESDAY, 30, now=now)

        # 10:00 itself is already under way
        assert hhmm(slots)[0] == "10:30"

    def test_today_keeps_the_next_start(self, calendar):
        now = datetime(2030, 6, 4, 10, 29)
        slots = SlotGenerator(calendar).generate_candidates(TUESDAY, 30, now=now)
        assert hhmm(slots)[0] == "10:30"

    def test_break_window_is_skipped(self):
        calendar = make_calendar(break_start=time(12, 30), break_end=time(14, 0))
        slots = hhmm(SlotGenerator(calendar).generate_candidates(TUESDAY, 60, now=NOW))

        # 11:30-12:30 ends as the break starts; 14:00 starts as it ends
        assert "11:30" in slots
        assert "12:00" not in slots
        assert "12:30" not in slots
        assert "13:30" not in slots
        assert "14:00" in slots

    def test_each_weekday_uses_its_own_window_and_break(self):
        calendar = make_calendar(
            day_hours={"saturday": (time(10, 0), time(16, 0))},
            day_breaks={"tuesday": (time(12, 0), time(13, 0))},
        )
        generator = SlotGenerator(calendar)

        tuesday = hhmm(generator.generate_candidates(TUESDAY, 60, now=NOW))
        saturday = hhmm(generator.generate_candidates(SATURDAY, 60, now=NOW))

        assert tuesday[0] == "09:00"
        assert tuesday[-1] == "18:00"
        assert "11:30" not in tuesday
        assert "12:00" not in tuesday
        assert "13:00" in tuesday
        assert saturday == ["10:00", "10:30", "11:00", "11:30", "12:00", "12:30", "13:00",
                            "13:30", "14:00", "14:30", "15:00"]

    def test_deterministic(self, calendar):
        generator = SlotGenerator(calendar)
        assert generator.generate_candidates(TUESDAY, 45, now=NOW) == generator.generate_candidates(
            TUESDAY, 45, now=NOW
        )


class TestIsCandidate:
    def test_grid_start(self, calendar):
        assert SlotGenerator(calendar).is_candidate(TUESDAY, time(9, 30), 45, now=NOW)

    def test_off_grid_start(self, calendar):
        assert not SlotGenerator(calendar).is_candidate(TUESDAY, time(9, 15), 45, now=NOW)

    def test_start_overrunning_closing(self, calendar):
        assert not SlotGenerator(calendar).is_candidate(TUESDAY, time(18, 30), 45, now=NOW)
