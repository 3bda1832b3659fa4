"""Business-day counting."""

from __future__ import annotations

from datetime import date, datetime

from leavedesk.leave.calendar import business_days_between, is_business_day

# 2026-03-02 is a Monday
MON = date(2026, 3, 2)
FRI = date(2026, 3, 6)
SAT = date(2026, 3, 7)
SUN = date(2026, 3, 8)


class TestBusinessDaysBetween:

    def test_full_week_counts_weekdays_only(self):
        assert business_days_between(MON, SUN) == 5

    def test_monday_to_friday(self):
        assert business_days_between(MON, FRI) == 5

    def test_same_weekday_is_one(self):
        assert business_days_between(MON, MON) == 1

    def test_same_weekend_day_is_zero(self):
        assert business_days_between(SAT, SAT) == 0

    def test_weekend_only_range_is_zero(self):
        assert business_days_between(SAT, SUN) == 0

    def test_span_across_weekend(self):
        # Fri → next Tue: Fri, Mon, Tue
        assert business_days_between(FRI, date(2026, 3, 10)) == 3

    def test_two_weeks(self):
        assert business_days_between(MON, date(2026, 3, 15)) == 10

    def test_inverted_range_is_zero(self):
        assert business_days_between(FRI, MON) == 0

    def test_time_of_day_is_ignored(self):
        start = datetime(2026, 3, 2, 23, 59)
        end = datetime(2026, 3, 3, 0, 1)
        assert business_days_between(start, end) == 2


def test_is_business_day():
    assert is_business_day(MON)
    assert is_business_day(FRI)
    assert not is_business_day(SAT)
    assert not is_business_day(datetime(2026, 3, 8, 12, 0))
