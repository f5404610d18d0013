"""
Tests for month, year and generic-week statistics.

The holiday fixture gives DE 2026 five holidays: Jan 1 (Thu), Apr 3 (Fri),
Apr 6 (Mon), Dec 25 (Fri) and Dec 26 (Sat).
"""

from datetime import date

import pytest

from dayshape.errors import ValidationError
from dayshape.planner.statistics import _halves_to_days, _round_half_up


class TestYearStatistics:
    """Jan 1 to Dec 31 tallies."""

    def test_leap_year_total(self, seeded, owner):
        assert seeded.year_statistics(owner, 2024).total == 366

    def test_common_year_total(self, seeded, owner):
        assert seeded.year_statistics(owner, 2026).total == 365

    def test_default_buckets(self, seeded, owner):
        stats = seeded.year_statistics(owner, 2026)
        assert stats.holidays == 5
        assert stats.work_days == 257
        assert stats.off_days == 103
        assert stats.vacation == 0
        assert stats.sick == 0
        assert stats.work_days + stats.holidays + stats.off_days == stats.total

    def test_vacation_and_half_sick_day(self, seeded, owner):
        seeded.set_date_override(owner, date(2026, 10, 19), "vacation")
        seeded.set_date_override(owner, date(2026, 10, 20), "sick_day", period="pm")

        stats = seeded.year_statistics(owner, 2026)
        assert stats.vacation == 1
        assert stats.sick == 0.5
        assert stats.work_days == 255.5
        assert stats.by_day_type["sick_day"] == 0.5

    def test_matching_halves_count_as_whole_day(self, seeded, owner):
        monday = date(2026, 10, 19)
        seeded.set_date_override(owner, monday, "vacation", period="am")
        seeded.set_date_override(owner, monday, "vacation", period="pm")

        stats = seeded.year_statistics(owner, 2026)
        assert stats.vacation == 1
        assert isinstance(stats.vacation, int)
        assert stats.work_days == 256
        assert seeded.day_type(owner, monday).key == "work_day"

    def test_buckets_use_kind_for_custom_types(self, seeded, owner):
        seeded.create_day_type(owner, "home_office", "Home Office", "work")
        seeded.create_day_type(owner, "parental_leave", "Parental Leave", "off")
        seeded.set_date_override(owner, date(2026, 10, 24), "home_office")  # Saturday
        seeded.set_date_override(owner, date(2026, 10, 19), "parental_leave")  # Monday

        stats = seeded.year_statistics(owner, 2026)
        assert stats.work_days == 257
        assert stats.off_days == 103
        assert stats.by_day_type["home_office"] == 1
        assert stats.by_day_type["parental_leave"] == 1

    def test_renaming_does_not_move_buckets(self, seeded, owner):
        seeded.update_day_type(owner, "vacation", name="Urlaub")
        seeded.set_date_override(owner, date(2026, 10, 19), "vacation")
        assert seeded.year_statistics(owner, 2026).vacation == 1

    def test_to_dict(self, seeded, owner):
        data = seeded.year_statistics(owner, 2026).to_dict()
        assert data["year"] == 2026
        assert set(data) >= {"work_days", "holidays", "vacation", "sick", "off_days", "by_day_type"}


class TestYearStatisticsCache:
    """Memoized per owner and year, dropped on any owner write."""

    def test_second_call_is_cached(self, seeded, owner):
        first = seeded.year_statistics(owner, 2026)
        assert seeded.year_statistics(owner, 2026) is first
        assert seeded.cache.stats().hits == 1

    def test_write_invalidates(self, seeded, owner):
        first = seeded.year_statistics(owner, 2026)
        seeded.set_date_override(owner, date(2026, 10, 19), "vacation")
        second = seeded.year_statistics(owner, 2026)
        assert second is not first
        assert second.vacation == 1

    def test_other_owner_untouched(self, seeded, owner):
        seeded.seed_baseline("bob")
        bobs = seeded.year_statistics("bob", 2026)
        seeded.set_date_override(owner, date(2026, 10, 19), "vacation")
        assert seeded.year_statistics("bob", 2026) is bobs

    def test_failed_write_still_invalidates(self, seeded, owner):
        first = seeded.year_statistics(owner, 2026)
        with pytest.raises(ValidationError):
            seeded.set_date_override(owner, "not-a-date", "vacation")
        assert seeded.year_statistics(owner, 2026) is not first


class TestMonth:
    """Per-day classification and work percentage."""

    def test_october_counts(self, seeded, owner):
        summary = seeded.month(owner, 2026, 10)
        assert summary.total_days == 31
        assert len(summary.days) == 31
        assert summary.work_count == 22
        assert summary.off_count == 9
        assert summary.work_percent == 71

    def test_days_resolve_against_actual_dates(self, seeded, owner):
        seeded.set_date_override(owner, date(2026, 10, 19), "vacation")
        summary = seeded.month(owner, 2026, 10)
        day = summary.days[18]
        assert day.date == date(2026, 10, 19)
        assert day.day_type.key == "vacation"
        assert day.source == "override"
        assert summary.work_count == 21

    def test_half_day_counts(self, seeded, owner):
        seeded.set_date_override(owner, date(2026, 10, 20), "sick_day", period="pm")
        summary = seeded.month(owner, 2026, 10)
        assert summary.work_count == 21.5
        assert summary.off_count == 9.5
        assert summary.work_percent == 69

    def test_holiday_month(self, seeded, owner):
        summary = seeded.month(owner, 2026, 12)
        christmas = summary.days[24]
        assert christmas.holiday_name == "Christmas Day"
        assert not christmas.is_work_like

    def test_invalid_month(self, seeded, owner):
        with pytest.raises(ValidationError):
            seeded.month(owner, 2026, 13)

    def test_to_dict_uses_keys(self, seeded, owner):
        data = seeded.month(owner, 2026, 10).to_dict()
        assert data["days"][0]["day_type"] == "work_day"
        assert data["days"][2]["day_type"] == "off_day"


class TestRounding:
    """Count and percentage helpers."""

    def test_round_half_up(self):
        assert _round_half_up(12.5) == 13
        assert _round_half_up(70.97) == 71
        assert _round_half_up(70.4) == 70

    def test_halves_to_days(self):
        assert _halves_to_days(4) == 2
        assert isinstance(_halves_to_days(4), int)
        assert _halves_to_days(3) == 1.5


class TestWeekSummary:
    """Planned minutes across the generic week."""

    def test_minutes(self, workday, owner):
        summary = workday.week_summary(owner)
        assert summary.minutes_by_weekday["Monday"] == 915
        assert summary.minutes_by_weekday["Sunday"] == 240
        assert summary.total_minutes == 5 * 915 + 2 * 240
        assert summary.work_like_days == 5

    def test_minutes_by_category(self, seeded, owner):
        focus = seeded.create_category(owner, "focus")
        seeded.add_block(owner, "Deep Work", "09:00", "12:00", day_type="work_day", category_id=focus.id)
        seeded.add_block(owner, "Lunch", "12:00", "13:00", day_type="work_day")

        summary = seeded.week_summary(owner)
        assert summary.minutes_by_category == {"focus": 5 * 180, None: 5 * 60}
        assert summary.to_dict()["minutes_by_category"]["uncategorized"] == 300
