"""
Tests for HolidayCalendar and the public_holidays table.
"""

from datetime import date
from pathlib import Path

import dayshape
from dayshape import config, paths
from dayshape.planner.holidays import HolidayCalendar, PublicHoliday
from dayshape.planner.repository import load_holidays, save_holidays


class TestHolidayCalendar:
    """Region-scoped lookups."""

    def test_recurring_every_year(self, holidays):
        assert holidays.holiday_name("DE", date(2026, 12, 25)) == "Christmas Day"
        assert holidays.is_holiday("DE", date(2031, 12, 25))

    def test_dated_only_that_year(self, holidays):
        assert holidays.is_holiday("DE", date(2026, 4, 3))
        assert not holidays.is_holiday("DE", date(2027, 4, 3))

    def test_region_is_case_insensitive(self, holidays):
        assert holidays.is_holiday("de", date(2026, 1, 1))

    def test_unknown_or_missing_region(self, holidays):
        assert not holidays.is_holiday("FR", date(2026, 1, 1))
        assert not holidays.is_holiday(None, date(2026, 1, 1))

    def test_dated_entry_wins_over_recurring(self):
        calendar = HolidayCalendar(
            [PublicHoliday("GB", date(2026, 12, 25), "Christmas (observed)")],
            recurring={"GB": [("Christmas Day", 12, 25)]},
        )
        assert calendar.holiday_name("GB", date(2026, 12, 25)) == "Christmas (observed)"

    def test_holidays_between(self, holidays):
        found = holidays.holidays_between("DE", date(2026, 1, 1), date(2026, 12, 31))
        assert [h.date for h in found] == [
            date(2026, 1, 1),
            date(2026, 4, 3),
            date(2026, 4, 6),
            date(2026, 12, 25),
            date(2026, 12, 26),
        ]

    def test_merged_other_wins(self, holidays):
        extra = HolidayCalendar([PublicHoliday("DE", date(2026, 4, 3), "Karfreitag")])
        merged = holidays.merged(extra)
        assert merged.holiday_name("DE", date(2026, 4, 3)) == "Karfreitag"
        assert merged.is_holiday("DE", date(2026, 12, 25))


class TestYamlLoading:
    """Bundled dayshape/data/public_holidays.yaml."""

    def test_project_config_loads(self):
        calendar = HolidayCalendar.from_yaml(config.HOLIDAYS_FILE)
        assert {"DE", "GB", "US"} <= set(calendar.regions())
        assert calendar.holiday_name("DE", date(2026, 10, 3)) == "German Unity Day"
        assert calendar.is_holiday("US", date(2026, 11, 26))

    def test_default_file_ships_inside_package(self):
        package_dir = Path(dayshape.__file__).resolve().parent
        default = paths.package_data_dir() / "public_holidays.yaml"
        assert default.is_relative_to(package_dir)
        assert default.is_file()
        assert HolidayCalendar.from_yaml(default).is_holiday("DE", date(2026, 12, 25))

    def test_missing_file_is_empty(self, tmp_path):
        assert len(HolidayCalendar.from_yaml(tmp_path / "missing.yaml")) == 0

    def test_malformed_entries_skipped(self, tmp_path):
        path = tmp_path / "holidays.yaml"
        path.write_text(
            "regions:\n"
            "  NL:\n"
            "    recurring:\n"
            "      - {name: Koningsdag, date: '04-27'}\n"
            "      - {name: Broken, date: '13-45'}\n"
            "    dated:\n"
            "      - {name: Nope, date: 'tomorrow'}\n"
        )
        calendar = HolidayCalendar.from_yaml(path)
        assert len(calendar) == 1
        assert calendar.is_holiday("NL", date(2026, 4, 27))

    def test_invalid_yaml_is_empty(self, tmp_path):
        path = tmp_path / "holidays.yaml"
        path.write_text("regions: [unclosed")
        assert len(HolidayCalendar.from_yaml(path)) == 0


class TestHolidayTable:
    """public_holidays rows in the state store."""

    def test_save_and_load(self, store):
        save_holidays(
            store,
            [
                PublicHoliday("at", date(2026, 10, 26), "Nationalfeiertag"),
                PublicHoliday("AT", date(2026, 12, 8), "Mariä Empfängnis"),
            ],
        )
        calendar = load_holidays(store, region="at")
        assert calendar.holiday_name("AT", date(2026, 10, 26)) == "Nationalfeiertag"
        assert len(calendar) == 2

    def test_save_upserts_by_region_and_date(self, store):
        save_holidays(store, [PublicHoliday("AT", date(2026, 10, 26), "Old")])
        save_holidays(store, [PublicHoliday("AT", date(2026, 10, 26), "New")])
        assert store.count("public_holidays") == 1
        assert load_holidays(store).holiday_name("AT", date(2026, 10, 26)) == "New"

    def test_service_save_refreshes_resolution(self, seeded, owner):
        seeded.update_settings(owner, region="AT")
        monday = date(2026, 10, 26)
        assert seeded.day_type(owner, monday).key == "work_day"

        seeded.save_holidays([PublicHoliday("AT", monday, "Nationalfeiertag")])
        assert seeded.day_type(owner, monday).key == "public_holiday"
