"""
Tests for the command dispatcher in cli/main.py.

The autouse guard points DAYSHAPE_HOME at a temp dir, so every command
here runs against a throwaway database.
"""

import json

import pytest

from cli.main import COMMANDS, main


@pytest.fixture
def initialized(capsys):
    assert main(["init"]) == 0
    capsys.readouterr()


class TestDispatch:
    """Command table and exit codes."""

    def test_help(self, capsys):
        assert main(["help"]) == 0
        assert "COMMANDS" in capsys.readouterr().out

    def test_no_args_shows_help(self, capsys):
        assert main([]) == 0
        assert "override" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        assert main(["frobnicate"]) == 2
        assert "Unknown command" in capsys.readouterr().out

    def test_every_command_documented(self, capsys):
        main(["help"])
        out = capsys.readouterr().out
        for name in COMMANDS:
            if len(name) > 1:
                assert name in out


class TestCommands:
    """End-to-end against a temp database."""

    def test_init_seeds(self, capsys):
        assert main(["init"]) == 0
        assert "5 day types" in capsys.readouterr().out

    def test_week(self, initialized, capsys):
        assert main(["week"]) == 0
        out = capsys.readouterr().out
        assert "Monday: Work Day" in out
        assert "Sunday: Off Day" in out

    def test_holiday_day(self, initialized, capsys):
        assert main(["day", "2026-12-25"]) == 0
        out = capsys.readouterr().out
        assert "Public Holiday" in out
        assert "Christmas Day" in out

    def test_override_then_day(self, initialized, capsys):
        assert main(["override", "2026-10-19", "vacation", "am"]) == 0
        assert main(["day", "2026-10-19"]) == 0
        out = capsys.readouterr().out
        assert "AM: Vacation" in out

    def test_clear_override(self, initialized, capsys):
        main(["override", "2026-10-19", "vacation"])
        assert main(["clear-override", "2026-10-19"]) == 0
        assert "Removed 1 override(s)" in capsys.readouterr().out

    def test_unknown_day_type_fails(self, initialized, capsys):
        assert main(["override", "2026-10-19", "sabbatical"]) == 1
        assert "DayType not found" in capsys.readouterr().out

    def test_bad_date_fails(self, initialized, capsys):
        assert main(["day", "yesterday"]) == 1
        assert "Invalid date" in capsys.readouterr().out

    def test_month(self, initialized, capsys):
        assert main(["month", "2026", "10"]) == 0
        assert "Work %" in capsys.readouterr().out

    def test_year(self, initialized, capsys):
        assert main(["year", "2024"]) == 0
        assert "366" in capsys.readouterr().out

    def test_base(self, initialized, capsys):
        assert main(["base", "sat", "work_day"]) == 0
        main(["week"])
        assert "Saturday: Work Day" in capsys.readouterr().out

    def test_export_import(self, initialized, tmp_path, capsys):
        target = tmp_path / "state.json"
        main(["override", "2026-10-19", "vacation"])
        assert main(["export", str(target)]) == 0
        assert json.loads(target.read_text())["overrides"][0]["day_type"] == "vacation"

        main(["clear-override", "2026-10-19"])
        assert main(["import", str(target)]) == 0
        capsys.readouterr()
        main(["day", "2026-10-19"])
        assert "Vacation" in capsys.readouterr().out

    def test_holidays(self, initialized, capsys):
        assert main(["holidays", "2026", "US"]) == 0
        assert "Independence Day" in capsys.readouterr().out

    def test_categories(self, initialized, capsys):
        assert main(["categories"]) == 0
        assert "No categories." in capsys.readouterr().out
        assert main(["categories", "focus", "#3366ff"]) == 0
        main(["categories"])
        assert "#3366ff" in capsys.readouterr().out
