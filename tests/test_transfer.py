"""
Tests for owner state export/import.
"""

import copy
from datetime import date

import pytest

from dayshape.errors import IntegrityError, ValidationError
from dayshape.planner.transfer import load_payload, validate_payload, write_payload

MONDAY = date(2026, 10, 19)


@pytest.fixture
def planned(workday, owner):
    """A fully populated owner: categories, custom weekday, overrides, custom type."""
    focus = workday.create_category(owner, "focus", color="#112233", label="Focus")
    workday.add_block(owner, "Reading", "21:00", "22:00", day_type="work_day", category_id=focus.id)
    workday.create_day_type(owner, "home_office", "Home Office", "work", color="#654321")
    workday.add_block(owner, "Standup", "09:00", "09:15", day_type="home_office")
    workday.copy_template_to_weekday(owner, "Tuesday")
    workday.add_block(owner, "Piano", "19:00", "20:00", weekday="Tuesday", category_id=focus.id)
    workday.set_weekday_base_type(owner, "Friday", "home_office")
    workday.set_date_override(owner, MONDAY, "vacation", note="trip")
    workday.set_date_override(owner, date(2026, 10, 21), "sick_day", period="pm")
    return workday


def _views(service, owner):
    return (
        [d.to_dict() for d in service.week(owner)],
        service.month(owner, 2026, 10).to_dict(),
        service.year_statistics(owner, 2026).to_dict(),
    )


class TestExport:
    """Export document shape."""

    def test_references_by_key_and_name(self, planned, owner):
        payload = planned.export_state(owner)
        assert payload["format"] == "dayshape"
        assert payload["version"] == 1

        tuesday = next(w for w in payload["weekdays"] if w["weekday"] == 1)
        assert tuesday["base_day_type"] == "work_day"
        assert tuesday["has_custom"] is True
        piano = next(b for b in tuesday["blocks"] if b["name"] == "Piano")
        assert piano == {
            "name": "Piano",
            "start": "19:00",
            "end": "20:00",
            "category": "focus",
            "color": None,
            "sort_order": 5,
        }

        assert {"date": "2026-10-19", "period": "full", "day_type": "vacation", "note": "trip"} in payload[
            "overrides"
        ]

    def test_no_ids_leak(self, planned, owner):
        payload = planned.export_state(owner)
        for day_type in payload["day_types"]:
            assert "id" not in day_type

    def test_file_round_trip(self, planned, owner, tmp_path):
        path = write_payload(planned.export_state(owner), tmp_path / "out" / "state.json")
        assert load_payload(path)["owner_id"] == owner


class TestImport:
    """Import replaces state atomically."""

    def test_round_trip_preserves_views(self, planned, owner):
        before = _views(planned, owner)
        payload = planned.export_state(owner)

        planned.import_state("bob", payload)
        assert _views(planned, "bob") == before

    def test_reimport_replaces_existing_state(self, planned, owner):
        payload = planned.export_state(owner)
        before = _views(planned, owner)
        planned.set_date_override(owner, date(2026, 10, 22), "vacation")

        counts = planned.import_state(owner, payload)
        assert counts["overrides"] == 2
        assert counts["day_types"] == 6
        assert _views(planned, owner) == before

    def test_unresolved_reference_rejected_without_writes(self, planned, owner):
        payload = planned.export_state(owner)
        before = _views(planned, owner)

        bad = copy.deepcopy(payload)
        bad["overrides"].append({"date": "2026-11-02", "period": "full", "day_type": "sabbatical"})
        bad["weekdays"][0]["blocks"].append(
            {"name": "Ghost", "start": "10:00", "end": "11:00", "category": "nope"}
        )

        with pytest.raises(IntegrityError) as exc_info:
            planned.import_state(owner, bad)
        assert len(exc_info.value.problems) == 2
        assert _views(planned, owner) == before

    def test_malformed_value_rejected(self, planned, owner):
        payload = planned.export_state(owner)
        payload["day_types"][0]["template"][0]["start"] = "25:99"
        with pytest.raises(ValidationError):
            planned.import_state(owner, payload)
        assert planned.store.count("day_types", owner_id=owner) == 6

    @pytest.mark.parametrize("value", ["first", [1], {"n": 1}, 1.5])
    def test_non_integer_sort_order_rejected(self, planned, owner, value):
        payload = planned.export_state(owner)
        payload["day_types"][0]["template"][0]["sort_order"] = value
        with pytest.raises(ValidationError, match="sort_order must be an integer"):
            planned.import_state("bob", payload)
        assert planned.store.count("day_types", owner_id="bob") == 0

    def test_non_integer_day_type_sort_order_rejected(self, planned, owner):
        payload = planned.export_state(owner)
        payload["day_types"][0]["sort_order"] = "2"
        with pytest.raises(ValidationError):
            validate_payload(payload)

    def test_missing_required_type(self, planned, owner):
        payload = planned.export_state(owner)
        payload["day_types"] = [d for d in payload["day_types"] if d["key"] != "public_holiday"]
        with pytest.raises(IntegrityError):
            validate_payload(payload)

    def test_mixed_full_and_half_rejected(self, planned, owner):
        payload = planned.export_state(owner)
        payload["overrides"].append({"date": "2026-10-19", "period": "am", "day_type": "sick_day"})
        with pytest.raises(IntegrityError):
            validate_payload(payload)

    def test_wrong_format(self):
        with pytest.raises(ValidationError):
            validate_payload({"format": "other", "version": 1})

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            load_payload(path)
