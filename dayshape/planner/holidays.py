"""
Public holiday reference data.

A HolidayCalendar answers "is this date a public holiday in this region".
It is global, read-only data shared across owners and injected into the
resolver rather than looked up through a singleton.

Sources:
- dayshape/data/public_holidays.yaml (recurring MM-DD entries and dated entries)
- the public_holidays table in the state store
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublicHoliday:
    region: str
    date: date
    name: str

    def to_dict(self) -> dict:
        return {"region": self.region, "date": self.date.isoformat(), "name": self.name}


class HolidayCalendar:
    """
    Region-scoped holiday lookup.

    Dated entries ("2026-04-03") take precedence over recurring entries
    ("12-25") that fall on the same day.
    """

    def __init__(
        self,
        holidays: Iterable[PublicHoliday] = (),
        recurring: dict[str, list[tuple[str, int, int]]] | None = None,
    ):
        self._dated: dict[tuple[str, date], str] = {}
        for holiday in holidays:
            self._dated[(holiday.region.upper(), holiday.date)] = holiday.name

        # region -> [(name, month, day)]
        self._recurring: dict[str, list[tuple[str, int, int]]] = {
            region.upper(): list(entries) for region, entries in (recurring or {}).items()
        }

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "HolidayCalendar":
        """
        Load holidays from YAML::

            regions:
              DE:
                recurring:
                  - {name: "New Year's Day", date: "01-01"}
                dated:
                  - {name: "Good Friday", date: "2026-04-03"}

        A missing or unreadable file yields an empty calendar.
        """
        config = cls._load_config(Path(config_path))
        dated: list[PublicHoliday] = []
        recurring: dict[str, list[tuple[str, int, int]]] = {}

        for region, region_cfg in (config.get("regions") or {}).items():
            region = str(region).upper()
            region_cfg = region_cfg or {}
            for entry in region_cfg.get("recurring") or []:
                try:
                    month, day = (int(p) for p in str(entry["date"]).split("-"))
                    date(2000, month, day)  # leap year, so 02-29 is accepted
                except (KeyError, ValueError) as exc:
                    logger.warning("Skipping recurring holiday %r in %s: %s", entry, region, exc)
                    continue
                recurring.setdefault(region, []).append((entry.get("name", "Holiday"), month, day))
            for entry in region_cfg.get("dated") or []:
                try:
                    holiday_date = date.fromisoformat(str(entry["date"]))
                except (KeyError, ValueError) as exc:
                    logger.warning("Skipping dated holiday %r in %s: %s", entry, region, exc)
                    continue
                dated.append(PublicHoliday(region, holiday_date, entry.get("name", "Holiday")))

        calendar = cls(dated, recurring)
        logger.debug("Loaded holidays for regions %s from %s", calendar.regions(), config_path)
        return calendar

    @classmethod
    def from_rows(cls, rows: Iterable[dict]) -> "HolidayCalendar":
        """Build from public_holidays table rows."""
        return cls(
            PublicHoliday(row["region"], date.fromisoformat(row["date"]), row["name"])
            for row in rows
        )

    @staticmethod
    def _load_config(config_path: Path) -> dict:
        """Load YAML config, return empty dict on failure."""
        if not config_path.exists():
            logger.warning("Holiday config not found at %s, no holidays loaded", config_path)
            return {}
        try:
            with open(config_path) as f:
                return yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as exc:
            logger.error("Failed to load holiday config %s: %s", config_path, exc)
            return {}

    def merged(self, other: "HolidayCalendar") -> "HolidayCalendar":
        """A new calendar holding both sets; *other* wins on conflicts."""
        combined = HolidayCalendar()
        combined._dated = {**self._dated, **other._dated}
        combined._recurring = {
            region: self._recurring.get(region, []) + other._recurring.get(region, [])
            for region in set(self._recurring) | set(other._recurring)
        }
        return combined

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def regions(self) -> list[str]:
        return sorted({region for region, _ in self._dated} | set(self._recurring))

    def holiday_name(self, region: str | None, d: date) -> str | None:
        """Holiday name if d is a holiday in region, else None."""
        if not region:
            return None
        region = region.upper()
        name = self._dated.get((region, d))
        if name is not None:
            return name
        for name, month, day in self._recurring.get(region, []):
            if d.month == month and d.day == day:
                return name
        return None

    def is_holiday(self, region: str | None, d: date) -> bool:
        return self.holiday_name(region, d) is not None

    def holidays_between(self, region: str | None, start: date, end: date) -> list[PublicHoliday]:
        """Holidays in region from start to end inclusive, in date order."""
        found = []
        current = start
        while current <= end:
            name = self.holiday_name(region, current)
            if name is not None:
                found.append(PublicHoliday(region.upper(), current, name))
            current += timedelta(days=1)
        return found

    def __len__(self) -> int:
        return len(self._dated) + sum(len(v) for v in self._recurring.values())
