#!/usr/bin/env python3
"""
dayshape CLI - plan and inspect days from the terminal.

The acting owner comes from DAYSHAPE_OWNER (default "local").
"""

import logging
import sys
from datetime import date

from dayshape import config, paths
from dayshape.errors import PlannerError
from dayshape.observability import OwnerContext, configure_logging, get_owner_id
from dayshape.planner import PlannerService
from dayshape.planner.models import WEEKDAY_NAMES, format_minute, parse_date
from dayshape.planner.transfer import load_payload, write_payload
from dayshape.state_store import get_store

logger = logging.getLogger(__name__)


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [
            max(len(str(row[i])) for row in [headers] + rows)
            for i in range(len(headers))
        ]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _owner() -> str:
    return get_owner_id() or config.DEFAULT_OWNER


def _service() -> PlannerService:
    return PlannerService(get_store())


def _print_blocks(blocks):
    if not blocks:
        print("  (no activities)")
        return
    rows = [
        [
            format_minute(b.start_minute),
            format_minute(b.end_minute),
            b.name,
            b.category or "-",
            f"{b.duration_minutes}m",
        ]
        for b in blocks
    ]
    print_table(["Start", "End", "Activity", "Category", "Length"], rows)


def cmd_init(args):
    """Create directories and the database, then seed the acting owner."""
    print_header("DAYSHAPE - Setup")

    for d in (paths.data_dir(), paths.export_dir()):
        print(f"  ✓ {d}")

    service = _service()
    print(f"  ✓ Database at {service.store.db_path}")

    region = args[0] if args else None
    day_types = service.seed_baseline(_owner(), region=region)
    print(f"  ✓ {len(day_types)} day types for owner '{_owner()}'")

    print("""
Next steps:

  dayshape week              Show the generic week
  dayshape day 2026-12-24    Resolve a date
  dayshape help              All commands
""")


def cmd_seed(args):
    """Seed the baseline day types for the acting owner."""
    region = args[0] if args else None
    service = _service()
    day_types = service.seed_baseline(_owner(), region=region)

    print_header(f"DAY TYPES: {_owner()}")
    print_table(
        ["Key", "Name", "Kind", "Default"],
        [[dt.key, dt.name, dt.kind.value, "yes" if dt.is_default else ""] for dt in day_types],
    )


def cmd_types(args):
    """List the acting owner's day types."""
    service = _service()
    day_types = service.repo.list_day_types(_owner())

    print_header("DAY TYPES")
    if not day_types:
        print("No day types. Run 'seed' first.")
        return
    print_table(
        ["Key", "Name", "Kind", "Default"],
        [[dt.key, dt.name, dt.kind.value, "yes" if dt.is_default else ""] for dt in day_types],
    )


def cmd_categories(args):
    """List categories, or create one when a name is given."""
    service = _service()
    owner = _owner()
    if args:
        color = args[1] if len(args) > 1 else None
        category = service.create_category(owner, args[0], color=color)
        print(f"Created category {category.name} ({category.color})")
        return

    categories = service.repo.list_categories(owner)
    print_header("CATEGORIES")
    if not categories:
        print("No categories.")
        return
    print_table(
        ["Name", "Label", "Color"],
        [[c.name, c.display_label, c.color] for c in categories],
    )


def cmd_week(args):
    """Show the generic week."""
    service = _service()
    owner = _owner()
    week = service.week(owner)
    summary = service.week_summary(owner)

    print_header("GENERIC WEEK")
    start = service.repo.get_settings(owner).week_start
    for descriptor in week[start:] + week[:start]:
        custom = " (custom)" if descriptor.has_custom else ""
        print(f"\n{descriptor.weekday_name}: {descriptor.day_type.name}{custom}")
        _print_blocks(descriptor.blocks)

    print(f"\nPlanned: {summary.total_minutes / 60:.1f}h across {summary.work_like_days} work-like days")


def cmd_day(args):
    """Resolve a single date (default today)."""
    d = parse_date(args[0]) if args else date.today()
    day = _service().resolve_day(_owner(), d)

    print_header(f"{WEEKDAY_NAMES[d.weekday()].upper()} {d.isoformat()}")
    print(f"  Day type: {day.day_type.name} ({day.source})")
    if day.holiday_name:
        print(f"  Holiday:  {day.holiday_name}")
    if day.is_split:
        print(f"  AM: {day.am_type.name}   PM: {day.pm_type.name}")
    print()
    _print_blocks(day.blocks)


def cmd_cweek(args):
    """Show the calendar week containing a date, overrides applied."""
    d = parse_date(args[0]) if args else date.today()
    days = _service().calendar_week(_owner(), d)

    print_header(f"WEEK OF {days[0].date.isoformat()}")
    rows = [
        [
            day.date.isoformat(),
            WEEKDAY_NAMES[day.date.weekday()][:3],
            day.day_type.name,
            day.source,
            len(day.blocks),
        ]
        for day in days
    ]
    print_table(["Date", "Day", "Type", "Source", "Blocks"], rows)


def cmd_month(args):
    """Month classification with work/off counts."""
    if len(args) < 2:
        print("Usage: month <year> <month>")
        return

    summary = _service().month(_owner(), int(args[0]), int(args[1]))

    print_header(f"MONTH {summary.year}-{summary.month:02d}")
    rows = []
    for day in summary.days:
        types = day.day_type.name
        if day.am_type.id != day.pm_type.id:
            types = f"{day.am_type.name} / {day.pm_type.name}"
        rows.append([day.date.isoformat(), WEEKDAY_NAMES[day.date.weekday()][:3], types, day.source])
    print_table(["Date", "Day", "Type", "Source"], rows)

    print(f"\nWork: {summary.work_count}  Off: {summary.off_count}  "
          f"Days: {summary.total_days}  Work %: {summary.work_percent}")


def cmd_year(args):
    """Year statistics by bucket."""
    year = int(args[0]) if args else date.today().year
    stats = _service().year_statistics(_owner(), year)

    print_header(f"YEAR {year}")
    print_table(
        ["Bucket", "Days"],
        [
            ["Work days", stats.work_days],
            ["Public holidays", stats.holidays],
            ["Vacation", stats.vacation],
            ["Sick", stats.sick],
            ["Other off days", stats.off_days],
            ["Total", stats.total],
        ],
    )


def cmd_override(args):
    """Set a date override."""
    if len(args) < 2:
        print("Usage: override <date> <day_type> [full|am|pm] [note...]")
        return

    period = args[2] if len(args) > 2 else "full"
    note = " ".join(args[3:]) or None
    override = _service().set_date_override(_owner(), args[0], args[1], period=period, note=note)
    print(f"✓ {override.date.isoformat()} ({override.period.value}) -> {args[1]}")


def cmd_clear_override(args):
    """Remove the override(s) for a date."""
    if not args:
        print("Usage: clear-override <date> [full|am|pm]")
        return

    period = args[1] if len(args) > 1 else None
    removed = _service().clear_date_override(_owner(), args[0], period=period)
    print(f"✓ Removed {removed} override(s)")


def cmd_base(args):
    """Set a weekday's base day type (clears its customization)."""
    if len(args) < 2:
        print("Usage: base <weekday> <day_type>")
        return

    row = _service().set_weekday_base_type(_owner(), args[0], args[1])
    print(f"✓ {WEEKDAY_NAMES[row['weekday']]} -> {args[1]}")


def cmd_export(args):
    """Export the acting owner's state to JSON."""
    target = args[0] if args else paths.export_dir() / f"{_owner()}-{date.today().isoformat()}.json"
    path = write_payload(_service().export_state(_owner()), target)
    print(f"✓ Exported to {path}")


def cmd_import(args):
    """Replace the acting owner's state from a JSON export."""
    if not args:
        print("Usage: import <file>")
        return

    counts = _service().import_state(_owner(), load_payload(args[0]))
    print("✓ Imported " + ", ".join(f"{v} {k}" for k, v in counts.items()))


def cmd_holidays(args):
    """List public holidays for a year in the owner's region."""
    service = _service()
    year = int(args[0]) if args else date.today().year
    region = args[1] if len(args) > 1 else service.repo.get_settings(_owner()).region

    print_header(f"PUBLIC HOLIDAYS {year} ({region or 'no region'})")
    holidays = service.holidays.holidays_between(region, date(year, 1, 1), date(year, 12, 31))
    if not holidays:
        print("No holidays.")
        return
    print_table(
        ["Date", "Day", "Name"],
        [[h.date.isoformat(), WEEKDAY_NAMES[h.date.weekday()][:3], h.name] for h in holidays],
    )


def cmd_help(args):
    """Show help."""
    print_header("DAYSHAPE CLI")
    print("""
COMMANDS:

  init [region]                   Create data dirs and DB, seed the owner
  seed [region]                   Seed baseline day types
  types                           List day types
  categories [name] [color]       List categories, or create one
  week                            Show the generic week
  day [date]                      Resolve one date (default today)
  cweek [date]                    Calendar week containing a date
  month <year> <month>            Month classification and work %
  year [year]                     Year statistics
  override <date> <type> [p] [n]  Set override (p: full|am|pm, n: note)
  clear-override <date> [p]       Remove override(s) for a date
  base <weekday> <type>           Set a weekday's base day type
  export [file]                   Export owner state to JSON
  import <file>                   Replace owner state from JSON
  holidays [year] [region]        List public holidays
  help                            Show this help

ENVIRONMENT:
  DAYSHAPE_OWNER                  Acting owner (default: local)
  DAYSHAPE_HOME / DAYSHAPE_DB     Data directory / database file
  DAYSHAPE_LOG_LEVEL              Log level (default: INFO)
""")


COMMANDS = {
    "init": cmd_init,
    "seed": cmd_seed,
    "types": cmd_types,
    "categories": cmd_categories,
    "week": cmd_week,
    "w": cmd_week,
    "day": cmd_day,
    "d": cmd_day,
    "cweek": cmd_cweek,
    "month": cmd_month,
    "m": cmd_month,
    "year": cmd_year,
    "y": cmd_year,
    "override": cmd_override,
    "clear-override": cmd_clear_override,
    "base": cmd_base,
    "export": cmd_export,
    "import": cmd_import,
    "holidays": cmd_holidays,
    "help": cmd_help,
    "h": cmd_help,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    configure_logging(config.LOG_LEVEL)

    if not argv:
        cmd_help([])
        return 0

    cmd, args = argv[0], argv[1:]
    if cmd not in COMMANDS:
        print(f"Unknown command: {cmd}")
        print("Run 'help' for available commands.")
        return 2

    with OwnerContext(config.DEFAULT_OWNER):
        try:
            COMMANDS[cmd](args)
        except PlannerError as e:
            logger.error("%s failed: %s", cmd, e)
            print(f"Error: {e}")
            return 1
        except ValueError as e:
            print(f"Error: {e}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
