"""CLI entry point for Calendar Grid application."""

import argparse
import asyncio
import calendar
import sys
from datetime import date, datetime
from pathlib import Path

from .config import CardConfig, config, load_card_config
from .grid.controller import MonthViewController, RenderModel
from .readers.base import EventReader
from .readers.file_reader import FileEventReader
from .readers.home_assistant import HomeAssistantEventReader
from .utils.exceptions import CalendarGridError
from .utils.logging import setup_logging


def _parse_date(value: str, fmt: str) -> date:
    try:
        return datetime.strptime(value, fmt).date()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected {fmt}") from e


def _create_reader(args, tz) -> EventReader:
    """Pick the event reader: a local events file or Home Assistant."""
    if args.events_file:
        return FileEventReader(Path(args.events_file), tz)
    return HomeAssistantEventReader(config.ha, tz)


def _weekday_header(card: CardConfig) -> list[str]:
    names = list(calendar.day_abbr)
    if not card.week_starts_on_monday:
        names = names[-1:] + names[:-1]
    return [name[:2] for name in names]


def _print_grid(model: RenderModel, card: CardConfig) -> None:
    print(f"\n{model.layout.first_of_month.strftime('%B %Y'):^35}")
    print(" ".join(f"{name:>4}" for name in _weekday_header(card)))

    for row_start in range(0, len(model.cells), 7):
        row = []
        for cell in model.cells[row_start:row_start + 7]:
            selected = ">" if cell.is_selected else " "
            mark = "*" if cell.markers else (" " if cell.in_month else ".")
            row.append(f"{selected}{cell.day.day:>2}{mark}")
        print(" ".join(row))

    marked = [cell for cell in model.cells if cell.markers and cell.in_month]
    if marked:
        print()
        for cell in marked:
            names = ", ".join(source.display_name for source in cell.markers)
            print(f"  {cell.key}: {names}")


def _print_events(model: RenderModel, card: CardConfig, selected_day: date) -> None:
    view = model.event_list
    count = f" ({view.total})" if card.events.show_count else ""
    print(f"\n{selected_day.strftime('%A, %d %b %Y')}{count}")

    if view.total == 0:
        print("  No events")
        return

    for item in view.items:
        ev = item.event
        when = "All day" if ev.all_day else ev.start.strftime("%H:%M")
        line = f"  {when:>7}  {ev.title}  [{ev.source.display_name}]"
        if item.ongoing and item.ongoing.text:
            line += f"  {item.ongoing.text}"
        print(line)

    if view.hidden_count > 0 and card.events.show_more:
        print(f"  +{view.hidden_count} more")


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Calendar Grid - month grid with markers from several calendars"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Card configuration YAML (default: CARD_CONFIG_PATH or card_config.yaml)",
    )
    parser.add_argument(
        "--month",
        type=lambda v: _parse_date(v, "%Y-%m"),
        default=None,
        help="Month to show (YYYY-MM format, default: current month)",
    )
    parser.add_argument(
        "--select",
        type=lambda v: _parse_date(v, "%Y-%m-%d"),
        default=None,
        help="Day whose events are listed (YYYY-MM-DD format, default: today)",
    )
    parser.add_argument(
        "--events-file",
        type=str,
        default=None,
        help="Read events from a YAML file instead of Home Assistant",
    )
    parser.add_argument(
        "--disable",
        nargs="*",
        default=[],
        help="Calendar id(s) to toggle off",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    log_level = "DEBUG" if args.verbose else config.log_level
    logger = setup_logging(level=log_level, log_file=config.log_file)

    try:
        tz = config.get_tz()
        card = load_card_config(Path(args.config) if args.config else config.card_config_path)

        controller = MonthViewController(card, _create_reader(args, tz).fetch_events, tz=tz)
        if args.select:
            controller.go_today(args.select)
        if args.month:
            controller.show_month(args.month)
        for source_id in args.disable:
            controller.toggle_source(source_id)

        asyncio.run(controller.load_visible_range())
        model = controller.render()

        _print_grid(model, card)
        _print_events(model, card, controller.state.selected_day)

        if model.last_error:
            logger.error(f"Error: {model.last_error}")
            return 1
        return 0

    except CalendarGridError as e:
        logger.error(f"Calendar grid error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
