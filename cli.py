#!/usr/bin/env python3
"""Studio Calendar CLI."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from studio_calendar.calendar import (
    ScheduleError,
    ViewOptions,
    build_calendar_view,
    export_csv,
    export_ics,
    get_range,
    load_client_from_settings,
    normalize_mode,
    parse_date_key,
    shift_anchor,
)
from studio_calendar.calendar.dates import today
from studio_calendar.calendar.labels import range_label
from studio_calendar.calendar.types import EventInstance
from studio_calendar.config import ConfigError, Settings, load_settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studio-calendar",
        description="Calendar views, navigation and export for the studio console.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    range_parser = subparsers.add_parser(
        "range",
        help="Print the fetch range and label for a view.",
    )
    _add_view_arguments(range_parser)

    shift_parser = subparsers.add_parser(
        "shift",
        help="Print the anchor one step backward or forward.",
    )
    _add_view_arguments(shift_parser)
    shift_parser.add_argument(
        "--direction",
        type=int,
        choices=(-1, 1),
        default=1,
        help="-1 for previous, 1 for next.",
    )

    view_parser = subparsers.add_parser(
        "view",
        help="Build a view-model and print it as JSON.",
    )
    _add_view_arguments(view_parser)
    _add_source_arguments(view_parser)
    view_parser.add_argument("--search", default="", help="Filter by title, instructor or room.")

    export_parser = subparsers.add_parser(
        "export",
        help="Export sessions in the view's range as CSV or iCalendar.",
    )
    _add_view_arguments(export_parser)
    _add_source_arguments(export_parser)
    export_parser.add_argument(
        "--format",
        choices=("csv", "ics"),
        default="csv",
        help="Output format.",
    )
    export_parser.add_argument(
        "--name",
        default="Studio",
        help="Calendar name for iCalendar output.",
    )

    subparsers.add_parser(
        "check-config",
        help="Validate the calendar configuration in the environment.",
    )

    return parser


def _add_view_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        choices=("day", "week", "month", "list"),
        default="week",
        help="Calendar view mode.",
    )
    parser.add_argument("--anchor", help="Anchor date (YYYY-MM-DD or DD/MM/YYYY); defaults to today.")


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--events",
        type=Path,
        help="JSON file with a list of event records; otherwise fetch from the schedule API.",
    )


def _load_events_file(path: Path) -> List[Dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("events") or data.get("items") or []
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of events")
    return [item for item in data if isinstance(item, dict)]


def _load_events(args: argparse.Namespace, settings: Settings) -> List[EventInstance]:
    if args.events:
        return [EventInstance.from_dict(item) for item in _load_events_file(args.events)]
    anchor = parse_date_key(args.anchor, settings.tz)
    span = get_range(args.mode, anchor, settings.week_start_index)
    return load_client_from_settings(settings).list_instances(span)


def _load_stats_events(args: argparse.Namespace, settings: Settings) -> Optional[List[EventInstance]]:
    """Current-week sessions for the stats block; an events file is used as is."""
    if args.events:
        return None
    week = get_range("week", today(settings.tz), settings.week_start_index)
    return load_client_from_settings(settings).list_instances(week)


def _cmd_range(args: argparse.Namespace, settings: Settings) -> int:
    anchor = parse_date_key(args.anchor, settings.tz)
    mode = normalize_mode(args.mode)
    span = get_range(mode, anchor, settings.week_start_index)
    print(f"{span.from_key} -> {span.to_key} (exclusive)")
    print(range_label(mode, anchor, span, settings.week_start_index))
    return 0


def _cmd_shift(args: argparse.Namespace, settings: Settings) -> int:
    anchor = parse_date_key(args.anchor, settings.tz)
    print(shift_anchor(args.mode, anchor, args.direction).isoformat())
    return 0


def _cmd_view(args: argparse.Namespace, settings: Settings) -> int:
    try:
        events = _load_events(args, settings)
        stats_events = _load_stats_events(args, settings)
    except (OSError, ValueError, ScheduleError) as exc:
        print(f"Unable to load events: {exc}", file=sys.stderr)
        return 1

    view = build_calendar_view(
        events,
        ViewOptions(
            mode=args.mode,
            anchor_date=args.anchor,
            time_zone=settings.tz,
            week_start_index=settings.week_start_index,
            search_text=args.search,
            stats_events=stats_events,
            grid_start_minutes=settings.grid_start_minutes,
        ),
    )
    print(json.dumps(view.to_api_dict(), indent=2, ensure_ascii=False))
    return 0


def _cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    try:
        events = _load_events(args, settings)
    except (OSError, ValueError, ScheduleError) as exc:
        print(f"Export failed: {exc}", file=sys.stderr)
        return 1

    if args.format == "ics":
        sys.stdout.write(export_ics(events, args.name))
    else:
        sys.stdout.write(export_csv(events, settings.tz))
    return 0


def _cmd_check_config(settings: Settings) -> int:
    print(
        "Calendar configuration loaded",
        f"timezone={settings.time_zone}",
        f"week_start={settings.week_start_index}",
        f"grid_start={settings.grid_start_minutes // 60:02d}:{settings.grid_start_minutes % 60:02d}",
        f"environment={settings.environment}",
    )
    print("Schedule API:", settings.api_base or "not configured")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    if args.command == "range":
        return _cmd_range(args, settings)
    if args.command == "shift":
        return _cmd_shift(args, settings)
    if args.command == "view":
        return _cmd_view(args, settings)
    if args.command == "export":
        return _cmd_export(args, settings)
    if args.command == "check-config":
        return _cmd_check_config(settings)

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
