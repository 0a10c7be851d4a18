"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path


def main() -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(prog="capture-board", description="Opportunity pipeline boards")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings YAML (default: built-in settings + env)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # board
    board_parser = subparsers.add_parser("board", help="Show a board's columns")
    _add_taxonomy_arg(board_parser)
    board_parser.add_argument("--json", action="store_true", help="Print partition as JSON")

    # move
    move_parser = subparsers.add_parser("move", help="Move a card to another stage")
    move_parser.add_argument("record_id", help="Opportunity id")
    move_parser.add_argument("stage", help="Target stage id, e.g. 'opp qualified' or 'High Priority'")
    _add_taxonomy_arg(move_parser)

    # watch
    watch_parser = subparsers.add_parser("watch", help="Follow a board live (Socket.IO)")
    _add_taxonomy_arg(watch_parser)

    # calendar / events / notifications
    subparsers.add_parser("calendar", help="Pending activities with urgency")
    subparsers.add_parser("events", help="Calendar events with urgency")
    notif_parser = subparsers.add_parser("notifications", help="Unread notifications")
    notif_parser.add_argument(
        "--db",
        type=Path,
        default=Path("capture_board.db"),
        help="Path to SQLite read-state database",
    )
    notif_parser.add_argument(
        "--mark-read",
        metavar="ID",
        action="append",
        default=[],
        help="Mark a notification read for today (repeatable)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "board":
        _run_board(args)
    elif args.command == "move":
        _run_move(args)
    elif args.command == "watch":
        _run_watch(args)
    elif args.command == "calendar":
        _run_calendar(args)
    elif args.command == "events":
        _run_events(args)
    elif args.command == "notifications":
        _run_notifications(args)
    else:
        parser.print_help()


def _add_taxonomy_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--taxonomy",
        default="primary",
        choices=["primary", "forecast"],
        help="Which board: leads pipeline (primary) or forecast",
    )


def _load_settings(args: argparse.Namespace):
    from capture_board.config import BoardSettings
    from capture_board.errors import ConfigError

    if args.config is None:
        return BoardSettings().with_env()
    try:
        return BoardSettings.from_yaml(args.config)
    except ConfigError as e:
        raise SystemExit(str(e))


def _backend(settings):
    from capture_board.backend import HttpPipelineBackend

    return HttpPipelineBackend(settings.api_url, token=settings.token, timeout=settings.timeout)


def _print_notification(message: str, severity) -> None:
    print(f"[{severity.value}] {message}", file=sys.stderr)


def _session(args: argparse.Namespace, settings):
    from capture_board.board import BoardSession
    from capture_board.board.session import board_record_filter

    return BoardSession(
        _backend(settings),
        args.taxonomy,
        policy=settings.policy_for(args.taxonomy),
        notifier=_print_notification,
        navigator=lambda intent: print(f"open {intent.path}"),
        record_filter=board_record_filter(args.taxonomy),
    )


def _print_board(session) -> None:
    summaries = session.aggregate()
    buckets = session.partition()
    forecast = session.taxonomy.value == "forecast"
    for stage_id, summary in summaries.items():
        header = f"{summary.label} ({summary.count}) total ${summary.total_value:,.0f}"
        if forecast and summary.count:
            header += f" avg win {summary.avg_win_probability}%"
        print(header)
        for record in buckets[stage_id]:
            print(f"  [{record.id}] {record.name} p{record.priority} ${record.value:,.0f}")


def _run_board(args: argparse.Namespace) -> None:
    """Run board command."""
    settings = _load_settings(args)
    session = _session(args, settings)
    if not session.mount():
        raise SystemExit(1)
    if args.json:
        output = {
            stage: [r.model_dump(mode="json") for r in records]
            for stage, records in session.partition().items()
        }
        print(json.dumps(output, indent=2, default=str))
    else:
        _print_board(session)


def _run_move(args: argparse.Namespace) -> None:
    """Run move command: one full drag gesture through the controller."""
    settings = _load_settings(args)
    session = _session(args, settings)
    if not session.mount():
        raise SystemExit(1)
    drag = session.drag
    try:
        drag.begin_drag(args.record_id)
    except KeyError:
        raise SystemExit(f"No such opportunity on the {args.taxonomy} board: {args.record_id}")
    drag.hover(args.stage)
    outcome = drag.drop(args.stage)
    if outcome is None:
        print(f"Nothing to do: {args.record_id} not moved to '{args.stage}'")
    elif not outcome.success:
        raise SystemExit(1)
    else:
        print(f"{args.record_id}: {outcome.move.source_stage} -> {outcome.move.target_stage}")


def _run_watch(args: argparse.Namespace) -> None:
    """Run watch command: reprint the board on every external change."""
    from capture_board.board import SocketIOSource
    from capture_board.errors import BackendError

    settings = _load_settings(args)
    session = _session(args, settings)
    source = SocketIOSource(settings.api_url, token=settings.token)
    session.add_listener(lambda _records: _print_board(session))
    try:
        session.mount(source, event=settings.invalidation_event)
    except BackendError as e:
        raise SystemExit(str(e))
    try:
        source.wait()
    except KeyboardInterrupt:
        pass
    finally:
        session.unmount()


def _run_calendar(args: argparse.Namespace) -> None:
    """Run calendar command."""
    from capture_board.errors import BackendError
    from capture_board.surfaces import calendar_entries

    settings = _load_settings(args)
    try:
        records = _backend(settings).fetch_records()
    except BackendError as e:
        raise SystemExit(str(e))
    now = datetime.now(timezone.utc)
    for entry in sorted(calendar_entries(records, now), key=lambda e: e.start):
        print(f"{entry.start:%Y-%m-%d %H:%M} [{entry.tier.value:>7}] {entry.title}")


def _run_events(args: argparse.Namespace) -> None:
    """Run events command."""
    from capture_board.errors import BackendError
    from capture_board.surfaces import event_cards

    settings = _load_settings(args)
    try:
        events = _backend(settings).fetch_events()
    except BackendError as e:
        raise SystemExit(str(e))
    for card in event_cards(events, datetime.now(timezone.utc)):
        print(f"{card.event.start:%Y-%m-%d %H:%M} [{card.tier.value:>7}] {card.event.title}")


def _run_notifications(args: argparse.Namespace) -> None:
    """Run notifications command."""
    from capture_board.errors import BackendError
    from capture_board.store import ReadStateStore
    from capture_board.surfaces import NotificationBell, build_notifications

    settings = _load_settings(args)
    bell = NotificationBell(ReadStateStore(args.db))
    for notification_id in args.mark_read:
        bell.mark_read(notification_id)

    backend = _backend(settings)
    try:
        records = backend.fetch_records()
        events = backend.fetch_events()
    except BackendError as e:
        raise SystemExit(str(e))
    window = settings.notifications
    items = build_notifications(
        records,
        events,
        datetime.now(timezone.utc),
        lookback_days=window.lookback_days,
        lookahead_days=window.lookahead_days,
    )
    unread = bell.unread(items)
    if not unread:
        print("No new notifications")
        return
    for n in unread:
        print(f"{n.kind}: {n.title} {n.when}  ({n.id})")


if __name__ == "__main__":
    main()
