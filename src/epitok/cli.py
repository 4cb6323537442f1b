"""Command line interface for marking attendance on the intranet.

Run with: epitok whoami
Events:   epitok events --date 2026-10-19
JSON:     epitok events --date 2026-10-19 --json
Mark:     epitok mark --event 1 --present jane.doe@epitech.eu --na john.roe@epitech.eu
Dry run:  epitok mark --event 1 --all-present --dry-run

The autologin link comes from --autologin or the INTRA_AUTOLOGIN environment
variable (a .env file in the working directory is read too).

Exit codes:
  0 = success
  1 = error (message on stderr)
"""

import argparse
import json
import sys
from datetime import date

from epitok.config import get_config
from epitok.errors import EpitokError
from epitok.intra import IntraClient
from epitok.logging import get_logger, setup_logging_from_config
from epitok.models import Event, Presence
from epitok.pages.planning import list_events
from epitok.pages.registered import roster_to_wire, save
from epitok.session import Identity, resolve_identity

log = get_logger(__name__)


def _err(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epitok",
        description="Manage event presences on the intranet without paper tokens.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--autologin",
        type=str,
        default=None,
        help="Autologin link (default: INTRA_AUTOLOGIN from the environment).",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: LOG_LEVEL).")
    parser.add_argument("--log-json", action="store_true", help="Output logs as JSON.")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("whoami", help="Print the login behind the autologin link.")

    events = sub.add_parser("events", help="List the token-eligible events of a day.")
    events.add_argument("--date", type=str, default=None, help="YYYY-MM-DD (default: today).")
    events.add_argument("--json", action="store_true", help="Output JSON instead of a table.")

    mark = sub.add_parser("mark", help="Set presences for one event and upload them.")
    mark.add_argument("--date", type=str, default=None, help="YYYY-MM-DD (default: today).")
    mark.add_argument(
        "--event",
        type=int,
        required=True,
        help="Event number, as shown by the events command (starting at 1).",
    )
    bulk = mark.add_mutually_exclusive_group()
    bulk.add_argument("--all-present", action="store_true", help="Mark every student present first.")
    bulk.add_argument("--all-missing", action="store_true", help="Mark every student absent first.")
    mark.add_argument("--present", nargs="+", default=[], metavar="LOGIN", help="Students to mark present.")
    mark.add_argument("--missing", nargs="+", default=[], metavar="LOGIN", help="Students to mark absent.")
    mark.add_argument("--na", nargs="+", default=[], metavar="LOGIN", help="Students to mark N/A.")
    mark.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the form that would be uploaded instead of uploading it.",
    )
    return parser


def _format_table(events: list[Event]) -> str:
    """Format events and their rosters as a human-readable table.

    Columns: # | Time | Module | Activity | Students
    """
    if not events:
        return "(no events scheduled)"

    headers = ["#", "Time", "Module", "Activity", "Students"]
    rows = [
        [str(i), f"{e.start}-{e.end}", e.module, e.title, str(len(e.students))]
        for i, e in enumerate(events, start=1)
    ]

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)

    lines = [header_line, separator]
    for row, event in zip(rows, events):
        lines.append(" | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)))
        for student in event.students:
            lines.append(f"    {student.presence.label:<8} {student.login} ({student.name})")
    return "\n".join(lines)


def _cmd_whoami(identity: Identity) -> int:
    print(identity.login)
    return 0


def _cmd_events(args: argparse.Namespace, identity: Identity, client: IntraClient) -> int:
    events = list_events(identity, args.date or date.today(), client)
    if args.json:
        output = [event.model_dump(mode="json") for event in events]
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print(_format_table(events))
    return 0


def _cmd_mark(args: argparse.Namespace, identity: Identity, client: IntraClient) -> int:
    events = list_events(identity, args.date or date.today(), client)
    if not 1 <= args.event <= len(events):
        _err(f"error: no event #{args.event} ({len(events)} events listed)")
        return 1
    event = events[args.event - 1]

    if args.all_present:
        event.set_all(Presence.PRESENT)
    elif args.all_missing:
        event.set_all(Presence.MISSING)

    changes = (
        [(login, Presence.PRESENT) for login in args.present]
        + [(login, Presence.MISSING) for login in args.missing]
        + [(login, Presence.NOT_APPLICABLE) for login in args.na]
    )
    for login, presence in changes:
        if not event.set_presence(login, presence):
            log.warning("student_not_registered", login=login, event_path=event.code.api_path)
            _err(f"warning: {login} is not registered to {event.title}")

    if args.dry_run:
        event.set_remaining(Presence.MISSING)
        print(json.dumps(roster_to_wire(event.students), indent=2, ensure_ascii=False))
        return 0

    save(event, identity, client)
    print(
        f"{event.title}: {event.count(Presence.PRESENT)} present, "
        f"{event.count(Presence.MISSING)} absent, "
        f"{event.count(Presence.NOT_APPLICABLE)} N/A"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging_from_config(config, json_output=args.log_json or None, log_level=args.log_level)

    autologin = args.autologin or config.intra_autologin
    if not autologin:
        _err("error: no autologin link (use --autologin or set INTRA_AUTOLOGIN)")
        return 1

    try:
        with IntraClient(config) as client:
            identity = resolve_identity(autologin, client)
            if args.command == "whoami":
                return _cmd_whoami(identity)
            if args.command == "events":
                return _cmd_events(args, identity, client)
            return _cmd_mark(args, identity, client)
    except EpitokError as e:
        _err(f"error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
