"""Planning - lists the token-eligible events of a day.

Endpoint, relative to the autologin link:
  GET /planning/load?format=json&start=YYYY-MM-DD&end=YYYY-MM-DD

Each planning record carries:
  scolaryear, codemodule, codeinstance, codeacti, codeevent -> event code
  acti_title, titlemodule -> display labels
  start, end -> "YYYY-MM-DD HH:MM:SS"
  is_rdv -> "0" for regular sessions; appointment slots ("1") take no tokens

Rosters are fetched eagerly: an Event only exists once its students are known.
"""

import datetime
from collections.abc import Callable
from typing import Any

from epitok.errors import (
    EmptyResponseError,
    InvalidEndTimeError,
    InvalidStartTimeError,
    MissingModuleError,
    MissingTitleError,
)
from epitok.intra import IntraClient
from epitok.logging import get_logger
from epitok.models import Event, EventCode, Student
from epitok.pages.registered import fetch_roster
from epitok.session import Identity
from epitok.utils import DATE_FORMAT, parse_intra_datetime, parse_listing_date

log = get_logger(__name__)

RosterFetcher = Callable[[EventCode], list[Student]]


def is_token_eligible(raw: dict[str, Any]) -> bool:
    """Appointment slots are flagged with is_rdv != "0" and take no tokens."""
    marker = raw.get("is_rdv")
    return marker is None or str(marker) == "0"


def parse_event(raw: dict[str, Any], fetch_roster: RosterFetcher) -> Event | None:
    """Build an Event from one planning record.

    Fields are checked in order and the first missing one fails the record.
    The roster is only fetched once every field is valid.

    Args:
        raw: One record of the planning listing.
        fetch_roster: Returns the students registered to an event code.

    Returns:
        The Event, or None when the record is not token-eligible.

    Raises:
        EventError: A required field is missing or unparsable.
        StudentError, TransportError: Propagated from the roster fetch.
    """
    if not is_token_eligible(raw):
        log.debug("event_skipped", reason="not_token_eligible", title=raw.get("acti_title"))
        return None

    code = EventCode.from_record(raw)

    title = raw.get("acti_title")
    if not isinstance(title, str):
        raise MissingTitleError(f"Event {code.api_path} does not have a title")

    module = raw.get("titlemodule")
    if not isinstance(module, str):
        raise MissingModuleError(f"Event {code.api_path} does not belong to a module")

    start = parse_intra_datetime(raw.get("start"))
    if start is None:
        raise InvalidStartTimeError(f"Event {code.api_path} does not have a starting time")

    end = parse_intra_datetime(raw.get("end"))
    if end is None:
        raise InvalidEndTimeError(f"Event {code.api_path} does not have a finish time")

    students = fetch_roster(code)

    return Event(
        code=code,
        title=title,
        module=module,
        date=start.date(),
        start=start.strftime("%H:%M"),
        end=end.strftime("%H:%M"),
        students=students,
    )


def planning_url(identity: Identity, day: datetime.date) -> str:
    day_str = day.strftime(DATE_FORMAT)
    return f"{identity.credential}/planning/load?format=json&start={day_str}&end={day_str}"


def list_events(
    identity: Identity,
    day: datetime.date | str,
    client: IntraClient | None = None,
) -> list[Event]:
    """List the token-eligible events of a day with their rosters.

    Events keep the order of the intranet listing. A day without anything
    scheduled (weekends, holidays) gives an empty list.

    Args:
        identity: Signed-in account.
        day: Calendar date, as a date or "YYYY-MM-DD".
        client: Transport to use, owned by the caller. When omitted, a client on
            the global configuration is opened and closed for this call.

    Raises:
        InvalidDateError: The date is not valid; nothing is requested.
        EventError, StudentError, TransportError: The first failure met.
    """
    listing_date = parse_listing_date(day)
    if client is None:
        with IntraClient() as owned:
            return list_events(identity, listing_date, owned)

    try:
        records = client.fetch_json_array(planning_url(identity, listing_date))
    except EmptyResponseError:
        log.info("events_listed", date=listing_date.isoformat(), events=0, empty=True)
        return []

    def roster(code: EventCode) -> list[Student]:
        return fetch_roster(identity, code, client)

    events: list[Event] = []
    for record in records:
        event = parse_event(record, roster)
        if event is not None:
            events.append(event)

    log.info(
        "events_listed",
        date=listing_date.isoformat(),
        records=len(records),
        events=len(events),
    )
    return events
