"""Registered students of an event: reading the roster and uploading presences.

Endpoints, relative to the autologin link:
  GET  <event api path>/registered?format=json
    -> [{"login": "jane.doe@epitech.eu", "title": "Jane Doe", "present": "present" | null, ...}]
  POST <event api path>/updateregistered?format=json
    form: items[0][login]=...&items[0][present]=...&items[1][login]=...

The bracketed item keys are fixed by the intranet and built only here.
"""

from collections.abc import Iterable

from epitok.errors import DuplicateStudentError, EmptyResponseError
from epitok.intra import IntraClient
from epitok.logging import get_logger
from epitok.models import Event, EventCode, Presence, Student
from epitok.session import Identity

log = get_logger(__name__)

ITEM_LOGIN_KEY = "items[{index}][login]"
ITEM_PRESENCE_KEY = "items[{index}][present]"


def registered_url(identity: Identity, code: EventCode) -> str:
    return f"{identity.credential}{code.api_path}/registered?format=json"


def update_url(identity: Identity, code: EventCode) -> str:
    return f"{identity.credential}{code.api_path}/updateregistered?format=json"


def fetch_roster(
    identity: Identity, code: EventCode, client: IntraClient
) -> list[Student]:
    """Fetch the students registered to an event, in intranet order.

    An empty answer means nobody is registered and yields an empty list.

    Raises:
        StudentError: A record lacks a login or name, has an unknown
            presence code, or repeats a login.
        TransportError: The list could not be fetched.
    """
    try:
        records = client.fetch_json_array(registered_url(identity, code))
    except EmptyResponseError:
        log.info("roster_fetched", event_path=code.api_path, students=0)
        return []

    students: list[Student] = []
    seen: set[str] = set()
    for record in records:
        student = Student.from_record(record)
        if student.login in seen:
            raise DuplicateStudentError(
                f"Student {student.login} is registered twice to {code.api_path}"
            )
        seen.add(student.login)
        students.append(student)

    log.info("roster_fetched", event_path=code.api_path, students=len(students))
    return students


def roster_to_wire(students: Iterable[Student]) -> dict[str, str]:
    """Encode a roster as the form fields of the update endpoint.

    Each student at position i contributes items[i][login] and items[i][present],
    in roster order.
    """
    form: dict[str, str] = {}
    for index, student in enumerate(students):
        form[ITEM_LOGIN_KEY.format(index=index)] = student.login
        form[ITEM_PRESENCE_KEY.format(index=index)] = student.presence.encode()
    return form


def save(event: Event, identity: Identity, client: IntraClient | None = None) -> None:
    """Upload the presences of an event's roster.

    Students still without a status are marked absent first, so the intranet
    never receives an undecided entry.

    A client is opened and closed for this call when none is given.

    Raises:
        TransportError: The upload failed. Local presences are kept as set.
    """
    if client is None:
        with IntraClient() as owned:
            return save(event, identity, owned)

    event.set_remaining(Presence.MISSING)
    form = roster_to_wire(event.students)
    client.post_form(update_url(identity, event.code), form)

    log.info(
        "presences_uploaded",
        event_path=event.code.api_path,
        students=len(event.students),
        present=event.count(Presence.PRESENT),
        absent=event.count(Presence.MISSING),
    )
