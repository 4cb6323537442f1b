"""epitok - attendance without paper tokens on the Epitech intranet.

A token is a slip of paper handed to students at an event, whose number they
then enter on the intranet to confirm their presence. epitok lets privileged
staff accounts set presences directly instead.

Typical flow:
    identity = resolve_identity(autologin)
    events = list_events(identity, "2026-10-19")
    events[0].set_presence("jane.doe@epitech.eu", Presence.PRESENT)
    save(events[0], identity)
"""

from epitok.models import Event, EventCode, Presence, Student
from epitok.pages.planning import list_events, parse_event
from epitok.pages.registered import fetch_roster, roster_to_wire, save
from epitok.session import Identity, resolve_identity

__all__ = [
    "Event",
    "EventCode",
    "Presence",
    "Student",
    "Identity",
    "resolve_identity",
    "list_events",
    "parse_event",
    "fetch_roster",
    "roster_to_wire",
    "save",
]
