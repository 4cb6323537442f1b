"""Pydantic models for events, registered students and their presence.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Decoding from raw intranet records lives next to each model so that missing
fields fail fast with an error naming the field.
"""

import datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from epitok.errors import (
    InvalidPresenceError,
    MissingEventCodeError,
    MissingLoginError,
    MissingNameError,
)

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Presence(str, Enum):
    """Attendance status of a student for one event.

    Values are the exact strings the intranet uses on the wire.
    """

    NONE = ""  # no status recorded yet (null on the intranet)
    PRESENT = "present"
    MISSING = "absent"
    NOT_APPLICABLE = "N/A"
    FAILED = "failed"  # the student entered a token but it was not saved

    @classmethod
    def decode(cls, raw: Any) -> "Presence":
        """Map an intranet presence value to a Presence.

        null and the empty string mean no status yet. Any other unknown value
        is rejected rather than guessed.

        Raises:
            InvalidPresenceError: The value is not one of the five known codes.
        """
        if raw is None:
            return cls.NONE
        try:
            return cls(raw)
        except ValueError as e:
            raise InvalidPresenceError(f"Student has an invalid presence code: {raw!r}") from e

    def encode(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _PRESENCE_LABELS[self]

    @property
    def is_decided(self) -> bool:
        return self is not Presence.NONE


_PRESENCE_LABELS = {
    Presence.NONE: "-",
    Presence.PRESENT: "present",
    Presence.MISSING: "absent",
    Presence.NOT_APPLICABLE: "N/A",
    Presence.FAILED: "failed",
}


class Student(BaseModel):
    """A student registered to an event."""

    model_config = ConfigDict(validate_assignment=True)

    login: str = Field(min_length=1)  # school email, unique within a roster
    name: str
    presence: Presence = Presence.NONE

    @classmethod
    def from_record(cls, raw: dict[str, Any]) -> "Student":
        """Build a Student from one entry of an event's registered list.

        Raises:
            MissingLoginError: No login.
            MissingNameError: No display name ("title" on the intranet).
            InvalidPresenceError: Unknown presence code.
        """
        login = raw.get("login")
        if not isinstance(login, str) or not login:
            raise MissingLoginError()

        name = raw.get("title")
        if not isinstance(name, str):
            raise MissingNameError(f"Student {login} does not have a name")

        return cls(login=login, name=name, presence=Presence.decode(raw.get("present")))

    def set_presence(self, presence: Presence) -> None:
        self.presence = presence


class EventCode(BaseModel):
    """Five-part identifier addressing an event on the intranet."""

    model_config = ConfigDict(frozen=True)

    year: str = Field(min_length=1)
    module: str = Field(min_length=1)
    instance: str = Field(min_length=1)
    activity: str = Field(min_length=1)
    event: str = Field(min_length=1)

    # intranet record field for each component, in path order
    RECORD_FIELDS: ClassVar[dict[str, str]] = {
        "year": "scolaryear",
        "module": "codemodule",
        "instance": "codeinstance",
        "activity": "codeacti",
        "event": "codeevent",
    }

    @classmethod
    def from_record(cls, raw: dict[str, Any]) -> "EventCode":
        """Read the five code components from a planning record.

        Raises:
            MissingEventCodeError: Any component is absent or empty.
        """
        parts: dict[str, str] = {}
        for name, record_field in cls.RECORD_FIELDS.items():
            value = raw.get(record_field)
            if not isinstance(value, str) or not value:
                raise MissingEventCodeError(f"Event doesn't have a url (missing {record_field})")
            parts[name] = value
        return cls(**parts)

    @property
    def page_path(self) -> str:
        """Path of the activity page that lists this event on the intranet."""
        return f"/module/{self.year}/{self.module}/{self.instance}/{self.activity}/"

    @property
    def api_path(self) -> str:
        """Path addressing the event itself in the JSON webservice."""
        return f"{self.page_path}{self.event}"

    def __str__(self) -> str:
        return self.api_path


class Event(BaseModel):
    """A token-eligible event and the students registered to it.

    The roster is owned by the event: students are only changed through the
    presence mutators below.
    """

    code: EventCode
    title: str
    module: str
    date: datetime.date
    start: str = Field(pattern=TIME_OF_DAY_PATTERN)
    end: str = Field(pattern=TIME_OF_DAY_PATTERN)
    students: list[Student] = Field(default_factory=list)

    @field_validator("students")
    @classmethod
    def unique_logins(cls, students: list[Student]) -> list[Student]:
        seen: set[str] = set()
        for student in students:
            if student.login in seen:
                raise ValueError(f"student {student.login} is registered twice")
            seen.add(student.login)
        return students

    def page_url(self, intra_url: str) -> str:
        return f"{intra_url.rstrip('/')}{self.code.page_path}"

    def get_student(self, login: str) -> Student | None:
        for student in self.students:
            if student.login == login:
                return student
        return None

    def set_presence(self, login: str, presence: Presence) -> bool:
        """Set the presence of one student.

        Returns:
            True if the student was found and updated, False if no student
            with that login is registered.
        """
        student = self.get_student(login)
        if student is None:
            return False
        student.set_presence(presence)
        return True

    def set_all(self, presence: Presence) -> None:
        for student in self.students:
            student.set_presence(presence)

    def set_remaining(self, presence: Presence) -> None:
        """Give a presence to every student that does not have one yet."""
        for student in self.undecided():
            student.set_presence(presence)

    def undecided(self) -> list[Student]:
        return [s for s in self.students if s.presence is Presence.NONE]

    def count(self, presence: Presence) -> int:
        return sum(1 for s in self.students if s.presence is presence)
