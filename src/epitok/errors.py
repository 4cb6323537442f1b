"""Error hierarchy for intranet access and attendance records.

Every failure is tagged with the stage that produced it so callers can print a
precise message. The transient/permanent split lets tenacity retry decorators
classify what is worth another attempt.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def fetch_planning(url: str):
        ...
"""


class EpitokError(Exception):
    """Base exception for all epitok errors."""

    default_message = "Unexpected intranet error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class TransientError(EpitokError):
    """Temporary failure that may succeed on retry.

    Examples: connection reset, timeouts, 502/503 from the intranet.
    """


# --- Transport -------------------------------------------------------------


class TransportError(EpitokError):
    """Failure while talking to the intranet."""


class NetworkError(TransportError, TransientError):
    default_message = "No internet access"


class RemoteUnavailableError(TransportError, TransientError):
    default_message = "Could not connect to the epitech intranet"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AccessDeniedError(TransportError):
    default_message = "You do not have permission to access this resource"


class NotFoundError(TransportError):
    default_message = "The requested intranet resource does not exist"


class MalformedResponseError(TransportError):
    default_message = "Failed to parse retrieved data from the intranet"


class EmptyResponseError(TransportError):
    """The intranet answered with nothing.

    Listing and roster fetches turn this into an empty sequence: the intranet
    returns empty bodies on days without any scheduled event.
    """

    default_message = "Empty JSON array"


# --- Identity --------------------------------------------------------------


class IdentityError(EpitokError):
    """Failure while resolving the account behind an autologin link."""


class BadCredentialFormatError(IdentityError):
    default_message = "Invalid autologin link"


class NoLoginFieldError(IdentityError):
    default_message = "You do not have a login associated with your intranet profile"


# --- Records ---------------------------------------------------------------


class RecordError(EpitokError):
    """A raw intranet record is missing a required field.

    Attributes:
        field: Name of the field (or stage) that failed.
    """

    field = ""


class EventError(RecordError):
    """An event record cannot be turned into an Event."""


class MissingEventCodeError(EventError):
    field = "code"
    default_message = "Event doesn't have a url"


class MissingTitleError(EventError):
    field = "title"
    default_message = "This event does not have a title"


class MissingModuleError(EventError):
    field = "module"
    default_message = "This event does not belong to a module"


class InvalidStartTimeError(EventError):
    field = "start"
    default_message = "This event does not have a starting time"


class InvalidEndTimeError(EventError):
    field = "end"
    default_message = "This event does not have a finish time"


class StudentError(RecordError):
    """A registered-student record cannot be turned into a Student."""


class MissingLoginError(StudentError):
    field = "login"
    default_message = "Student does not have an epitech login"


class MissingNameError(StudentError):
    field = "name"
    default_message = "Student does not have a name"


class InvalidPresenceError(StudentError):
    field = "presence"
    default_message = "Student has an invalid presence code"


class DuplicateStudentError(StudentError):
    field = "login"
    default_message = "Student is registered twice to the same event"


# --- Caller input ----------------------------------------------------------


class InvalidDateError(EpitokError, ValueError):
    default_message = "Date must be formatted as YYYY-MM-DD"
