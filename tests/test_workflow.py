"""
End-to-end tests: list a day, mark presences, upload.

These tests go through the real IntraClient and real structlog output, with
only the HTTP session replaced. They focus on:
- Every log call along the workflow renders (no reserved keyword clashes)
- The autologin secret never reaches log output, configured or not
- Clients opened on the caller's behalf are closed again
"""

import io
import json
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

import structlog

from epitok.errors import EmptyResponseError, InvalidDateError, MissingTitleError
from epitok.intra import IntraClient
from epitok.logging import setup_logging
from epitok.models import Presence
from epitok.pages.planning import list_events
from epitok.pages.registered import save
from epitok.session import resolve_identity
from tests.fakes import AUTOLOGIN, IDENTITY, make_config, planning_record, student_record

SECRET = AUTOLOGIN.rsplit("/", 1)[1]
EVENT_PATH = "/module/2026/B-INN-000/PAR-0-1/acti-123456/event-654321"
PLANNING_URL = f"{AUTOLOGIN}/planning/load?format=json&start=2026-10-19&end=2026-10-19"
REGISTERED_URL = f"{AUTOLOGIN}{EVENT_PATH}/registered?format=json"
UPDATE_URL = f"{AUTOLOGIN}{EVENT_PATH}/updateregistered?format=json"


class RoutingSession:
    """requests.Session stand-in answering 200 with a canned body per URL."""

    def __init__(self, bodies: dict[str, str]) -> None:
        self.bodies = bodies
        self.calls: list[tuple[str, str, dict[str, str] | None]] = []
        self.closed = False

    def request(self, method: str, url: str, timeout: float | None = None, data=None):
        self.calls.append((method, url, data))
        return mock.Mock(status_code=200, text=self.bodies.get(url, ""))

    def close(self) -> None:
        self.closed = True


def make_session() -> RoutingSession:
    return RoutingSession(
        {
            PLANNING_URL: json.dumps(
                [planning_record(), planning_record(codeevent="event-1", is_rdv="1")]
            ),
            REGISTERED_URL: json.dumps(
                [
                    student_record("a@epitech.eu", "Ann"),
                    student_record("b@epitech.eu", "Bob", present="present"),
                    student_record("c@epitech.eu", "Cid"),
                ]
            ),
        }
    )


def run_workflow(session: RoutingSession) -> None:
    client = IntraClient(make_config(), session=session)
    events = list_events(IDENTITY, "2026-10-19", client)
    assert len(events) == 1
    events[0].set_presence("c@epitech.eu", Presence.NOT_APPLICABLE)
    save(events[0], IDENTITY, client)


class TestWorkflowLogging(unittest.TestCase):
    def setUp(self) -> None:
        structlog.reset_defaults()
        self.addCleanup(structlog.reset_defaults)

    def test_unconfigured_logging_hides_secret(self) -> None:
        session = make_session()
        out = io.StringIO()
        with redirect_stdout(out):
            run_workflow(session)

        output = out.getvalue()
        self.assertIn("intra_request", output)
        self.assertIn("presences_uploaded", output)
        self.assertIn("auth-***", output)
        self.assertNotIn(SECRET, output)

        posts = [call for call in session.calls if call[0] == "POST"]
        self.assertEqual(len(posts), 1)
        _, url, form = posts[0]
        self.assertEqual(url, UPDATE_URL)
        self.assertEqual(
            form,
            {
                "items[0][login]": "a@epitech.eu",
                "items[0][present]": "absent",
                "items[1][login]": "b@epitech.eu",
                "items[1][present]": "present",
                "items[2][login]": "c@epitech.eu",
                "items[2][present]": "N/A",
            },
        )

    def test_configured_logging_hides_secret(self) -> None:
        err = io.StringIO()
        with redirect_stderr(err):
            setup_logging(log_level="DEBUG")
            run_workflow(make_session())

        output = err.getvalue()
        self.assertIn("roster_fetched", output)
        self.assertIn("presences_uploaded", output)
        self.assertIn(EVENT_PATH, output)
        self.assertNotIn(SECRET, output)

    def test_json_logging_hides_secret(self) -> None:
        err = io.StringIO()
        with redirect_stderr(err):
            setup_logging(json_output=True, log_level="DEBUG")
            run_workflow(make_session())

        lines = [json.loads(line) for line in err.getvalue().splitlines() if line.strip()]
        uploaded = [line for line in lines if line["event"] == "presences_uploaded"]
        self.assertEqual(len(uploaded), 1)
        self.assertEqual(uploaded[0]["event_path"], EVENT_PATH)
        self.assertEqual(uploaded[0]["present"], 1)
        self.assertEqual(uploaded[0]["absent"], 1)
        self.assertNotIn(SECRET, err.getvalue())


def owned_client(client_cls: mock.MagicMock) -> mock.MagicMock:
    client = client_cls.return_value
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    client.config = make_config()
    return client


class TestOwnedClient(unittest.TestCase):
    def test_list_events_closes_its_client(self) -> None:
        with mock.patch("epitok.pages.planning.IntraClient") as client_cls:
            client = owned_client(client_cls)
            client.fetch_json_array.side_effect = EmptyResponseError()

            self.assertEqual(list_events(IDENTITY, "2026-10-19"), [])

        client_cls.assert_called_once_with()
        client.__exit__.assert_called_once()

    def test_list_events_closes_its_client_on_error(self) -> None:
        with mock.patch("epitok.pages.planning.IntraClient") as client_cls:
            client = owned_client(client_cls)
            client.fetch_json_array.return_value = [planning_record(acti_title=None)]

            with self.assertRaises(MissingTitleError):
                list_events(IDENTITY, "2026-10-19")

        client.__exit__.assert_called_once()

    def test_invalid_date_opens_no_client(self) -> None:
        with mock.patch("epitok.pages.planning.IntraClient") as client_cls:
            with self.assertRaises(InvalidDateError):
                list_events(IDENTITY, "2026-1-5")

        client_cls.assert_not_called()

    def test_save_closes_its_client(self) -> None:
        session = make_session()
        client = IntraClient(make_config(), session=session)
        event = list_events(IDENTITY, "2026-10-19", client)[0]

        with mock.patch("epitok.pages.registered.IntraClient") as client_cls:
            owned = owned_client(client_cls)
            save(event, IDENTITY)

        owned.post_form.assert_called_once()
        owned.__exit__.assert_called_once()

    def test_resolve_identity_closes_its_client(self) -> None:
        with mock.patch("epitok.session.IntraClient") as client_cls:
            client = owned_client(client_cls)
            client.fetch_json_object.return_value = {"login": "staff@epitech.eu"}

            identity = resolve_identity(AUTOLOGIN)

        self.assertEqual(identity.login, "staff@epitech.eu")
        client.__exit__.assert_called_once()

    def test_given_client_is_left_open(self) -> None:
        session = make_session()
        with IntraClient(make_config(), session=session) as client:
            list_events(IDENTITY, "2026-10-19", client)
            self.assertFalse(session.closed)
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
