"""HTTP access to the intranet JSON webservice.

IntraClient performs the raw GET/POST calls, maps HTTP statuses onto the
transport error hierarchy and decodes JSON bodies. It knows nothing about
events or students.
"""

import json
from collections.abc import Mapping
from typing import Any

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from epitok.config import EpitokConfig, get_config
from epitok.errors import (
    AccessDeniedError,
    EmptyResponseError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    RemoteUnavailableError,
    TransientError,
)
from epitok.logging import get_logger
from epitok.utils import redact_url

logger = get_logger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "intra_request_retry",
        attempt=retry_state.attempt_number,
        error=redact_url(str(error)),
    )


class IntraClient:
    """Blocking client for the intranet JSON webservice.

    Reads may be retried on transient failures when the configuration allows
    more than one attempt. Writes are never retried.
    """

    def __init__(
        self,
        config: EpitokConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or get_config()
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.config.intra_url.rstrip("/")

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "IntraClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Send one request and classify the outcome.

        Raises:
            NetworkError: Connection failure or timeout.
            AccessDeniedError: HTTP 403 (bad or revoked autologin, missing rights).
            NotFoundError: HTTP 404.
            RemoteUnavailableError: Any other non-200 status.
        """
        try:
            response = self.session.request(
                method, url, timeout=self.config.intra_timeout_seconds, **kwargs
            )
        except requests.RequestException as e:
            logger.warning(
                "intra_request_failed",
                method=method,
                url=redact_url(url),
                error=redact_url(str(e)),
                type=type(e).__name__,
            )
            raise NetworkError() from e

        status = response.status_code
        if status == requests.codes.ok:
            logger.debug("intra_request", method=method, url=redact_url(url), status=status)
            return response

        logger.warning("intra_request_rejected", method=method, url=redact_url(url), status=status)
        if status == requests.codes.forbidden:
            raise AccessDeniedError()
        if status == requests.codes.not_found:
            raise NotFoundError()
        raise RemoteUnavailableError(status_code=status)

    def _get_text(self, url: str) -> str:
        retryer = Retrying(
            stop=stop_after_attempt(self.config.intra_max_attempts),
            wait=wait_exponential(multiplier=0.5, max=5),
            retry=retry_if_exception_type(TransientError),
            before_sleep=_log_retry,
            reraise=True,
        )
        return retryer(self._request, "GET", url).text

    @staticmethod
    def _decode(text: str, url: str) -> Any:
        try:
            return json.loads(text)
        except ValueError as e:
            logger.warning("intra_json_invalid", url=redact_url(url), error=str(e))
            raise MalformedResponseError() from e

    def fetch_json_object(self, url: str) -> dict[str, Any]:
        """GET a URL and decode a JSON object.

        Raises:
            MalformedResponseError: Body is not a JSON object.
            TransportError: Any failure raised by the request itself.
        """
        data = self._decode(self._get_text(url), url)
        if not isinstance(data, dict):
            raise MalformedResponseError("Expected a JSON object from the intranet")
        return data

    def fetch_json_array(self, url: str) -> list[dict[str, Any]]:
        """GET a URL and decode a JSON array of objects.

        The intranet answers an empty body, null, {} or [] when there is
        nothing to list; all of these raise EmptyResponseError.

        Raises:
            EmptyResponseError: Nothing to list.
            MalformedResponseError: Body is not a JSON array of objects.
            TransportError: Any failure raised by the request itself.
        """
        text = self._get_text(url)
        if not text.strip():
            raise EmptyResponseError()

        data = self._decode(text, url)
        if not data:
            raise EmptyResponseError()
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise MalformedResponseError("Expected a JSON array of objects from the intranet")
        return data

    def post_form(self, url: str, form: Mapping[str, str]) -> None:
        """POST a form-encoded body. The reply content is ignored.

        Raises:
            TransportError: Any failure raised by the request.
        """
        self._request("POST", url, data=dict(form))
        logger.debug("intra_form_posted", url=redact_url(url), fields=len(form))
