"""Blocking HTTP client shared by the source adapters.

HttpClient wraps a requests.Session and turns transport problems into the
collector's error hierarchy:

- connection errors, timeouts and 5xx responses -> TransientError
- 429 -> RateLimitError
- other 4xx -> PermanentError
- a body that is not JSON where JSON was expected -> DecodeError

Transient failures are retried with tenacity only when more than one
attempt is configured. The default is a single attempt.
"""

from typing import Any

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.collector.errors import (
    DecodeError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from src.collector.logging import get_logger

log = get_logger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
JSON_ACCEPT = "application/json, text/plain, */*"


class HttpClient:
    """Thin requests.Session wrapper with error classification."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        user_agent: str,
        timeout: float = 30.0,
        retry_attempts: int = 1,
        retry_wait_seconds: float = 2.0,
    ) -> None:
        """Initialize HttpClient.

        Args:
            session: Session to send requests through (a fresh one if omitted).
            user_agent: User-Agent header for every request.
            timeout: Per-request timeout in seconds.
            retry_attempts: Total attempts for TransientError (1 = no retry).
            retry_wait_seconds: Fixed wait between attempts.
        """
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_wait_seconds = retry_wait_seconds

    def close(self) -> None:
        self.session.close()

    def get_text(self, url: str, *, headers: dict[str, str] | None = None) -> str:
        """GET a page and return its decoded body."""
        request_headers = {
            "Accept": HTML_ACCEPT,
            "Accept-Language": "en-US,en;q=0.5",
            "Cache-Control": "no-cache",
            **(headers or {}),
        }
        response = self._send("GET", url, headers=request_headers)
        return response.text

    def post_form(
        self,
        url: str,
        form: dict[str, str],
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST URL-encoded form fields and decode the JSON response."""
        request_headers = {
            "Accept": "application/json, text/javascript, */*; q=0.01",
            **(headers or {}),
        }
        response = self._send("POST", url, data=form, headers=request_headers)
        return self._decode_json(response, url)

    def post_json(
        self,
        url: str,
        body: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST a JSON body and decode the JSON response."""
        request_headers = {"Accept": JSON_ACCEPT, **(headers or {})}
        response = self._send("POST", url, json=body, headers=request_headers)
        return self._decode_json(response, url)

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_fixed(self.retry_wait_seconds),
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    log.info(
                        "http_retry",
                        method=method,
                        url=url,
                        attempt=attempt.retry_state.attempt_number,
                    )
                return self._send_once(method, url, **kwargs)
        raise AssertionError("unreachable")  # pragma: no cover

    def _send_once(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            log.warning("http_timeout", method=method, url=url, error=str(e))
            raise TransientError(f"{method} {url} timed out: {e}") from e
        except requests.RequestException as e:
            log.warning("http_transport_error", method=method, url=url, error=str(e))
            raise TransientError(f"{method} {url} failed: {e}") from e

        status = response.status_code
        if status == 429:
            raise RateLimitError(f"{method} {url} rate limited (429)")
        if status >= 500:
            raise TransientError(f"{method} {url} returned {status}")
        if status >= 400:
            raise PermanentError(f"{method} {url} returned {status}")

        log.debug("http_response", method=method, url=url, status=status)
        return response

    @staticmethod
    def _decode_json(response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Failed to parse JSON response from {url}: {e}") from e
