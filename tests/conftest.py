"""Shared fakes for HTTP-level and adapter-level tests."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import date
from typing import Any

import pytest
import requests

from src.collector.classify import ClassificationRules
from src.collector.config import SourceConfig
from src.collector.models import DateRange


def make_response(status: int = 200, body: Any = None, text: str | None = None) -> requests.Response:
    """Build a real requests.Response with the given status and body."""
    response = requests.Response()
    response.status_code = status
    if text is None:
        text = json.dumps(body) if body is not None else ""
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeSession(requests.Session):
    """requests.Session that replays queued responses or exceptions."""

    def __init__(self, replies: Iterable[Any]) -> None:
        super().__init__()
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    def request(self, method, url, **kwargs):  # type: ignore[override]
        self.calls.append({"method": method, "url": url, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class StubClient:
    """Stands in for HttpClient inside adapters.

    Each queue holds payloads to return, or exceptions to raise, in order.
    """

    def __init__(
        self,
        pages: Iterable[Any] = (),
        json_replies: Iterable[Any] = (),
    ) -> None:
        self.pages = list(pages)
        self.json_replies = list(json_replies)
        self.calls: list[tuple[str, str, Any]] = []

    def _next(self, queue: list[Any]) -> Any:
        reply = queue.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def get_text(self, url: str, *, headers: dict[str, str] | None = None) -> str:
        self.calls.append(("GET", url, None))
        return self._next(self.pages)

    def post_form(self, url: str, form: dict[str, str], *, headers=None) -> Any:
        self.calls.append(("POST_FORM", url, form))
        return self._next(self.json_replies)

    def post_json(self, url: str, body: dict[str, Any], *, headers=None) -> Any:
        self.calls.append(("POST_JSON", url, body))
        return self._next(self.json_replies)


def token_page(token: str = "T1") -> str:
    return (
        "<html><body><form>"
        f'<input name="__RequestVerificationToken" type="hidden" value="{token}" />'
        "</form></body></html>"
    )


@pytest.fixture
def date_range() -> DateRange:
    return DateRange(start=date(2025, 3, 1), end=date(2025, 3, 31))


@pytest.fixture
def perfectmind_source() -> SourceConfig:
    return SourceConfig.model_validate(
        {
            "system": "perfectmind",
            "name": "Oakville",
            "pageUrl": "https://example.perfectmind.test/Classes",
            "apiUrl": "https://example.perfectmind.test/ClassesV2",
            "calendarId": "cal-1",
            "widgetId": "widget-1",
        }
    )


@pytest.fixture
def activenet_source() -> SourceConfig:
    return SourceConfig.model_validate(
        {
            "system": "activenet",
            "name": "Mississauga",
            "apiUrl": "https://anc.example.test/activemississauga/rest/activities/list?locale=en-US",
        }
    )


@pytest.fixture
def open_rules() -> ClassificationRules:
    return ClassificationRules()
