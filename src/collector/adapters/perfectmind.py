"""PerfectMind adapter - token-gated form POST.

Flow:
  1. GET the public calendar page and read the hidden
     input[name="__RequestVerificationToken"] value.
  2. POST URL-encoded form fields (calendar, widget, date-range filter,
     token) to the class-list endpoint.
  3. The JSON response holds the whole window in one payload under
     "Classes" (some tenants answer with "classes"). No pagination.

Raw class fields used:
  EventName, Location, AgeRestrictions, OccurrenceDate ("YYYYMMDD"),
  FormattedStartTime / FormattedEndTime ("1:00 PM"),
  Address {Street, City, PostalCode}
"""

from typing import Any

from bs4 import BeautifulSoup

from src.collector.adapters.base import UNKNOWN_LOCATION, MappedEntry, SourceAdapter
from src.collector.classify import ClassificationRules
from src.collector.config import SourceSystem
from src.collector.errors import TokenMissingError
from src.collector.logging import get_logger
from src.collector.models import DateRange, Pool, Session
from src.collector.normalize import (
    parse_clock_time,
    parse_occurrence_date,
    weekday_from_date,
)

log = get_logger(__name__)

TOKEN_FIELD = "__RequestVerificationToken"

# Filter kind the platform expects for a "Date Range" value pair
DATE_RANGE_VALUE_KIND = "6"


class PerfectMindAdapter(SourceAdapter):
    """Collects drop-in swims from one PerfectMind calendar widget."""

    system = SourceSystem.perfectmind

    def fetch_token(self) -> str:
        """Read the anti-forgery token from the calendar page.

        Raises:
            TokenMissingError: If the page has no usable token input.
            TransientError: If the page could not be fetched.
        """
        html = self.client.get_text(self.source.page_url)
        soup = BeautifulSoup(html, "html.parser")
        field = soup.find("input", attrs={"name": TOKEN_FIELD})
        token = field.get("value") if field is not None else None
        if not token:
            raise TokenMissingError(
                f"Verification token not found in HTML at {self.source.page_url}"
            )
        return token

    def build_form(self, token: str, date_range: DateRange) -> dict[str, str]:
        return {
            "calendarId": self.source.calendar_id,
            "widgetId": self.source.widget_id,
            "page": "0",
            "values[1][Name]": "Date Range",
            "values[1][Value]": f"{date_range.start.isoformat()}T00:00:00.000Z",
            "values[1][Value2]": f"{date_range.end.isoformat()}T00:00:00.000Z",
            "values[1][ValueKind]": DATE_RANGE_VALUE_KIND,
            "RequestVerificationToken": token,
        }

    def fetch_page(self, token: str, date_range: DateRange) -> Any:
        """POST the date-range query; the single response covers the window."""
        return self.client.post_form(
            self.source.api_url,
            self.build_form(token, date_range),
            headers={
                "X-Requested-With": "XMLHttpRequest",
                "Referer": self.source.page_url,
            },
        )

    def map_raw_entry_to_session(
        self,
        raw: dict[str, Any],
        date_range: DateRange,
        rules: ClassificationRules,
    ) -> MappedEntry:
        label = raw.get("EventName") or ""
        age_text = raw.get("AgeRestrictions") or ""
        occurred = parse_occurrence_date(str(raw.get("OccurrenceDate") or ""))
        iso_date = occurred.isoformat() if occurred else ""

        session = Session(
            day_of_week=weekday_from_date(occurred),
            activity_label=label,
            is_child_friendly=rules.classify(label, age_text),
            start_time=parse_clock_time(raw.get("FormattedStartTime") or ""),
            end_time=parse_clock_time(raw.get("FormattedEndTime") or ""),
            age_restriction=age_text or "All ages",
            valid_from=iso_date,
            valid_to=iso_date,
        )
        return MappedEntry(
            facility_label=raw.get("Location") or UNKNOWN_LOCATION,
            address=_format_address(raw.get("Address"), self.source.region_code),
            session=session,
        )

    def collect(
        self,
        date_range: DateRange,
        rules: ClassificationRules,
        *,
        include_all_sessions: bool = False,
    ) -> list[Pool]:
        log.info("token_fetch_started", source=self.source.name)
        token = self.fetch_token()

        log.info(
            "schedule_fetch_started",
            source=self.source.name,
            start=date_range.start.isoformat(),
            end=date_range.end.isoformat(),
        )
        payload = self.fetch_page(token, date_range)
        classes = _extract_classes(payload)
        if not classes:
            log.info(
                "no_classes_in_range",
                source=self.source.name,
                start=date_range.start.isoformat(),
                end=date_range.end.isoformat(),
            )

        pools = self.build_pools(
            classes, date_range, rules, include_all_sessions=include_all_sessions
        )
        log.info(
            "source_collected",
            source=self.source.name,
            total_sessions=len(classes),
            kept_sessions=sum(len(pool.sessions) for pool in pools),
            pools=len(pools),
        )
        return pools


def _extract_classes(payload: Any) -> list[Any]:
    if not isinstance(payload, dict):
        return []
    classes = payload.get("Classes")
    if classes is None:
        classes = payload.get("classes")
    return classes if isinstance(classes, list) else []


def _format_address(address: Any, region_code: str) -> str:
    """Render {Street, City, PostalCode} as "Street, City, ON L6J 1A1"."""
    if isinstance(address, str):
        return address.strip()
    if not isinstance(address, dict):
        return ""
    street = address.get("Street") or ""
    city = address.get("City") or ""
    postal_code = address.get("PostalCode") or ""
    return f"{street}, {city}, {region_code} {postal_code}".strip()
