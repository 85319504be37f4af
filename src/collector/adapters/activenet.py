"""ActiveNet adapter - paginated JSON POST, no token.

The activities/list endpoint takes a JSON search pattern plus a page
number. Page 1 carries body.total_records; the page count is
ceil(total_records / page_size), capped at max_pages. Pages are fetched
in order; a failure after page 1 stops pagination and keeps what was
already collected.

Raw activity fields used:
  name, location.label, age_description,
  time_range ("12:30 PM - 1:55 PM"), days_of_week ("Sat"), date_range_end
"""

import math
from typing import Any
from urllib.parse import urlsplit

from src.collector.adapters.base import UNKNOWN_LOCATION, MappedEntry, SourceAdapter
from src.collector.classify import ClassificationRules
from src.collector.config import SourceSystem
from src.collector.errors import CollectorError
from src.collector.logging import get_logger
from src.collector.models import DateRange, Pool, Session
from src.collector.normalize import parse_time_range, weekday_from_abbreviation_string

log = get_logger(__name__)

# Search across every weekday
ALL_DAYS_MASK = "0000000"


class ActiveNetAdapter(SourceAdapter):
    """Collects drop-in swims from an ActiveNet activity search."""

    system = SourceSystem.activenet

    def build_payload(self, page: int, date_range: DateRange) -> dict[str, Any]:
        filters = self.source.category_filters
        return {
            "activity_search_pattern": {
                "activity_select_param": 2,
                "activity_category_ids": list(filters.activity_category_ids),
                "activity_type_ids": list(filters.activity_type_ids),
                "activity_other_category_ids": list(filters.activity_other_category_ids),
                "date_after": date_range.start.isoformat(),
                "days_of_week": ALL_DAYS_MASK,
            },
            "activity_transfer_pattern": {},
            "page": page,
        }

    def fetch_page(self, page: int, date_range: DateRange) -> Any:
        return self.client.post_json(
            self.source.api_url,
            self.build_payload(page, date_range),
            headers=self._browser_headers(),
        )

    def _browser_headers(self) -> dict[str, str]:
        parts = urlsplit(self.source.api_url)
        origin = f"{parts.scheme}://{parts.netloc}"
        return {
            "Origin": origin,
            "Referer": self.source.page_url or f"{origin}/",
        }

    def map_raw_entry_to_session(
        self,
        raw: dict[str, Any],
        date_range: DateRange,
        rules: ClassificationRules,
    ) -> MappedEntry:
        label = raw.get("name") or ""
        age_text = raw.get("age_description") or ""
        start_time, end_time = parse_time_range(raw.get("time_range") or "")

        location = raw.get("location")
        facility = location.get("label") if isinstance(location, dict) else None

        session = Session(
            day_of_week=weekday_from_abbreviation_string(raw.get("days_of_week") or ""),
            activity_label=label,
            is_child_friendly=rules.classify(label, age_text),
            start_time=start_time,
            end_time=end_time,
            age_restriction=age_text or "All ages",
            valid_from=date_range.start.isoformat(),
            valid_to=str(raw.get("date_range_end") or ""),
        )
        # Address is not part of the activity listing
        return MappedEntry(facility_label=facility or UNKNOWN_LOCATION, address="", session=session)

    def collect(
        self,
        date_range: DateRange,
        rules: ClassificationRules,
        *,
        include_all_sessions: bool = False,
    ) -> list[Pool]:
        log.info("schedule_fetch_started", source=self.source.name)

        # Page 1 failures propagate: without it there is no page count
        first = self.fetch_page(1, date_range)
        body = _activity_body(first)
        if body is None:
            log.warning("response_missing_activities", source=self.source.name, page=1)
            return []

        activities: list[Any] = list(body["activity_items"])
        total_pages = _page_count(body.get("total_records"), self.source.page_size)
        last_page = min(total_pages, self.source.max_pages)
        log.info(
            "page_fetched",
            source=self.source.name,
            page=1,
            total_pages=total_pages,
            items=len(activities),
        )

        for page in range(2, last_page + 1):
            try:
                payload = self.fetch_page(page, date_range)
            except CollectorError as e:
                log.warning(
                    "page_fetch_failed",
                    source=self.source.name,
                    page=page,
                    error=str(e),
                )
                break
            page_body = _activity_body(payload)
            if page_body is None:
                log.warning("response_missing_activities", source=self.source.name, page=page)
                continue
            activities.extend(page_body["activity_items"])
            log.info(
                "page_fetched",
                source=self.source.name,
                page=page,
                total_pages=total_pages,
                items=len(page_body["activity_items"]),
            )

        if total_pages > self.source.max_pages:
            log.info(
                "page_cap_reached",
                source=self.source.name,
                total_pages=total_pages,
                max_pages=self.source.max_pages,
            )

        pools = self.build_pools(
            activities, date_range, rules, include_all_sessions=include_all_sessions
        )
        log.info(
            "source_collected",
            source=self.source.name,
            total_sessions=len(activities),
            kept_sessions=sum(len(pool.sessions) for pool in pools),
            pools=len(pools),
        )
        return pools


def _activity_body(payload: Any) -> dict[str, Any] | None:
    """Return payload["body"] when it carries an activity_items list."""
    if not isinstance(payload, dict):
        return None
    body = payload.get("body")
    if not isinstance(body, dict) or not isinstance(body.get("activity_items"), list):
        return None
    return body


def _page_count(total_records: Any, page_size: int) -> int:
    try:
        records = int(total_records or 0)
    except (TypeError, ValueError):
        return 1
    return math.ceil(records / page_size)
