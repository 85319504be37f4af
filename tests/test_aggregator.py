"""Tests for the collection run: isolation, merging, metadata and output."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest
from structlog.testing import capture_logs

from conftest import StubClient, token_page
from src.collector.aggregator import (
    Aggregator,
    RunState,
    merge_pools,
    season_label,
    write_dataset,
)
from src.collector.config import CollectionConfig, DuplicatePoolPolicy
from src.collector.coordinates import Coordinate, CoordinateLookup
from src.collector.errors import OutputError, TransientError
from src.collector.models import DayOfWeek, Pool, Session

FIXED_NOW = datetime(2025, 10, 2, 12, 30, tzinfo=timezone.utc)


def _session(label: str = "Family Swim", friendly: bool = True) -> Session:
    return Session(
        day_of_week=DayOfWeek.saturday,
        activity_label=label,
        is_child_friendly=friendly,
        start_time="13:00",
        end_time="14:00",
    )


def _pool(pool_id: str, *sessions: Session) -> Pool:
    return Pool(
        id=pool_id,
        display_name=pool_id,
        municipality="Oakville",
        region_code="ON",
        sessions=list(sessions),
    )


def _config(policy: str = "keep", start: str = "2025-10-01") -> CollectionConfig:
    return CollectionConfig.model_validate(
        {
            "municipalities": {
                "oakville": {
                    "system": "perfectmind",
                    "name": "Oakville",
                    "pageUrl": "https://oak.example.test/Classes",
                    "apiUrl": "https://oak.example.test/ClassesV2",
                    "calendarId": "c",
                    "widgetId": "w",
                },
                "mississauga": {
                    "system": "activenet",
                    "name": "Mississauga",
                    "apiUrl": "https://anc.example.test/list",
                },
            },
            "dateRange": {"start": start, "end": "2025-12-20"},
            "duplicatePoolPolicy": policy,
        }
    )


class FakeAdapter:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def collect(self, date_range, rules, *, include_all_sessions=False):
        self.calls.append((date_range, rules, include_all_sessions))
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


def _factory(results: dict[str, object]):
    adapters = {name: FakeAdapter(result) for name, result in results.items()}

    def build(source, client):
        return adapters[source.name]

    return build, adapters


@pytest.mark.parametrize(
    ("start", "expected"),
    [
        (date(2025, 10, 1), "Fall 2025"),
        (date(2025, 9, 1), "Fall 2025"),
        (date(2025, 12, 31), "Fall 2025"),
        (date(2025, 2, 14), "Winter 2025"),
        (date(2026, 1, 1), "Winter 2026"),
        (date(2025, 4, 1), "Spring 2025"),
        (date(2025, 6, 30), "Spring 2025"),
        (date(2025, 7, 15), "Summer 2025"),
        (date(2025, 8, 31), "Summer 2025"),
    ],
)
def test_season_label(start: date, expected: str) -> None:
    assert season_label(start) == expected


def test_run_builds_dataset_with_metadata() -> None:
    build, adapters = _factory(
        {
            "Oakville": [_pool("oakville-lions-pool", _session(), _session("Lane", False))],
            "Mississauga": [_pool("mississauga-a", _session()), _pool("mississauga-b")],
        }
    )
    lookup = CoordinateLookup({"oakville-lions-pool": Coordinate(lat=43.4, lng=-79.6)})
    aggregator = Aggregator(
        _config(), StubClient(), lookup, adapter_factory=build, clock=lambda: FIXED_NOW
    )

    dataset = aggregator.run()

    assert aggregator.state is RunState.done
    assert [pool.id for pool in dataset.pools] == [
        "oakville-lions-pool",
        "mississauga-a",
        "mississauga-b",
    ]
    assert dataset.pools[0].latitude == 43.4
    assert dataset.pools[1].latitude is None
    metadata = dataset.metadata
    assert metadata.season == "Fall 2025"
    assert metadata.source_count == 2
    assert metadata.pool_count == 3
    assert metadata.total_session_count == 3
    assert metadata.child_friendly_session_count == 2
    assert metadata.last_updated == "2025-10-02"
    assert metadata.collection_time == FIXED_NOW.isoformat()

    rules = adapters["Mississauga"].calls[0][1]
    assert rules.default_when_unclassified is True
    assert adapters["Oakville"].calls[0][1].default_when_unclassified is False


def test_failed_source_does_not_abort_run() -> None:
    build, _ = _factory(
        {
            "Oakville": TransientError("connection reset"),
            "Mississauga": [_pool("mississauga-a", _session())],
        }
    )
    aggregator = Aggregator(_config(), StubClient(), adapter_factory=build)

    with capture_logs() as logs:
        dataset = aggregator.run()

    assert [pool.id for pool in dataset.pools] == ["mississauga-a"]
    assert [outcome.ok for outcome in aggregator.outcomes] == [False, True]
    failures = [entry for entry in logs if entry["event"] == "source_collection_failed"]
    assert failures[0]["source"] == "oakville"
    assert failures[0]["error_type"] == "TransientError"
    summary = [entry for entry in logs if entry["event"] == "collection_summary"][0]
    assert summary["failed_sources"] == ["oakville"]


def test_unexpected_adapter_error_is_isolated() -> None:
    build, _ = _factory({"Oakville": KeyError("Location"), "Mississauga": []})
    aggregator = Aggregator(_config(), StubClient(), adapter_factory=build)

    dataset = aggregator.run()

    assert dataset.pools == []
    assert aggregator.outcomes[0].error.startswith("KeyError")


def test_cross_source_duplicates_kept_by_default() -> None:
    build, _ = _factory(
        {
            "Oakville": [_pool("shared-pool", _session("A"))],
            "Mississauga": [_pool("shared-pool", _session("B"))],
        }
    )

    dataset = Aggregator(_config("keep"), StubClient(), adapter_factory=build).run()

    assert [pool.id for pool in dataset.pools] == ["shared-pool", "shared-pool"]
    assert dataset.metadata.pool_count == 2


def test_cross_source_duplicates_merged_when_configured() -> None:
    build, _ = _factory(
        {
            "Oakville": [_pool("shared-pool", _session("A"))],
            "Mississauga": [_pool("shared-pool", _session("B"), _session("C"))],
        }
    )

    dataset = Aggregator(_config("merge"), StubClient(), adapter_factory=build).run()

    assert len(dataset.pools) == 1
    assert [s.activity_label for s in dataset.pools[0].sessions] == ["A", "B", "C"]


def test_merge_pools_logs_duplicates() -> None:
    with capture_logs() as logs:
        merged = merge_pools([_pool("x"), _pool("y"), _pool("x")], DuplicatePoolPolicy.keep)

    assert len(merged) == 3
    assert logs[0]["event"] == "duplicate_pool_ids"
    assert logs[0]["pool_ids"] == ["x"]


def test_state_is_failed_when_finalizing_raises() -> None:
    build, _ = _factory({"Oakville": [], "Mississauga": []})

    def broken_clock():
        raise RuntimeError("clock unavailable")

    aggregator = Aggregator(_config(), StubClient(), adapter_factory=build, clock=broken_clock)

    with pytest.raises(RuntimeError):
        aggregator.run()
    assert aggregator.state is RunState.failed


def test_end_to_end_with_real_adapters() -> None:
    config = CollectionConfig.model_validate(
        {
            "municipalities": {
                "oakville": {
                    "system": "variant-a",
                    "name": "Oakville",
                    "pageUrl": "https://oak.example.test/Classes",
                    "apiUrl": "https://oak.example.test/ClassesV2",
                    "calendarId": "c",
                    "widgetId": "w",
                }
            },
            "dateRange": {"start": "2025-03-01", "end": "2025-03-31"},
            "childFriendlyTypes": [],
            "excludeTypes": [],
        }
    )
    client = StubClient(
        pages=[token_page("T1")],
        json_replies=[
            {
                "Classes": [
                    {
                        "EventName": "Family Swim",
                        "Location": "Main Pool",
                        "AgeRestrictions": "All ages",
                        "OccurrenceDate": "20250315",
                        "FormattedStartTime": "1:00 PM",
                        "FormattedEndTime": "2:00 PM",
                    }
                ]
            }
        ],
    )

    dataset = Aggregator(config, client).run()

    assert [pool.display_name for pool in dataset.pools] == ["Main Pool"]
    session = dataset.pools[0].sessions[0]
    assert session.day_of_week == DayOfWeek.saturday
    assert (session.start_time, session.end_time) == ("13:00", "14:00")
    assert session.is_child_friendly is True
    assert dataset.metadata.season == "Winter 2025"
    assert dataset.metadata.child_friendly_session_count == 1


def test_write_dataset_overwrites_file(tmp_path) -> None:
    build, _ = _factory({"Oakville": [_pool("oakville-lions-pool", _session())], "Mississauga": []})
    dataset = Aggregator(_config(), StubClient(), adapter_factory=build).run()
    target = tmp_path / "output" / "pool-data.json"
    target.parent.mkdir()
    target.write_text("stale", encoding="utf-8")

    write_dataset(dataset, target)

    written = json.loads(target.read_text(encoding="utf-8"))
    assert written["metadata"]["pool_count"] == 1
    assert written["pools"][0]["id"] == "oakville-lions-pool"
    assert written["pools"][0]["sessions"][0]["day_of_week"] == "Saturday"
    assert written["pools"][0]["latitude"] is None


def test_write_dataset_failure_raises_output_error(tmp_path) -> None:
    build, _ = _factory({"Oakville": [], "Mississauga": []})
    dataset = Aggregator(_config(), StubClient(), adapter_factory=build).run()
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")

    with pytest.raises(OutputError):
        write_dataset(dataset, blocker / "pool-data.json")
