"""Collection run orchestration.

The Aggregator drives one run end to end:

    idle -> collecting -> merging -> finalizing -> done
                                                -> failed

Sources are collected one after another in declaration order. A source
that fails is logged and skipped; the run carries on with the rest.
"""

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path

from src.collector.adapters import build_adapter
from src.collector.adapters.base import SourceAdapter
from src.collector.config import CollectionConfig, DuplicatePoolPolicy, SourceConfig
from src.collector.coordinates import CoordinateLookup
from src.collector.errors import CollectorError, OutputError
from src.collector.http import HttpClient
from src.collector.logging import get_logger, source_context
from src.collector.models import Dataset, DatasetMetadata, Pool

log = get_logger(__name__)

AdapterFactory = Callable[[SourceConfig, HttpClient], SourceAdapter]


class RunState(str, Enum):
    idle = "idle"
    collecting = "collecting"
    merging = "merging"
    finalizing = "finalizing"
    done = "done"
    failed = "failed"


@dataclass
class SourceOutcome:
    """What one source contributed to the run."""

    key: str
    name: str
    pools: list[Pool] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def season_label(start: date) -> str:
    """Name the season a query window starts in.

    Sep-Dec is Fall, Jan-Mar Winter, Apr-Jun Spring, Jul-Aug Summer; the
    year is the start date's year.
    """
    if 9 <= start.month <= 12:
        season = "Fall"
    elif 1 <= start.month <= 3:
        season = "Winter"
    elif 4 <= start.month <= 6:
        season = "Spring"
    else:
        season = "Summer"
    return f"{season} {start.year}"


def merge_pools(pools: list[Pool], policy: DuplicatePoolPolicy) -> list[Pool]:
    """Apply the cross-source duplicate id policy.

    Adapters already guarantee unique ids within their own output. With
    ``keep`` the concatenation is returned untouched, duplicates included.
    With ``merge`` sessions of a repeated id are appended to the first pool
    that carried it.
    """
    seen: dict[str, Pool] = {}
    duplicates: list[str] = []
    merged: list[Pool] = []

    for pool in pools:
        first = seen.get(pool.id)
        if first is None:
            seen[pool.id] = pool
            merged.append(pool)
            continue
        duplicates.append(pool.id)
        if policy is DuplicatePoolPolicy.merge:
            first.sessions.extend(pool.sessions)
        else:
            merged.append(pool)

    if duplicates:
        log.warning(
            "duplicate_pool_ids",
            policy=policy.value,
            pool_ids=sorted(set(duplicates)),
        )
    return merged


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Aggregator:
    """Runs every configured source and assembles the Dataset."""

    def __init__(
        self,
        config: CollectionConfig,
        client: HttpClient,
        coordinates: CoordinateLookup | None = None,
        *,
        adapter_factory: AdapterFactory = build_adapter,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config = config
        self.client = client
        self.coordinates = coordinates or CoordinateLookup()
        self.adapter_factory = adapter_factory
        self.clock = clock
        self.state = RunState.idle
        self.outcomes: list[SourceOutcome] = []

    def collect_source(self, key: str, source: SourceConfig) -> SourceOutcome:
        """Collect one source, converting any failure into a logged outcome."""
        log.info(
            "source_collection_started",
            source=key,
            name=source.name,
            system=source.system.value,
        )
        adapter = self.adapter_factory(source, self.client)
        try:
            with source_context(source_key=key):
                pools = adapter.collect(
                    self.config.date_range,
                    self.config.rules_for(source),
                    include_all_sessions=self.config.include_all_sessions,
                )
        except CollectorError as e:
            log.error(
                "source_collection_failed",
                source=key,
                name=source.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SourceOutcome(key=key, name=source.name, error=str(e))
        except Exception as e:
            log.exception("source_collection_crashed", source=key, name=source.name)
            return SourceOutcome(key=key, name=source.name, error=f"{type(e).__name__}: {e}")

        return SourceOutcome(key=key, name=source.name, pools=pools)

    def run(self) -> Dataset:
        """Collect, merge, annotate and summarize.

        Returns:
            The Dataset for this run.
        """
        started = time.perf_counter()
        self.outcomes = []
        try:
            self.state = RunState.collecting
            collected: list[Pool] = []
            for key, source in self.config.sources.items():
                outcome = self.collect_source(key, source)
                self.outcomes.append(outcome)
                collected.extend(outcome.pools)

            self.state = RunState.merging
            pools = merge_pools(collected, self.config.duplicate_pool_policy)
            located = self.coordinates.annotate(pools)

            self.state = RunState.finalizing
            dataset = Dataset(metadata=self.build_metadata(pools), pools=pools)
        except Exception:
            self.state = RunState.failed
            raise

        self.state = RunState.done
        log.info(
            "collection_summary",
            pools=dataset.metadata.pool_count,
            located_pools=located,
            sessions=dataset.metadata.total_session_count,
            child_friendly_sessions=dataset.metadata.child_friendly_session_count,
            failed_sources=[o.key for o in self.outcomes if not o.ok],
            elapsed_seconds=round(time.perf_counter() - started, 1),
        )
        return dataset

    def build_metadata(self, pools: list[Pool]) -> DatasetMetadata:
        now = self.clock()
        return DatasetMetadata(
            last_updated=now.date().isoformat(),
            collection_time=now.isoformat(),
            season=season_label(self.config.date_range.start),
            source_count=len(self.config.sources),
            pool_count=len(pools),
            total_session_count=sum(len(pool.sessions) for pool in pools),
            child_friendly_session_count=sum(pool.child_friendly_count() for pool in pools),
        )


def write_dataset(dataset: Dataset, path: str | Path) -> Path:
    """Write the dataset as indented JSON, replacing any previous file.

    Raises:
        OutputError: If the directory or file cannot be written.
    """
    output_file = Path(path)
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(
            json.dumps(dataset.model_dump(mode="json"), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as e:
        raise OutputError(f"Cannot write dataset to {output_file}: {e}") from e

    log.info("dataset_written", path=str(output_file), pools=len(dataset.pools))
    return output_file
