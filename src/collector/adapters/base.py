"""Shared adapter plumbing.

Every adapter maps raw platform entries to (facility label, address,
Session) triples and groups them into Pools by derived pool id. The
grouping map lives only for one collect() call.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, ClassVar, NamedTuple

from src.collector.classify import ClassificationRules
from src.collector.config import SourceConfig, SourceSystem
from src.collector.http import HttpClient
from src.collector.models import DateRange, Pool, Session
from src.collector.normalize import pool_id

UNKNOWN_LOCATION = "Unknown Location"


class MappedEntry(NamedTuple):
    facility_label: str
    address: str
    session: Session


class PoolGrouper:
    """Folds sessions into one Pool per derived id, in first-seen order."""

    def __init__(self, municipality: str, region_code: str) -> None:
        self.municipality = municipality
        self.region_code = region_code
        self._pools: dict[str, Pool] = {}

    def add(self, facility_label: str, session: Session, address: str = "") -> Pool:
        key = pool_id(self.municipality, facility_label)
        pool = self._pools.get(key)
        if pool is None:
            pool = Pool(
                id=key,
                display_name=facility_label,
                municipality=self.municipality,
                region_code=self.region_code,
                address=address,
            )
            self._pools[key] = pool
        pool.sessions.append(session)
        return pool

    def pools(self) -> list[Pool]:
        return list(self._pools.values())

    def session_count(self) -> int:
        return sum(len(pool.sessions) for pool in self._pools.values())


class SourceAdapter(ABC):
    """One booking platform: transport, pagination and field mapping."""

    system: ClassVar[SourceSystem]

    def __init__(self, source: SourceConfig, client: HttpClient) -> None:
        self.source = source
        self.client = client

    @abstractmethod
    def fetch_page(self, *args: Any, **kwargs: Any) -> Any:
        """Perform one request round-trip and return the decoded payload."""

    @abstractmethod
    def map_raw_entry_to_session(
        self,
        raw: dict[str, Any],
        date_range: DateRange,
        rules: ClassificationRules,
    ) -> MappedEntry:
        """Convert one raw platform entry to its canonical form."""

    @abstractmethod
    def collect(
        self,
        date_range: DateRange,
        rules: ClassificationRules,
        *,
        include_all_sessions: bool = False,
    ) -> list[Pool]:
        """Fetch everything for the window and return grouped pools."""

    def build_pools(
        self,
        entries: Iterable[dict[str, Any]],
        date_range: DateRange,
        rules: ClassificationRules,
        *,
        include_all_sessions: bool = False,
    ) -> list[Pool]:
        """Map and group raw entries.

        Sessions classified as not child-friendly are dropped unless
        ``include_all_sessions`` is set.
        """
        grouper = PoolGrouper(self.source.name, self.source.region_code)
        for raw in entries:
            if not isinstance(raw, dict):
                continue
            mapped = self.map_raw_entry_to_session(raw, date_range, rules)
            if not mapped.session.is_child_friendly and not include_all_sessions:
                continue
            grouper.add(mapped.facility_label, mapped.session, mapped.address)
        return grouper.pools()
