"""Source adapters, one per booking platform."""

from src.collector.adapters.activenet import ActiveNetAdapter
from src.collector.adapters.base import UNKNOWN_LOCATION, PoolGrouper, SourceAdapter
from src.collector.adapters.perfectmind import PerfectMindAdapter
from src.collector.config import SourceConfig, SourceSystem
from src.collector.http import HttpClient

ADAPTERS: dict[SourceSystem, type[SourceAdapter]] = {
    SourceSystem.perfectmind: PerfectMindAdapter,
    SourceSystem.activenet: ActiveNetAdapter,
}


def build_adapter(source: SourceConfig, client: HttpClient) -> SourceAdapter:
    """Instantiate the adapter registered for ``source.system``."""
    return ADAPTERS[source.system](source, client)


__all__ = [
    "ADAPTERS",
    "ActiveNetAdapter",
    "PerfectMindAdapter",
    "PoolGrouper",
    "SourceAdapter",
    "UNKNOWN_LOCATION",
    "build_adapter",
]
