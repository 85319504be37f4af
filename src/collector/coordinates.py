"""Static pool coordinates.

No booking platform returns geocoordinates, so a hand-maintained table
keyed by pool id is attached after collection. Pools missing from the
table keep null latitude/longitude.
"""

from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, TypeAdapter, ValidationError

from src.collector.errors import ConfigError
from src.collector.logging import get_logger
from src.collector.models import Pool

log = get_logger(__name__)


class Coordinate(BaseModel):
    lat: float
    lng: float


_TABLE_ADAPTER = TypeAdapter(dict[str, Coordinate])


class CoordinateLookup:
    """Maps pool id to a fixed latitude/longitude."""

    def __init__(self, table: Mapping[str, Coordinate] | None = None) -> None:
        self._table: dict[str, Coordinate] = dict(table or {})

    def __len__(self) -> int:
        return len(self._table)

    def get(self, pool_id: str) -> Coordinate | None:
        return self._table.get(pool_id)

    def annotate(self, pools: Iterable[Pool]) -> int:
        """Set latitude/longitude on every pool found in the table.

        Returns:
            Number of pools that received coordinates.
        """
        located = 0
        for pool in pools:
            coordinate = self._table.get(pool.id)
            if coordinate is None:
                log.debug("pool_coordinates_missing", pool_id=pool.id)
                continue
            pool.latitude = coordinate.lat
            pool.longitude = coordinate.lng
            located += 1
        return located

    @classmethod
    def from_file(cls, path: str | Path) -> "CoordinateLookup":
        """Load a ``{pool_id: {"lat": ..., "lng": ...}}`` JSON table.

        A missing file yields an empty lookup. A file that exists but cannot
        be parsed is a configuration error.
        """
        table_path = Path(path)
        if not table_path.exists():
            log.warning("coordinates_file_missing", path=str(table_path))
            return cls()

        try:
            table = _TABLE_ADAPTER.validate_json(table_path.read_bytes())
        except (OSError, ValidationError) as e:
            raise ConfigError(f"Invalid coordinates table {table_path}: {e}") from e

        log.debug("coordinates_loaded", path=str(table_path), count=len(table))
        return cls(table)
