"""Pydantic models for the collected pool dataset.

All data structures use Pydantic v2 for validation, serialization, and type
safety. A Session is frozen once built; a Pool collects sessions in the
order the source returned them.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DayOfWeek(str, Enum):
    """Weekday a session runs on, or Unknown when the source gave no clue."""

    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"
    unknown = "Unknown"


class DateRange(BaseModel):
    """Inclusive query window, both ends ISO calendar dates."""

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError(f"date range start {self.start} is after end {self.end}")
        return self


class Session(BaseModel):
    """One swim time slot belonging to a Pool."""

    model_config = ConfigDict(frozen=True)

    day_of_week: DayOfWeek
    activity_label: str
    is_child_friendly: bool
    start_time: str = ""  # "HH:MM", empty if unparseable
    end_time: str = ""
    age_restriction: str = "All ages"
    valid_from: str = ""  # ISO date, may be empty
    valid_to: str = ""


class Pool(BaseModel):
    """A swim facility and the sessions collected for it."""

    id: str
    display_name: str
    municipality: str
    region_code: str
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    sessions: list[Session] = Field(default_factory=list)

    def child_friendly_count(self) -> int:
        return sum(1 for session in self.sessions if session.is_child_friendly)


class DatasetMetadata(BaseModel):
    """Summary of one collection run."""

    last_updated: str
    collection_time: str
    season: str
    source_count: int = Field(..., ge=0)
    pool_count: int = Field(..., ge=0)
    total_session_count: int = Field(..., ge=0)
    child_friendly_session_count: int = Field(..., ge=0)


class Dataset(BaseModel):
    """Root of the emitted JSON document."""

    metadata: DatasetMetadata
    pools: list[Pool] = Field(default_factory=list)
