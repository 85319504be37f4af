"""Collector configuration.

Two layers:

- ``CollectorSettings``: process-level settings loaded from environment
  variables (and an optional .env file) with sensible defaults.
- ``CollectionConfig``: the JSON collection file naming each source, the
  query window and the classification keyword lists. It is read once per
  run and never mutated.
"""

from enum import Enum
from pathlib import Path

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings

from src.collector.classify import ClassificationRules
from src.collector.errors import ConfigError
from src.collector.models import DateRange

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class CollectorSettings(BaseSettings):
    """Collector settings loaded from environment variables.

    For local development, create a .env file in the project root.
    """

    # Paths
    collector_config_path: str = Field(
        default="config.json",
        description="JSON file describing sources, date range and keywords",
    )
    collector_output_path: str = Field(
        default="output/pool-data.json",
        description="Where the dataset is written (full overwrite)",
    )
    coordinates_path: str = Field(
        default="data/pool_coordinates.json",
        description="Static pool id -> {lat, lng} table",
    )

    # HTTP
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Per-request timeout passed to requests",
    )
    http_retry_attempts: int = Field(
        default=1,
        ge=1,
        description="Total attempts for transient failures (1 disables retries)",
    )
    http_retry_wait_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Fixed wait between retry attempts",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent to booking platforms",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for unattended runs)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: CollectorSettings | None = None


def get_config() -> CollectorSettings:
    """Get the collector settings singleton.

    Returns:
        CollectorSettings: Collector settings instance
    """
    global _config
    if _config is None:
        _config = CollectorSettings()
    return _config


class SourceSystem(str, Enum):
    """Booking platforms with an adapter."""

    perfectmind = "perfectmind"  # token-gated form POST
    activenet = "activenet"  # paginated JSON POST


_SYSTEM_ALIASES = {
    "variant-a": SourceSystem.perfectmind.value,
    "variant-b": SourceSystem.activenet.value,
}

# Unclassified sessions: PerfectMind excludes, ActiveNet includes
_DEFAULT_WHEN_UNCLASSIFIED = {
    SourceSystem.perfectmind: False,
    SourceSystem.activenet: True,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class CategoryFilterSet(_CamelModel):
    """ActiveNet search taxonomy identifiers (swimming, drop-in, child)."""

    activity_category_ids: list[str] = Field(default_factory=lambda: ["42"])
    activity_type_ids: list[str] = Field(default_factory=lambda: ["7"])
    activity_other_category_ids: list[str] = Field(default_factory=lambda: ["7", "6"])


class SourceConfig(_CamelModel):
    """One configured booking source (usually one municipality)."""

    system: SourceSystem
    name: str
    region_code: str = "ON"
    page_url: str | None = None
    api_url: str | None = None
    calendar_id: str | None = None
    widget_id: str | None = None
    default_when_unclassified: bool | None = None
    category_filters: CategoryFilterSet = Field(default_factory=CategoryFilterSet)
    page_size: int = Field(default=20, gt=0)
    max_pages: int = Field(default=8, gt=0)

    @field_validator("system", mode="before")
    @classmethod
    def _resolve_system_alias(cls, value: object) -> object:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _SYSTEM_ALIASES.get(lowered, lowered)
        return value

    @model_validator(mode="after")
    def _check_platform_fields(self) -> "SourceConfig":
        if self.system is SourceSystem.perfectmind:
            required = ("page_url", "api_url", "calendar_id", "widget_id")
        else:
            required = ("api_url",)
        missing = [name for name in required if not getattr(self, name)]
        if missing:
            raise ValueError(
                f"{self.system.value} source {self.name!r} is missing: {', '.join(missing)}"
            )
        if self.default_when_unclassified is None:
            self.default_when_unclassified = _DEFAULT_WHEN_UNCLASSIFIED[self.system]
        return self


class DuplicatePoolPolicy(str, Enum):
    """What to do when two sources produce the same pool id."""

    keep = "keep"  # emit both pools as-is
    merge = "merge"  # fold later sessions into the first pool


class CollectionConfig(_CamelModel):
    """Parsed collection file."""

    sources: dict[str, SourceConfig] = Field(
        validation_alias=AliasChoices("municipalities", "sources"),
    )
    date_range: DateRange
    child_friendly_types: list[str] = Field(default_factory=list)
    exclude_types: list[str] = Field(default_factory=list)
    include_all_sessions: bool = False
    duplicate_pool_policy: DuplicatePoolPolicy = DuplicatePoolPolicy.keep

    @field_validator("sources")
    @classmethod
    def _require_sources(cls, value: dict[str, SourceConfig]) -> dict[str, SourceConfig]:
        if not value:
            raise ValueError("no sources configured")
        return value

    def rules_for(self, source: SourceConfig) -> ClassificationRules:
        """Classification rules for one source, with its own fallback."""
        return ClassificationRules(
            include_keywords=tuple(self.child_friendly_types),
            exclude_keywords=tuple(self.exclude_types),
            default_when_unclassified=bool(source.default_when_unclassified),
        )


def load_collection_config(path: str | Path) -> CollectionConfig:
    """Read and validate the collection file.

    Args:
        path: Path to the JSON collection file.

    Returns:
        Validated CollectionConfig.

    Raises:
        ConfigError: If the file is unreadable, not JSON, or fails validation.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read collection config {config_path}: {e}") from e

    try:
        return CollectionConfig.model_validate_json(text)
    except ValidationError as e:
        raise ConfigError(f"Invalid collection config {config_path}: {e}") from e
