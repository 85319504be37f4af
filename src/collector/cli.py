"""Command-line entry point for a collection run.

Exit codes:
  0 = success (dataset written)
  1 = fatal error (config unreadable, output not writable, ...)
"""

import argparse
import sys

from src.collector.aggregator import Aggregator, write_dataset
from src.collector.config import get_config, load_collection_config
from src.collector.coordinates import CoordinateLookup
from src.collector.errors import CollectorError, ConfigError
from src.collector.http import HttpClient
from src.collector.logging import get_logger, setup_logging

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        prog="collect-pools",
        description="Collect drop-in swim schedules into one JSON dataset.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Collection config JSON (default: COLLECTOR_CONFIG_PATH or config.json).",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Dataset output path (default: COLLECTOR_OUTPUT_PATH or output/pool-data.json).",
    )
    parser.add_argument(
        "--coordinates",
        type=str,
        default=None,
        help="Pool coordinate table (default: COORDINATES_PATH or data/pool_coordinates.json).",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines instead of console output.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level override (DEBUG, INFO, WARNING, ERROR).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_config()

    setup_logging(
        json_output=args.json_logs or settings.log_json,
        log_level=args.log_level or settings.log_level,
    )

    config_path = args.config or settings.collector_config_path
    output_path = args.output or settings.collector_output_path
    coordinates_path = args.coordinates or settings.coordinates_path

    try:
        config = load_collection_config(config_path)
        coordinates = CoordinateLookup.from_file(coordinates_path)
    except ConfigError as e:
        log.error("config_load_failed", path=config_path, error=str(e))
        return 1

    log.info(
        "collection_started",
        sources=list(config.sources),
        start=config.date_range.start.isoformat(),
        end=config.date_range.end.isoformat(),
    )

    client = HttpClient(
        user_agent=settings.user_agent,
        timeout=settings.http_timeout_seconds,
        retry_attempts=settings.http_retry_attempts,
        retry_wait_seconds=settings.http_retry_wait_seconds,
    )
    try:
        dataset = Aggregator(config, client, coordinates).run()
        write_dataset(dataset, output_path)
    except CollectorError as e:
        log.error("collection_failed", error=str(e), error_type=type(e).__name__)
        return 1
    finally:
        client.close()

    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
