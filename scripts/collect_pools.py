"""Collect drop-in swim schedules from every configured source into one JSON file.

Standalone CLI script. Reads the collection config, queries each booking
platform in turn, classifies child-friendly sessions, attaches pool
coordinates and overwrites the dataset file.

Run with: python scripts/collect_pools.py
Custom:   python scripts/collect_pools.py --config config.json --output output/pool-data.json
JSON log: python scripts/collect_pools.py --json-logs

Exit codes:
  0 = success (dataset written)
  1 = error (cause logged on stderr)
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.collector.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
