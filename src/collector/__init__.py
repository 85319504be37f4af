"""Drop-in swim schedule collector.

Pulls public swim schedules from municipal booking platforms (PerfectMind,
ActiveNet), classifies child-friendly sessions and writes one normalized
dataset keyed by pool.
"""

from src.collector.aggregator import Aggregator, season_label, write_dataset
from src.collector.classify import ClassificationRules, is_child_friendly
from src.collector.config import CollectionConfig, load_collection_config
from src.collector.models import Dataset, Pool, Session

__all__ = [
    "Aggregator",
    "ClassificationRules",
    "CollectionConfig",
    "Dataset",
    "Pool",
    "Session",
    "is_child_friendly",
    "load_collection_config",
    "season_label",
    "write_dataset",
]
