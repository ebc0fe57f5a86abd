"""
daylog: Personal Daily-Log Pipeline

Step-by-step functions, each returning a new table:
1. config - Paths, date window and place-name lookup
2. ingest - Load steps, transit trips and card expenses (fail-loud)
3. locations - Dummy-code place names into location flags
4. aggregate - One row per date (SUM / MAJORITY / ANY per column)
5. merge - Unified daily table over the window, zero-filled
6. feed - Validated, date-ordered series with chronological splits
"""

from .aggregate import (Resolution, aggregate_daily, aggregate_expenses,
                        aggregate_steps, aggregate_transit, majority_vote)
from .config import DEFAULT_LOCATION_CATEGORY_MAP, PipelineConfig, load_config
from .errors import DataFormatError, WindowError
from .feed import DailyFeed, FeedSplit
from .ingest import load_expenses, load_steps, load_transit, parse_amount
from .locations import LocationTagger
from .merge import merge_daily, resolve_location_precedence
from .tasks import build_feed, build_unified_table, run_full_pipeline
from .validate import ValidationResult, validate_daily_index

__all__ = [
    # Config / errors
    "PipelineConfig",
    "load_config",
    "DEFAULT_LOCATION_CATEGORY_MAP",
    "DataFormatError",
    "WindowError",
    # Loaders
    "load_steps",
    "load_transit",
    "load_expenses",
    "parse_amount",
    # Tagger
    "LocationTagger",
    # Aggregator
    "Resolution",
    "majority_vote",
    "aggregate_daily",
    "aggregate_steps",
    "aggregate_transit",
    "aggregate_expenses",
    # Merger
    "merge_daily",
    "resolve_location_precedence",
    # Feed
    "DailyFeed",
    "FeedSplit",
    "ValidationResult",
    "validate_daily_index",
    # Tasks
    "build_unified_table",
    "build_feed",
    "run_full_pipeline",
]
