# file: src/daylog/tasks.py
"""
Pipeline Tasks

Loaders -> Tagger -> Aggregator -> Merger -> Feed, each stage consuming the
previous stage's frame and returning a new one. Tasks are:
- deterministic for a given config and set of input files
- atomic on write
- safe to rerun (overwrite flag controls)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Tuple

import pandas as pd

from .aggregate import aggregate_expenses, aggregate_steps, aggregate_transit
from .config import PipelineConfig
from .feed import DailyFeed
from .ingest import load_expenses, load_steps, load_transit
from .io_utils import atomic_write_json, atomic_write_parquet, ensure_dir, read_unified
from .locations import LocationTagger
from .merge import merge_daily
from .validate import validate_daily_index

logger = logging.getLogger(__name__)


def load_sources(config: PipelineConfig) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Task 1: Load the three raw logs (fails loud on malformed rows)
    """
    steps = load_steps(config.steps_path, sep=config.sep, date_format=config.steps_date_format)
    transit = load_transit(config.transit_path, sep=config.sep, date_format=config.transit_date_format)
    expenses = load_expenses(config.expenses_path, sep=config.sep, date_format=config.expenses_date_format)
    return steps, transit, expenses


def build_daily_tables(
    steps: pd.DataFrame,
    transit: pd.DataFrame,
    expenses: pd.DataFrame,
    config: PipelineConfig,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Task 2: Tag locations and collapse each source to one row per date
    """
    tagger = LocationTagger(config.location_category_map)
    categories = tagger.categories

    steps_daily = aggregate_steps(steps)
    transit_daily = aggregate_transit(
        tagger.tag_transit(transit),
        categories,
        flags=config.flag_resolution,
    )
    expense_daily = aggregate_expenses(
        tagger.tag_expenses(expenses),
        categories,
        flags=config.flag_resolution,
        food_category=config.food_category,
        essential_categories=config.essential_food_categories,
    )
    return steps_daily, transit_daily, expense_daily


def build_unified_table(config: PipelineConfig) -> pd.DataFrame:
    """
    Task 3: Unified daily table over the configured window
    """
    steps, transit, expenses = load_sources(config)
    steps_daily, transit_daily, expense_daily = build_daily_tables(steps, transit, expenses, config)

    window = config.date_window()
    if window is None and (config.start_date or config.end_date):
        window = _complete_window(config, [steps_daily, transit_daily, expense_daily])

    return merge_daily(
        steps_daily,
        transit_daily,
        expense_daily,
        categories=config.categories(),
        window=window,
    )


def build_feed(config: PipelineConfig) -> DailyFeed:
    return DailyFeed(build_unified_table(config))


def _complete_window(config: PipelineConfig, tables) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """Fill a single configured bound with the data span"""
    dates = pd.concat([t["date"] for t in tables if not t.empty] or [pd.Series(dtype="datetime64[ns]")])
    if dates.empty:
        raise ValueError("Cannot infer a window bound: all sources are empty")
    start = pd.Timestamp(config.start_date).normalize() if config.start_date else dates.min()
    end = pd.Timestamp(config.end_date).normalize() if config.end_date else dates.max()
    return start, end


def _written_with(config: PipelineConfig, fingerprint: Dict) -> bool:
    """True when metadata.json records the same settings as `config`"""
    path = config.metadata_path()
    if not path.exists():
        return False
    try:
        previous = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning(f"[pipeline] unreadable metadata, rebuilding: {path}")
        return False
    return previous.get("config") == fingerprint


def run_full_pipeline(config: PipelineConfig) -> Dict:
    """
    Runs tasks in order, writes the unified table + metadata, and returns a
    summary dict.
    """
    logger.info("=" * 60)
    logger.info("START PIPELINE")
    logger.info("=" * 60)

    run_id = config.run_id()
    logger.info(f"Pipeline run_id: {run_id}")

    unified_path = config.unified_path()
    ensure_dir(unified_path.parent)

    fingerprint = config.fingerprint()
    if unified_path.exists() and not config.overwrite and _written_with(config, fingerprint):
        logger.info(f"[pipeline] unified table exists, skipping: {unified_path}")
        unified = read_unified(unified_path)
    else:
        if unified_path.exists() and not config.overwrite:
            logger.info(f"[pipeline] config changed since the last run, rebuilding: {unified_path}")
        unified = build_unified_table(config)
        atomic_write_parquet(unified, unified_path)
        logger.info(f"[pipeline] wrote unified: {unified_path} ({len(unified)} rows)")

    integrity = validate_daily_index(unified)
    if not integrity.is_valid:
        raise ValueError(f"Unified table failed integrity checks: {integrity}")

    categories = config.categories()
    metadata = {
        "run_id": run_id,
        "written_at": datetime.now(timezone.utc).isoformat(),
        "sources": {
            "steps": config.steps_path,
            "transit": config.transit_path,
            "expenses": config.expenses_path,
        },
        "start_date": unified["date"].min() if len(unified) else None,
        "end_date": unified["date"].max() if len(unified) else None,
        "n_days": int(len(unified)),
        "categories": categories,
        "flag_resolution": config.flag_resolution,
        "config": fingerprint,
    }
    atomic_write_json(metadata, config.metadata_path())

    out = {
        "unified_path": str(unified_path),
        "metadata_path": str(config.metadata_path()),
        "n_days": int(len(unified)),
        "start_date": metadata["start_date"],
        "end_date": metadata["end_date"],
        "total_steps": int(unified["step_count"].sum()) if len(unified) else 0,
        "total_transit_legs": int(unified["transit_count"].sum()) if len(unified) else 0,
        "days_flagged": {c: int(unified[c].sum()) for c in categories if c in unified.columns},
        "run_id": run_id,
    }

    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETE")
    logger.info("=" * 60)
    return out
