# file: src/daylog/aggregate.py
"""
Step 3: Daily Aggregator

Collapse multi-record days into one row per calendar date.

Each source declares its columns once with an explicit resolution tag:
- SUM:      numeric measures (transit legs, food spending)
- MAJORITY: most frequent value of the day; ties go to the value seen
            first in input order
- ANY:      boolean flags; the day is flagged if any record matches

Dates with no records are absent from the output (zero-fill happens in
the merger).
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import Dict, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from .errors import DataFormatError
from .ingest import parse_dates

logger = logging.getLogger(__name__)

FOOD_COLUMNS = ["essential_food_total", "nonessential_food_total"]


class Resolution(str, Enum):
    """How a column is reduced to one value per day"""
    SUM = "sum"
    MAJORITY = "majority"
    ANY = "any"


DailySchema = Mapping[str, Resolution]

STEP_SCHEMA: DailySchema = {"step_count": Resolution.SUM}


def flag_resolution(name: str) -> Resolution:
    """Map the config string ("any" / "majority") to a Resolution"""
    try:
        resolution = Resolution(name)
    except ValueError:
        raise ValueError(f"Unknown flag resolution: {name!r}") from None
    if resolution is Resolution.SUM:
        raise ValueError("Flags cannot be resolved by SUM")
    return resolution


def transit_schema(categories: Sequence[str], flags: str = "any") -> Dict[str, Resolution]:
    schema = {"transit_count": Resolution.SUM}
    schema.update({category: flag_resolution(flags) for category in categories})
    return schema


def expense_schema(categories: Sequence[str], flags: str = "any") -> Dict[str, Resolution]:
    schema = {category: flag_resolution(flags) for category in categories}
    schema.update({col: Resolution.SUM for col in FOOD_COLUMNS})
    return schema


def majority_vote(values: Iterable):
    """
    Most frequent value; ties resolved by first appearance in input order.

    Missing values are ignored. Returns NaN when every value is missing.

    >>> majority_vote(["A", "A", "B"])
    'A'
    >>> majority_vote(["B", "A"])
    'B'
    """
    present = [v for v in values if not pd.isna(v)]
    if not present:
        return np.nan

    counts = Counter(present)
    top = max(counts.values())
    # Counter preserves insertion order, so the first tied key is first-seen
    for value, count in counts.items():
        if count == top:
            return value


def _resolve(values: pd.Series, resolution: Resolution):
    if resolution is Resolution.SUM:
        return values.sum(min_count=0)
    if resolution is Resolution.ANY:
        return bool(values.dropna().astype(bool).any())
    return majority_vote(values)


def aggregate_daily(
    frame: pd.DataFrame,
    schema: DailySchema,
    source: str = "records",
) -> pd.DataFrame:
    """
    Reduce per-record rows to exactly one row per distinct date.

    Args:
        frame: Records with a `date` column and every schema column
        schema: Column -> Resolution, in output column order
        source: Source name for error messages

    Returns:
        New DataFrame [date, *schema], ascending by date, unique dates

    Raises:
        DataFormatError: a date value does not parse (rows are never dropped)
    """
    required = ["date", *schema]
    missing = [col for col in required if col not in frame.columns]
    if missing:
        raise DataFormatError(f"missing columns for aggregation: {missing}", source=source)

    work = frame[required].copy()
    work["date"] = parse_dates(work["date"], source)

    if work.empty:
        empty = pd.DataFrame({"date": pd.Series(dtype="datetime64[ns]")})
        for col, resolution in schema.items():
            dtype = "float64" if resolution is Resolution.SUM else (
                "bool" if resolution is Resolution.ANY else "object"
            )
            empty[col] = pd.Series(dtype=dtype)
        return empty

    rows = []
    for day, group in work.groupby("date", sort=True):
        row = {"date": day}
        for col, resolution in schema.items():
            row[col] = _resolve(group[col], resolution)
        rows.append(row)

    daily = pd.DataFrame(rows, columns=required)
    for col, resolution in schema.items():
        if resolution is Resolution.ANY:
            daily[col] = daily[col].astype(bool)
        elif resolution is Resolution.MAJORITY and work[col].dtype == bool:
            daily[col] = daily[col].astype(bool)

    logger.info(f"[aggregate] {source}: {len(work)} records -> {len(daily)} days")
    return daily


def build_food_columns(
    expenses: pd.DataFrame,
    food_category: str = "Food",
    essential_categories: Iterable[str] = ("Groceries",),
) -> pd.DataFrame:
    """
    Split food spending into essential / non-essential per record.

    Amounts are sign-normalized to positive spending (a debit of "-12,50"
    or "12,50" counts as 12.50). Non-food records contribute 0 to both.

    Returns:
        New DataFrame with essential_food_total and nonessential_food_total
    """
    work = expenses.copy()
    food_key = food_category.casefold()
    essential = {c.casefold() for c in essential_categories}

    broad = work["category_broad"].map(lambda v: v.casefold() if isinstance(v, str) else "")
    specific = work["category_specific"].map(lambda v: v.casefold() if isinstance(v, str) else "")
    spent = work["amount"].astype(float).abs()

    is_food = broad == food_key
    is_essential = is_food & specific.isin(essential)

    work["essential_food_total"] = spent.where(is_essential, 0.0)
    work["nonessential_food_total"] = spent.where(is_food & ~is_essential, 0.0)
    return work


def aggregate_steps(steps: pd.DataFrame) -> pd.DataFrame:
    daily = aggregate_daily(steps, STEP_SCHEMA, source="steps")
    daily["step_count"] = daily["step_count"].astype("int64")
    return daily


def aggregate_transit(
    tagged_transit: pd.DataFrame,
    categories: Sequence[str],
    flags: str = "any",
) -> pd.DataFrame:
    """Tagged transit legs -> [date, transit_count, <flags>]"""
    daily = aggregate_daily(tagged_transit, transit_schema(categories, flags), source="transit")
    daily["transit_count"] = daily["transit_count"].astype("int64")
    return daily


def aggregate_expenses(
    tagged_expenses: pd.DataFrame,
    categories: Sequence[str],
    flags: str = "any",
    food_category: str = "Food",
    essential_categories: Iterable[str] = ("Groceries",),
) -> pd.DataFrame:
    """Tagged expenses -> [date, <flags>, essential_food_total, nonessential_food_total]"""
    with_food = build_food_columns(tagged_expenses, food_category, essential_categories)
    daily = aggregate_daily(with_food, expense_schema(categories, flags), source="expenses")
    for col in FOOD_COLUMNS:
        daily[col] = daily[col].astype(float).round(2)
    return daily
