# file: src/daylog/merge.py
"""
Step 4: Merger

Join the three per-day tables on date into the unified daily table:
- every date of [start, end] appears exactly once, ascending
- numeric fields default to 0, flags default to False
- dates outside the window are excluded (not an error)
- transit-derived location flags win over expense-derived flags on the
  same date
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .aggregate import FOOD_COLUMNS
from .errors import WindowError

logger = logging.getLogger(__name__)

Window = Tuple[pd.Timestamp, pd.Timestamp]


def unified_columns(categories: Sequence[str]) -> List[str]:
    return ["date", "step_count", "transit_count", *categories, *FOOD_COLUMNS]


def _column_defaults(categories: Sequence[str]) -> Dict[str, object]:
    defaults: Dict[str, object] = {"step_count": 0, "transit_count": 0}
    defaults.update({category: False for category in categories})
    defaults.update({col: 0.0 for col in FOOD_COLUMNS})
    return defaults


def resolve_location_precedence(
    transit_daily: pd.DataFrame,
    expense_daily: pd.DataFrame,
    categories: Sequence[str],
) -> pd.DataFrame:
    """
    One location row per date: transit rows, plus expense rows on dates
    transit does not cover.

    Returns:
        New DataFrame [date, transit_count, <flags>], ascending by date
    """
    cols = ["date", "transit_count", *categories]

    transit_part = transit_daily[["date", "transit_count", *categories]]
    expense_part = expense_daily.loc[
        ~expense_daily["date"].isin(transit_daily["date"]), ["date", *categories]
    ].copy()
    expense_part.insert(1, "transit_count", 0)

    overridden = int(expense_daily["date"].isin(transit_daily["date"]).sum())
    if overridden:
        logger.debug(f"[merge] transit flags override expense flags on {overridden} day(s)")

    parts = [part for part in (transit_part, expense_part) if not part.empty]
    if not parts:
        return pd.DataFrame({col: pd.Series(dtype=transit_daily[col].dtype) for col in cols})

    location = pd.concat(parts, ignore_index=True)
    return location.sort_values("date", kind="stable").reset_index(drop=True)[cols]


def resolve_window(
    window: Optional[Window],
    tables: Sequence[pd.DataFrame],
) -> Optional[Window]:
    """Configured window, or the span of all dates in the tables"""
    if window is not None:
        start, end = (pd.Timestamp(w).normalize() for w in window)
        if start > end:
            raise WindowError(f"Window start {start.date()} is after end {end.date()}")
        return start, end

    dates = [table["date"] for table in tables if not table.empty]
    if not dates:
        return None
    all_dates = pd.concat(dates)
    return all_dates.min(), all_dates.max()


def merge_daily(
    steps_daily: pd.DataFrame,
    transit_daily: pd.DataFrame,
    expense_daily: pd.DataFrame,
    categories: Sequence[str],
    window: Optional[Window] = None,
) -> pd.DataFrame:
    """
    Build the unified daily table.

    Args:
        steps_daily: [date, step_count], unique dates
        transit_daily: [date, transit_count, <flags>], unique dates
        expense_daily: [date, <flags>, essential_food_total, nonessential_food_total]
        categories: Location categories (flag columns), in output order
        window: Inclusive (start, end); None = span of the inputs

    Returns:
        DataFrame with one row per date of the window, ascending

    Raises:
        WindowError: start > end
    """
    categories = list(categories)
    columns = unified_columns(categories)
    defaults = _column_defaults(categories)

    location = resolve_location_precedence(transit_daily, expense_daily, categories)
    food = expense_daily[["date", *FOOD_COLUMNS]]

    bounds = resolve_window(window, [steps_daily, location, food])
    if bounds is None:
        logger.warning("[merge] no input rows and no window: unified table is empty")
        empty = {"date": pd.Series(dtype="datetime64[ns]")}
        empty.update({col: pd.Series(dtype=type(val)) for col, val in defaults.items()})
        return pd.DataFrame(empty)[columns]

    start, end = bounds
    index = pd.date_range(start, end, freq="D", name="date")

    pieces = {}
    covered = pd.Series(False, index=index)
    for table, cols in (
        (steps_daily, ["step_count"]),
        (location, ["transit_count", *categories]),
        (food, FOOD_COLUMNS),
    ):
        if table["date"].duplicated().any():
            raise ValueError("Daily tables must have unique dates; aggregate first")
        indexed = table.set_index("date")
        covered |= pd.Series(index.isin(indexed.index), index=index)
        for col in cols:
            pieces[col] = indexed[col].reindex(index, fill_value=defaults[col])

    outside = _count_outside(index, [steps_daily, location, food])
    if outside:
        logger.info(f"[merge] excluded {outside} source day(s) outside {start.date()}..{end.date()}")

    gaps = int((~covered).sum())
    if gaps:
        logger.info(
            "[merge][GAP] %d of %d day(s) have no data from any source; zero-filled",
            gaps,
            len(index),
        )

    unified = pd.DataFrame(pieces, index=index).reset_index()
    unified["step_count"] = unified["step_count"].astype("int64")
    unified["transit_count"] = unified["transit_count"].astype("int64")
    for category in categories:
        unified[category] = unified[category].astype(bool)
    for col in FOOD_COLUMNS:
        unified[col] = unified[col].astype(float)

    logger.info(f"[merge] unified table: {len(unified)} days, {start.date()} to {end.date()}")
    return unified[columns]


def _count_outside(index: pd.DatetimeIndex, tables: Sequence[pd.DataFrame]) -> int:
    non_empty = [t["date"] for t in tables if not t.empty]
    if not non_empty:
        return 0
    dates = pd.concat(non_empty).drop_duplicates()
    return int((~dates.isin(index)).sum())
