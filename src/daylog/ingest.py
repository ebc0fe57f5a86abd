# file: src/daylog/ingest.py
"""
Step 1: Load the three personal logs

Read raw CSV exports into canonical frames:
- steps:    one row per date        -> [date, step_count]
- transit:  one row per trip leg    -> [date, departure_location, arrival_location, transit_count]
- expenses: one row per transaction -> [date, amount, category_broad, category_specific, location]

Fail-loud: every value is read as text and parsed explicitly. A value that
does not parse raises DataFormatError naming the raw value (never coerced
to NaN and dropped).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from .errors import DataFormatError

logger = logging.getLogger(__name__)

STEP_COLUMNS = ["date", "step_count"]
TRANSIT_COLUMNS = ["date", "departure_location", "arrival_location"]
EXPENSE_COLUMNS = ["date", "amount", "category_broad", "category_specific", "location"]

_AMOUNT_PATTERN = re.compile(r"^[+-]?\d+(\.\d+)?$")
# comma decimal, optionally with dot thousands groups: "12,50", "1.234,56"
_COMMA_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d{1,3}(\.\d{3})+|\d+),\d+$")


def read_source_csv(
    path: str | Path,
    required: Iterable[str],
    source: str,
    sep: str = ",",
    rename: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    """
    Read a raw CSV with every column as text and check its shape.

    Args:
        path: CSV file
        required: Columns that must exist after renaming
        source: Source name used in error messages
        sep: Field separator
        rename: Optional raw header -> canonical header mapping

    Returns:
        DataFrame of strings (missing cells are NaN)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{source} file not found: {path}")

    df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False, na_values=[""])
    df.columns = [str(c).strip() for c in df.columns]
    if rename:
        df = df.rename(columns=dict(rename))

    missing = [col for col in required if col not in df.columns]
    if missing:
        raise DataFormatError(
            f"missing required columns {missing}; got {df.columns.tolist()}",
            source=source,
        )

    logger.info(f"[ingest] {source}: read {len(df)} rows from {path}")
    return df


def parse_dates(
    values: pd.Series,
    source: str,
    fmt: Optional[str] = None,
) -> pd.Series:
    """
    Parse raw date strings to midnight timestamps (timezone-naive).

    Raises DataFormatError on the first value that does not parse, including
    empty cells.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        parsed = values
    else:
        text = values.map(lambda v: v.strip() if isinstance(v, str) else v)
        try:
            parsed = pd.to_datetime(text, format=fmt, errors="coerce")
        except ValueError:
            # mixed UTC offsets, e.g. an export spanning a DST change
            parsed = None
        if parsed is None or not pd.api.types.is_datetime64_any_dtype(parsed):
            parsed = _parse_wall_clock(text, fmt)

    bad = parsed.isna()
    if bad.any():
        idx = bad.idxmax()
        raise DataFormatError(
            f"unparseable date {values.loc[idx]!r}",
            source=source,
            raw_value=values.loc[idx],
            row=int(idx) if isinstance(idx, (int, np.integer)) else None,
        )

    if getattr(parsed.dt, "tz", None) is not None:
        parsed = parsed.dt.tz_localize(None)
    return parsed.dt.normalize()


def _parse_wall_clock(text: pd.Series, fmt: Optional[str]) -> pd.Series:
    """
    Element-wise parse keeping each value's local wall-clock time.

    "2021-10-30T23:30:00+02:00" stays on 2021-10-30; converting to UTC
    first would move it to the previous or next calendar day.
    Unparseable values become NaT.
    """
    def one(value):
        if not isinstance(value, str) or not value:
            return pd.NaT
        try:
            ts = pd.to_datetime(value, format=fmt)
        except (ValueError, TypeError):
            return pd.NaT
        return ts.tz_localize(None) if ts.tzinfo is not None else ts

    return pd.to_datetime(text.map(one))


def parse_amount(raw: str) -> float:
    """
    Parse a bank-export amount with comma decimal separator.

    "-5,00" -> -5.0, "1.234,56" -> 1234.56, "12.50" -> 12.5
    """
    if raw is None or (isinstance(raw, float) and np.isnan(raw)):
        raise ValueError("empty amount")

    text = str(raw).strip().replace("\u00a0", "").replace(" ", "")
    if "," in text:
        # "1,234.56" is rejected rather than read as 1.23456
        if not _COMMA_DECIMAL_PATTERN.match(text):
            raise ValueError(f"malformed comma-decimal amount {raw!r}")
        text = text.replace(".", "").replace(",", ".")

    if not _AMOUNT_PATTERN.match(text):
        raise ValueError(f"non-numeric amount {raw!r}")
    return float(text)


def parse_amounts(values: pd.Series, source: str) -> pd.Series:
    """Vector form of parse_amount; raises DataFormatError on the first bad value."""
    parsed = []
    for idx, raw in values.items():
        try:
            parsed.append(parse_amount(raw))
        except ValueError:
            raise DataFormatError(
                f"non-numeric amount {raw!r}",
                source=source,
                raw_value=raw,
                row=int(idx),
            ) from None
    return pd.Series(parsed, index=values.index, dtype="float64")


def _parse_step_counts(values: pd.Series, source: str) -> pd.Series:
    numeric = pd.to_numeric(values.str.strip(), errors="coerce")
    bad = numeric.isna() | (numeric < 0) | (numeric % 1 != 0)
    if bad.any():
        idx = bad.idxmax()
        raise DataFormatError(
            f"step count must be a non-negative integer, got {values.loc[idx]!r}",
            source=source,
            raw_value=values.loc[idx],
            row=int(idx),
        )
    return numeric.astype("int64")


def _clean_text(values: pd.Series) -> pd.Series:
    text = values.str.strip()
    return text.mask(text == "")


def load_steps(
    path: str | Path,
    sep: str = ",",
    date_format: Optional[str] = None,
    rename: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    """
    Load the pedometer export.

    Returns:
        DataFrame with columns [date, step_count]
    """
    raw = read_source_csv(path, STEP_COLUMNS, "steps", sep=sep, rename=rename)

    df = pd.DataFrame({
        "date": parse_dates(raw["date"], "steps", fmt=date_format),
        "step_count": _parse_step_counts(raw["step_count"], "steps"),
    })
    return df.reset_index(drop=True)


def load_transit(
    path: str | Path,
    sep: str = ",",
    date_format: Optional[str] = None,
    rename: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    """
    Load the transit card export (one row per trip leg).

    Metadata columns (fare, card number, ...) are dropped. Each leg counts
    as one trip.

    Returns:
        DataFrame with columns [date, departure_location, arrival_location, transit_count]
    """
    raw = read_source_csv(path, TRANSIT_COLUMNS, "transit", sep=sep, rename=rename)

    df = pd.DataFrame({
        "date": parse_dates(raw["date"], "transit", fmt=date_format),
        "departure_location": _clean_text(raw["departure_location"]),
        "arrival_location": _clean_text(raw["arrival_location"]),
    })
    df["transit_count"] = 1
    return df.reset_index(drop=True)


def load_expenses(
    path: str | Path,
    sep: str = ",",
    date_format: Optional[str] = None,
    rename: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    """
    Load the card expense export.

    The amount keeps its sign (negative = spend); sign normalization happens
    when food totals are built.

    Returns:
        DataFrame with columns [date, amount, category_broad, category_specific, location]
    """
    raw = read_source_csv(path, EXPENSE_COLUMNS, "expenses", sep=sep, rename=rename)

    df = pd.DataFrame({
        "date": parse_dates(raw["date"], "expenses", fmt=date_format),
        "amount": parse_amounts(raw["amount"], "expenses"),
        "category_broad": _clean_text(raw["category_broad"]),
        "category_specific": _clean_text(raw["category_specific"]),
        "location": _clean_text(raw["location"]),
    })
    return df.reset_index(drop=True)
