# file: src/daylog/validate.py
"""
Validate Daily Series Integrity

Hard gates for the unified daily table:
- Uniqueness: no duplicate dates
- Frequency: expected daily index vs observed (missing days)
- Monotonic: increasing dates
- Values: no nulls, no negative numeric fields
"""

from dataclasses import dataclass
from typing import List

import pandas as pd


@dataclass
class ValidationResult:
    """Results of daily series validation"""
    is_valid: bool
    n_rows: int
    n_duplicates: int
    n_missing_days: int
    missing_days: List[pd.Timestamp]
    n_nulls: int
    n_negative: int
    is_monotonic: bool


def validate_daily_index(df: pd.DataFrame, date_col: str = "date") -> ValidationResult:
    """
    Validate daily time series integrity for analysis.

    Checks:
    1. No duplicate dates
    2. Expected daily frequency vs observed (missing days)
    3. Monotonic increasing dates (in row order, not after sorting)
    4. Value sanity (nulls, negative numbers)

    Args:
        df: DataFrame with a date column and value columns

    Returns:
        ValidationResult with detailed findings
    """
    if date_col not in df.columns:
        raise ValueError(f"Missing required date column: {date_col}")

    dates = pd.to_datetime(df[date_col], errors="raise")

    # Check 1: Duplicates
    n_duplicates = int(dates.duplicated(keep=False).sum())

    # Check 2: Missing days
    missing_days: List[pd.Timestamp] = []
    if len(dates):
        expected = pd.date_range(start=dates.min(), end=dates.max(), freq="D")
        missing_days = sorted(set(expected) - set(dates))

    # Check 3: Monotonic
    is_monotonic = bool(dates.is_monotonic_increasing)

    # Check 4: Value checks
    values = df.drop(columns=[date_col])
    n_nulls = int(values.isna().sum().sum())
    numeric = values.select_dtypes(include="number")
    n_negative = int((numeric < 0).sum().sum())

    is_valid = (
        n_duplicates == 0
        and not missing_days
        and is_monotonic
        and n_nulls == 0
        and n_negative == 0
    )

    return ValidationResult(
        is_valid=is_valid,
        n_rows=len(df),
        n_duplicates=n_duplicates,
        n_missing_days=len(missing_days),
        missing_days=missing_days[:10],  # First 10 only
        n_nulls=n_nulls,
        n_negative=n_negative,
        is_monotonic=is_monotonic,
    )


def assert_daily_contract(df: pd.DataFrame, date_col: str = "date") -> ValidationResult:
    """Raise a ValueError if the daily contract is violated"""
    result = validate_daily_index(df, date_col=date_col)
    if not result.is_valid:
        raise ValueError(
            f"Invalid daily series: duplicates={result.n_duplicates}, "
            f"missing_days={result.n_missing_days}, "
            f"monotonic={result.is_monotonic}, "
            f"nulls={result.n_nulls}, negative={result.n_negative}"
        )
    return result
