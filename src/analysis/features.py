# file: src/analysis/features.py
"""
Lag and calendar predictors for dynamic regression (pandas only).

Lags are hand-picked per predictor (e.g. steps respond to yesterday's
transit use), so helpers take explicit lag lists instead of a fixed grid.
"""

from __future__ import annotations

from typing import Iterable, Mapping

import pandas as pd


def add_calendar_features(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add day-of-week and weekend indicators from the DatetimeIndex.
    """
    features = df.copy()
    if not isinstance(features.index, pd.DatetimeIndex):
        raise ValueError("Expected a DatetimeIndex (use DailyFeed.to_frame())")

    features["dayofweek"] = features.index.dayofweek
    features["is_weekend"] = (features.index.dayofweek >= 5).astype(int)
    return features


def add_lag_features(
    df: pd.DataFrame,
    lags: Mapping[str, Iterable[int]],
) -> pd.DataFrame:
    """
    Add lagged copies of columns using past values only.

    Args:
        df: Date-indexed frame
        lags: Column -> lags, e.g. {"transit_count": [1, 7]}

    Returns:
        New DataFrame with `<col>_lag_<k>` columns (leading rows are NaN)
    """
    features = df.copy()
    for col, col_lags in lags.items():
        if col not in features.columns:
            raise ValueError(f"Missing value column: {col}")
        for lag in col_lags:
            if lag < 1:
                raise ValueError(f"Lags must be >= 1, got {lag} for {col}")
            features[f"{col}_lag_{lag}"] = features[col].shift(lag)
    return features


def build_regressors(
    df: pd.DataFrame,
    columns: Iterable[str],
    lags: Mapping[str, Iterable[int]] | None = None,
    calendar: bool = False,
) -> pd.DataFrame:
    """
    Exogenous design matrix: selected columns (+ lags, + calendar) as floats,
    with rows lost to lagging dropped.
    """
    columns = list(columns)
    work = df[columns].copy()
    if lags:
        missing = [c for c in lags if c not in df.columns]
        if missing:
            raise ValueError(f"Missing lag source columns: {missing}")
        work = add_lag_features(
            work.join(df[[c for c in lags if c not in columns]]),
            lags,
        )
        work = work.drop(columns=[c for c in lags if c not in columns])
    if calendar:
        work = add_calendar_features(work).drop(columns=["dayofweek"])
    return work.dropna().astype(float)
