# file: src/analysis/models.py
"""
ARIMA / SARIMA / Dynamic Regression on the daily feed

All three are statsmodels SARIMAX fits:
1. ARIMA:              order only
2. SARIMA:             + weekly seasonal order (s=7)
3. Dynamic regression: + exogenous predictors (transit use, location flags,
                       lagged regressors) with ARIMA errors

Holdout evaluation splits the feed chronologically and forecasts the test
half; exogenous values for the test half are the observed ones.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from statsmodels.tsa.statespace.sarimax import SARIMAX

from src.daylog.feed import DailyFeed

from .evaluation import ForecastMetrics
from .features import build_regressors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArimaSpec:
    """(p, d, q) x (P, D, Q, s) with an optional trend term"""
    order: Tuple[int, int, int] = (1, 0, 1)
    seasonal_order: Tuple[int, int, int, int] = (0, 0, 0, 0)
    trend: Optional[str] = "c"

    @property
    def name(self) -> str:
        if self.seasonal_order[3]:
            return f"sarima{self.order}x{self.seasonal_order}"
        return f"arima{self.order}"

    @property
    def min_observations(self) -> int:
        p, d, q = self.order
        P, D, Q, s = self.seasonal_order
        return max(p, q) + d + (max(P, Q) + D) * s + 2


WEEKLY_SARIMA = ArimaSpec(order=(1, 0, 1), seasonal_order=(1, 0, 1, 7))


@dataclass
class ForecastResult:
    """Holdout forecast with metrics"""
    target: str
    model_name: str
    forecast: pd.Series
    actual: pd.Series
    metrics: Dict[str, float] = field(default_factory=dict)
    aic: float = np.nan
    exog_columns: Sequence[str] = ()

    @property
    def residuals(self) -> pd.Series:
        return self.actual - self.forecast


def fit_sarimax(
    y: pd.Series,
    spec: ArimaSpec = ArimaSpec(),
    exog: Optional[pd.DataFrame] = None,
):
    """
    Fit SARIMAX to a daily series.

    Args:
        y: Target with a daily DatetimeIndex
        spec: Model orders
        exog: Exogenous regressors aligned to y (dynamic regression)

    Returns:
        statsmodels SARIMAXResults
    """
    if len(y) < spec.min_observations:
        raise ValueError(
            f"Series too short for {spec.name}: {len(y)} < {spec.min_observations}"
        )
    if exog is not None and not exog.index.equals(y.index):
        raise ValueError("exog index must match the target index")

    model = SARIMAX(
        y.astype(float),
        exog=exog,
        order=spec.order,
        seasonal_order=spec.seasonal_order,
        trend=spec.trend,
        enforce_stationarity=False,
        enforce_invertibility=False,
    )
    with warnings.catch_warnings():
        # convergence chatter on short personal series
        warnings.simplefilter("ignore")
        results = model.fit(disp=False)

    logger.debug(f"{spec.name} fitted on {len(y)} days, aic={results.aic:.1f}")
    return results


def holdout_forecast(
    feed: DailyFeed,
    target: str,
    boundary,
    spec: ArimaSpec = ArimaSpec(),
    exog_columns: Sequence[str] = (),
    exog_lags: Optional[Mapping[str, Sequence[int]]] = None,
) -> ForecastResult:
    """
    Fit on days before `boundary`, forecast the days from `boundary` on.

    Args:
        feed: Unified daily feed
        target: Column to model (e.g. "step_count")
        boundary: First test day
        spec: ARIMA/SARIMA orders
        exog_columns: Predictor columns (dynamic regression when non-empty)
        exog_lags: Hand-picked lags per predictor, e.g. {"transit_count": [1]}

    Returns:
        ForecastResult over the test days
    """
    frame = feed.to_frame(indexed=True)
    if target not in frame.columns:
        raise KeyError(f"Unknown target: {target}")

    exog = None
    if exog_columns or exog_lags:
        exog = build_regressors(frame, exog_columns, lags=exog_lags)
        # lagging drops leading days; keep target aligned
        frame = frame.loc[exog.index]
        frame.index = pd.DatetimeIndex(frame.index, freq="D")
        exog.index = frame.index

    boundary = pd.Timestamp(boundary).normalize()
    train_mask = frame.index < boundary
    y_train = frame.loc[train_mask, target].astype(float)
    y_test = frame.loc[~train_mask, target].astype(float)
    if y_test.empty:
        raise ValueError(f"No test days on or after {boundary.date()}")

    y_train.index = pd.DatetimeIndex(y_train.index, freq="D")
    exog_train = exog.loc[train_mask] if exog is not None else None
    exog_test = exog.loc[~train_mask] if exog is not None else None
    if exog_train is not None:
        exog_train.index = y_train.index

    results = fit_sarimax(y_train, spec, exog=exog_train)
    forecast = results.get_forecast(steps=len(y_test), exog=exog_test).predicted_mean
    forecast = pd.Series(np.asarray(forecast), index=y_test.index, name=target)

    name = spec.name if exog is None else f"dynreg_{spec.name}"
    metrics = ForecastMetrics.compute_all(y_test.to_numpy(), forecast.to_numpy())
    logger.info(f"[{name}] {target}: rmse={metrics['rmse']:.2f} mae={metrics['mae']:.2f}")

    return ForecastResult(
        target=target,
        model_name=name,
        forecast=forecast,
        actual=y_test,
        metrics=metrics,
        aic=float(results.aic),
        exog_columns=list(exog.columns) if exog is not None else [],
    )


def compare_models(
    feed: DailyFeed,
    target: str,
    boundary,
    specs: Mapping[str, dict],
) -> pd.DataFrame:
    """
    Leaderboard of holdout fits.

    Args:
        specs: label -> holdout_forecast keyword arguments

    Returns:
        DataFrame [model, rmse, mae, mape, aic] sorted by rmse
    """
    rows = []
    for label, kwargs in specs.items():
        try:
            result = holdout_forecast(feed, target, boundary, **kwargs)
        except ValueError as e:
            logger.warning(f"[{label}] skipped: {e}")
            continue
        rows.append({"model": label, **result.metrics, "aic": result.aic})

    leaderboard = pd.DataFrame(rows, columns=["model", "rmse", "mae", "mape", "aic"])
    return leaderboard.sort_values("rmse", kind="stable").reset_index(drop=True)
