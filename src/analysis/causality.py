# file: src/analysis/causality.py
"""
Lag analysis between daily series

- adf_test:           stationarity check before Granger / CCF
- granger_causality:  do past values of `cause` improve prediction of `effect`?
- cross_correlation:  correlation of effect(t) with cause(t - k) for k >= 0
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller, ccf, grangercausalitytests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationarityResult:
    column: str
    adf_statistic: float
    p_value: float
    n_lags: int
    n_obs: int

    @property
    def is_stationary(self) -> bool:
        return self.p_value < 0.05


def adf_test(series: pd.Series, autolag: str = "AIC") -> StationarityResult:
    """Augmented Dickey-Fuller test (H0: unit root)"""
    values = series.astype(float).dropna()
    if values.nunique() < 2:
        raise ValueError(f"{series.name}: constant series, ADF undefined")

    stat, p_value, n_lags, n_obs, _, _ = adfuller(values, autolag=autolag)
    return StationarityResult(
        column=str(series.name),
        adf_statistic=float(stat),
        p_value=float(p_value),
        n_lags=int(n_lags),
        n_obs=int(n_obs),
    )


def granger_causality(
    frame: pd.DataFrame,
    cause: str,
    effect: str,
    max_lag: int = 7,
    difference: bool = False,
) -> pd.DataFrame:
    """
    Granger causality of `cause` on `effect` for lags 1..max_lag.

    Args:
        frame: Date-indexed frame (DailyFeed.to_frame())
        cause: Predictor column
        effect: Response column
        max_lag: Largest lag tested
        difference: First-difference both series (non-stationary input)

    Returns:
        DataFrame [lag, f_stat, p_value, significant] from the SSR F-test
    """
    missing = [c for c in (cause, effect) if c not in frame.columns]
    if missing:
        raise KeyError(f"Unknown columns: {missing}")

    # statsmodels tests whether column 2 Granger-causes column 1
    data = frame[[effect, cause]].astype(float)
    if difference:
        data = data.diff()
    data = data.dropna()

    max_testable = len(data) // 3 - 1
    if max_testable < 1:
        raise ValueError(f"Not enough observations for Granger test (N={len(data)})")
    if max_lag > max_testable:
        logger.warning(f"[granger] max_lag {max_lag} -> {max_testable} (N={len(data)})")
        max_lag = max_testable

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        results = grangercausalitytests(data, maxlag=max_lag, verbose=False)

    rows = []
    for lag in range(1, max_lag + 1):
        f_stat, p_value, _, _ = results[lag][0]["ssr_ftest"]
        rows.append({
            "lag": lag,
            "f_stat": float(f_stat),
            "p_value": float(p_value),
            "significant": bool(p_value < 0.05),
        })

    table = pd.DataFrame(rows)
    best = table.loc[table["p_value"].idxmin()]
    logger.info(
        f"[granger] {cause} -> {effect}: best lag {int(best['lag'])} (p={best['p_value']:.4f})"
    )
    return table


def cross_correlation(
    x: pd.Series,
    y: pd.Series,
    max_lag: int = 14,
) -> pd.DataFrame:
    """
    Correlation of y(t) with x(t - k) for k = 0..max_lag.

    Returns:
        DataFrame [lag, ccf, significant]; significance uses the +/- 1.96/sqrt(n) band
    """
    aligned = pd.concat([x.astype(float), y.astype(float)], axis=1, join="inner").dropna()
    n = len(aligned)
    if n <= max_lag:
        raise ValueError(f"Series too short for max_lag={max_lag}: {n}")

    # ccf(a, b)[k] = corr(a[t+k], b[t]) -> a = y, b = x gives y leading-by-x
    values = ccf(aligned.iloc[:, 1], aligned.iloc[:, 0], adjusted=False)[: max_lag + 1]
    bound = 1.96 / np.sqrt(n)
    return pd.DataFrame({
        "lag": np.arange(max_lag + 1),
        "ccf": values,
        "significant": np.abs(values) > bound,
    })
