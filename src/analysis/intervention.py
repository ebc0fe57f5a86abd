# file: src/analysis/intervention.py
"""
Interrupted Time Series around a known event date

Two views of the same pre/post split:
1. Segmented regression (OLS, HAC errors):
   y = b0 + b1*time + b2*post + b3*time_since_event (+ weekday dummies)
   b2 = level change at the event, b3 = slope change after it
2. Counterfactual forecast: SARIMAX fitted on the pre period, forecast over
   the post period; effect = observed - counterfactual
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm

from src.daylog.feed import DailyFeed

from .models import ArimaSpec, fit_sarimax

logger = logging.getLogger(__name__)


@dataclass
class InterventionResult:
    """Estimated effect of an event on one daily series"""
    target: str
    intervention_date: pd.Timestamp
    n_pre: int
    n_post: int
    level_change: float
    level_change_p: float
    slope_change: float
    slope_change_p: float
    counterfactual: pd.Series
    observed: pd.Series

    @property
    def effect(self) -> pd.Series:
        return self.observed - self.counterfactual

    @property
    def mean_effect(self) -> float:
        return float(self.effect.mean())

    @property
    def cumulative_effect(self) -> float:
        return float(self.effect.sum())

    @property
    def info(self) -> dict:
        return {
            "target": self.target,
            "intervention_date": self.intervention_date.date().isoformat(),
            "n_pre": self.n_pre,
            "n_post": self.n_post,
            "level_change": self.level_change,
            "level_change_p": self.level_change_p,
            "slope_change": self.slope_change,
            "slope_change_p": self.slope_change_p,
            "mean_effect": self.mean_effect,
            "cumulative_effect": self.cumulative_effect,
        }


def segmented_design(index: pd.DatetimeIndex, intervention_date, weekday: bool = False) -> pd.DataFrame:
    """
    Design matrix for segmented regression (constant included).
    """
    event = pd.Timestamp(intervention_date).normalize()
    time = np.arange(len(index), dtype=float)
    post = (index >= event).astype(float)
    first_post = int(np.argmax(post)) if post.any() else len(index)
    time_since = np.where(post > 0, time - first_post, 0.0)

    design = pd.DataFrame({"time": time, "post": post, "time_since": time_since}, index=index)
    if weekday:
        dummies = pd.get_dummies(index.dayofweek, prefix="dow", drop_first=True, dtype=float)
        dummies.index = index
        design = design.join(dummies)
    return sm.add_constant(design, has_constant="add")


def interrupted_time_series(
    feed: DailyFeed,
    target: str,
    intervention_date,
    spec: ArimaSpec = ArimaSpec(order=(1, 0, 0)),
    weekday: bool = True,
    min_days: int = 14,
) -> InterventionResult:
    """
    Estimate the level / slope change of `target` at `intervention_date`.

    Args:
        feed: Unified daily feed
        target: Column to analyse (e.g. "transit_count")
        intervention_date: First day of the post period
        spec: Orders for the counterfactual model
        weekday: Include weekday dummies in the segmented regression
        min_days: Minimum days required on each side

    Returns:
        InterventionResult
    """
    split = feed.split_at(intervention_date)
    if len(split.pre) < min_days or len(split.post) < min_days:
        raise ValueError(
            f"Need >= {min_days} days on each side of {split.boundary.date()}: "
            f"pre={len(split.pre)}, post={len(split.post)}"
        )

    y = feed.series(target).astype(float)
    design = segmented_design(y.index, split.boundary, weekday=weekday)
    ols = sm.OLS(y, design).fit(cov_type="HAC", cov_kwds={"maxlags": 7})

    pre_y = split.pre.series(target).astype(float)
    post_y = split.post.series(target).astype(float)
    counterfactual_fit = fit_sarimax(pre_y, spec)
    counterfactual = counterfactual_fit.get_forecast(steps=len(post_y)).predicted_mean
    counterfactual = pd.Series(np.asarray(counterfactual), index=post_y.index, name=target)

    result = InterventionResult(
        target=target,
        intervention_date=split.boundary,
        n_pre=len(split.pre),
        n_post=len(split.post),
        level_change=float(ols.params["post"]),
        level_change_p=float(ols.pvalues["post"]),
        slope_change=float(ols.params["time_since"]),
        slope_change_p=float(ols.pvalues["time_since"]),
        counterfactual=counterfactual,
        observed=post_y,
    )
    logger.info(
        f"[its] {target} @ {split.boundary.date()}: level {result.level_change:+.2f} "
        f"(p={result.level_change_p:.3f}), slope {result.slope_change:+.3f} "
        f"(p={result.slope_change_p:.3f})"
    )
    return result
