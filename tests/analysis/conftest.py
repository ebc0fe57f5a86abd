"""Synthetic unified tables with known structure."""

import numpy as np
import pandas as pd
import pytest

from src.daylog.feed import DailyFeed

N_DAYS = 120
STEPS_PER_LEG = 800


def synthetic_unified(
    n_days: int = N_DAYS,
    seed: int = 42,
    steps_per_leg: float = STEPS_PER_LEG,
    shift_at: int | None = None,
    shift: float = 0.0,
) -> pd.DataFrame:
    """
    Unified daily table where steps respond to yesterday's transit use:
        step_count[t] = 6000 + steps_per_leg * transit_count[t-1] + weekend bump + noise
    and optionally jump by `shift` from day `shift_at` on.
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2022-01-03", periods=n_days, freq="D", name="date")

    transit = rng.poisson(1.5, n_days)
    yesterday = np.concatenate([[0], transit[:-1]])
    weekend = (dates.dayofweek >= 5).astype(float)
    steps = 6000 + steps_per_leg * yesterday + 1000 * weekend + rng.normal(0, 300, n_days)
    if shift_at is not None:
        steps[shift_at:] += shift

    return pd.DataFrame({
        "date": dates,
        "step_count": np.clip(steps, 0, None).round().astype("int64"),
        "transit_count": transit.astype("int64"),
        "Home": rng.random(n_days) < 0.7,
        "essential_food_total": rng.gamma(2.0, 5.0, n_days).round(2),
        "nonessential_food_total": np.zeros(n_days),
    })


@pytest.fixture
def feed():
    return DailyFeed(synthetic_unified())


@pytest.fixture
def shifted_feed():
    """60 days before and 60 days after a +3000 step level shift"""
    unified = synthetic_unified(steps_per_leg=0.0, shift_at=60, shift=3000.0)
    return DailyFeed(unified)


@pytest.fixture
def shift_date():
    return pd.Timestamp("2022-01-03") + pd.Timedelta(days=60)
