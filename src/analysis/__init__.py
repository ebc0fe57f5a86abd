"""
Analysis: statistical routines fed by the daily feed

- models: ARIMA / SARIMA / dynamic regression holdout forecasts
- causality: ADF, Granger causality, cross-correlation
- intervention: interrupted time series around an event date
- features: hand-picked lag and calendar regressors
- evaluation: RMSE / MAE / MAPE with NaN masking
"""

from .causality import (StationarityResult, adf_test, cross_correlation,
                        granger_causality)
from .evaluation import ForecastMetrics
from .features import add_calendar_features, add_lag_features, build_regressors
from .intervention import (InterventionResult, interrupted_time_series,
                           segmented_design)
from .models import (WEEKLY_SARIMA, ArimaSpec, ForecastResult, compare_models,
                     fit_sarimax, holdout_forecast)

__all__ = [
    # Models
    "ArimaSpec",
    "WEEKLY_SARIMA",
    "ForecastResult",
    "fit_sarimax",
    "holdout_forecast",
    "compare_models",
    # Causality
    "StationarityResult",
    "adf_test",
    "granger_causality",
    "cross_correlation",
    # Intervention
    "InterventionResult",
    "interrupted_time_series",
    "segmented_design",
    # Features / evaluation
    "add_calendar_features",
    "add_lag_features",
    "build_regressors",
    "ForecastMetrics",
]
