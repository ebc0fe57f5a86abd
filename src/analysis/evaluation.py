# file: src/analysis/evaluation.py
"""
Forecast Evaluation Metrics

Explicit NaN handling: invalid points are masked, and a metric with no valid
points is NaN rather than 0.
"""

import logging
from typing import Dict

import numpy as np

logger = logging.getLogger(__name__)


class ForecastMetrics:
    """Compute holdout forecast metrics"""

    @staticmethod
    def _valid(y_true: np.ndarray, y_pred: np.ndarray) -> np.ndarray:
        return np.isfinite(y_pred) & np.isfinite(y_true)

    @staticmethod
    def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Root Mean Squared Error"""
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        valid_mask = ForecastMetrics._valid(y_true, y_pred)

        if valid_mask.sum() == 0:
            return np.nan

        return float(np.sqrt(np.mean((y_pred[valid_mask] - y_true[valid_mask]) ** 2)))

    @staticmethod
    def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Mean Absolute Error"""
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        valid_mask = ForecastMetrics._valid(y_true, y_pred)

        if valid_mask.sum() == 0:
            return np.nan

        return float(np.mean(np.abs(y_pred[valid_mask] - y_true[valid_mask])))

    @staticmethod
    def mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Mean Absolute Percentage Error (%)

        Days with zero actuals (no steps recorded) are masked out.
        """
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        valid_mask = ForecastMetrics._valid(y_true, y_pred) & (np.abs(y_true) > 1e-10)

        if valid_mask.sum() == 0:
            return np.nan

        ape = np.abs((y_pred[valid_mask] - y_true[valid_mask]) / np.abs(y_true[valid_mask]))
        return float(100 * np.mean(ape))

    @classmethod
    def compute_all(cls, y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
        metrics = {
            "rmse": cls.rmse(y_true, y_pred),
            "mae": cls.mae(y_true, y_pred),
            "mape": cls.mape(y_true, y_pred),
        }
        n_invalid = int((~cls._valid(np.asarray(y_true, float), np.asarray(y_pred, float))).sum())
        if n_invalid:
            logger.warning(f"{n_invalid} forecast points masked as NaN/inf")
        return metrics
