"""
Exploratory Analysis Runner

Complete orchestration of:
1. Unified daily table from the three logs (or a written parquet)
2. Stationarity checks
3. ARIMA / SARIMA / dynamic regression holdout comparison
4. Granger causality + cross-correlation between transit use and steps
5. Interrupted time series around an event date

Usage:
    python scripts/run_analysis.py \
        --steps data/steps.csv --transit data/transit.csv --expenses data/expenses.csv \
        --output artifacts/analysis \
        --test-days 28 \
        --event-date 2022-01-01
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from src.analysis.causality import adf_test, cross_correlation, granger_causality
from src.analysis.intervention import interrupted_time_series
from src.analysis.models import WEEKLY_SARIMA, ArimaSpec, compare_models
from src.daylog.config import load_config
from src.daylog.feed import DailyFeed
from src.daylog.io_utils import atomic_write_json, atomic_write_parquet, read_unified
from src.daylog.tasks import build_unified_table


class AnalysisRunner:
    """Runs the exploratory analyses on one feed"""

    def __init__(self, output_dir: Path, target: str = "step_count"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.target = target
        self.results: Dict[str, Any] = {}

    def run(
        self,
        feed: DailyFeed,
        test_days: int = 28,
        event_date: Optional[str] = None,
        cause: str = "transit_count",
    ) -> Dict[str, Any]:
        logger.info("=" * 80)
        logger.info(f"ANALYSIS: {feed!r}, target={self.target}")
        logger.info("=" * 80)

        frame = feed.to_frame(indexed=True)

        # Step 1: Stationarity
        self.results["stationarity"] = {}
        for col in (self.target, cause):
            try:
                res = adf_test(frame[col])
                self.results["stationarity"][col] = {
                    "p_value": res.p_value,
                    "is_stationary": res.is_stationary,
                }
            except ValueError as e:
                logger.warning(f"ADF skipped for {col}: {e}")

        # Step 2: Model comparison on a holdout
        split = feed.holdout_split(test_days)
        leaderboard = compare_models(
            feed,
            self.target,
            split.boundary,
            {
                "arima": {"spec": ArimaSpec(order=(1, 0, 1))},
                "sarima_weekly": {"spec": WEEKLY_SARIMA},
                "dynreg_transit": {
                    "spec": ArimaSpec(order=(1, 0, 0)),
                    "exog_columns": [cause],
                    "exog_lags": {cause: [1]},
                },
            },
        )
        atomic_write_parquet(leaderboard, self.output_dir / "leaderboard.parquet")
        self.results["holdout"] = split.info
        self.results["leaderboard"] = leaderboard.to_dict(orient="records")

        # Step 3: Lag analysis
        granger = granger_causality(frame, cause=cause, effect=self.target, max_lag=7)
        ccf_table = cross_correlation(frame[cause], frame[self.target], max_lag=14)
        self.results["granger"] = granger.to_dict(orient="records")
        self.results["ccf"] = ccf_table.to_dict(orient="records")

        # Step 4: Interrupted time series
        if event_date:
            its = interrupted_time_series(feed, self.target, event_date)
            self.results["interrupted_time_series"] = its.info

        atomic_write_json(self.results, self.output_dir / "analysis_results.json")
        logger.info(f"Results saved to {self.output_dir}")
        return self.results


def main():
    parser = argparse.ArgumentParser(description="Exploratory analyses on the unified daily table")
    parser.add_argument("--unified", help="Existing unified_daily.parquet (skips the pipeline)")
    parser.add_argument("--steps")
    parser.add_argument("--transit")
    parser.add_argument("--expenses")
    parser.add_argument("--start-date")
    parser.add_argument("--end-date")
    parser.add_argument("--places", help="Place -> category map (.json or two-column .csv)")
    parser.add_argument("--output", default="artifacts/analysis")
    parser.add_argument("--target", default="step_count")
    parser.add_argument("--cause", default="transit_count")
    parser.add_argument("--test-days", type=int, default=28)
    parser.add_argument("--event-date")
    args = parser.parse_args()

    if args.unified:
        unified = read_unified(Path(args.unified))
    else:
        config = load_config(
            location_map=args.places,
            steps_path=args.steps,
            transit_path=args.transit,
            expenses_path=args.expenses,
            start_date=args.start_date,
            end_date=args.end_date,
        )
        unified = build_unified_table(config)

    runner = AnalysisRunner(Path(args.output), target=args.target)
    runner.run(
        DailyFeed(unified),
        test_days=args.test_days,
        event_date=args.event_date,
        cause=args.cause,
    )


if __name__ == "__main__":
    main()
