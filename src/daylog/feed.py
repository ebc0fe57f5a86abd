# file: src/daylog/feed.py
"""
Step 5: Time-Series Feed

Read-only view of the unified daily table for statistical routines.

Guarantees (checked on construction):
- ascending dates, no duplicates, no gaps
- same columns on every row

Chronological splits (train/test, pre/post intervention) are pure
functions of the boundary date: pre holds dates < boundary, post holds
dates >= boundary, and pre followed by post is the original feed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

import pandas as pd

from .validate import assert_daily_contract

logger = logging.getLogger(__name__)


class DailyFeed:
    """Date-ordered daily rows, validated once, never mutated"""

    def __init__(self, frame: pd.DataFrame, validate: bool = True):
        if "date" not in frame.columns:
            raise ValueError(f"Feed requires a 'date' column, got {frame.columns.tolist()}")

        self._frame = frame.reset_index(drop=True).copy()
        if validate and len(self._frame):
            assert_daily_contract(self._frame)

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        if self.empty:
            return "DailyFeed(empty)"
        return f"DailyFeed({self.start.date()}..{self.end.date()}, {len(self)} days)"

    @property
    def empty(self) -> bool:
        return self._frame.empty

    @property
    def frame(self) -> pd.DataFrame:
        """Copy of the rows; callers cannot mutate the feed"""
        return self._frame.copy()

    @property
    def columns(self) -> List[str]:
        return [c for c in self._frame.columns if c != "date"]

    @property
    def dates(self) -> pd.DatetimeIndex:
        return pd.DatetimeIndex(self._frame["date"], name="date")

    @property
    def start(self) -> pd.Timestamp:
        return self._frame["date"].iloc[0]

    @property
    def end(self) -> pd.Timestamp:
        return self._frame["date"].iloc[-1]

    def to_frame(self, indexed: bool = True) -> pd.DataFrame:
        """
        Rows as a DataFrame; indexed=True gives a daily-frequency DatetimeIndex
        (what statsmodels expects for date-aware forecasting).
        """
        df = self.frame
        if not indexed:
            return df
        df = df.set_index("date")
        if len(df):
            df.index = pd.DatetimeIndex(df.index, freq="D", name="date")
        return df

    def series(self, column: str) -> pd.Series:
        """Single column as a pd.Series with a daily DatetimeIndex"""
        if column not in self.columns:
            raise KeyError(f"Unknown feed column: {column}")
        s = self.to_frame(indexed=True)[column]
        if s.dtype == bool:
            s = s.astype(int)
        return s.rename(column)

    def split_at(self, boundary) -> "FeedSplit":
        """
        Split at a boundary date into (pre, post).

        pre = dates < boundary, post = dates >= boundary. A boundary before
        the first date gives an empty pre; after the last, an empty post.
        """
        boundary = pd.Timestamp(boundary).normalize()
        mask = self._frame["date"] < boundary

        pre = DailyFeed(self._frame.loc[mask], validate=False)
        post = DailyFeed(self._frame.loc[~mask], validate=False)
        logger.debug(f"[feed] split at {boundary.date()}: pre={len(pre)} post={len(post)}")
        return FeedSplit(boundary=boundary, pre=pre, post=post)

    def holdout_split(self, test_days: int) -> "FeedSplit":
        """Train/test split keeping the last `test_days` days for testing"""
        if test_days <= 0 or test_days >= len(self):
            raise ValueError(
                f"test_days must be in [1, {len(self) - 1}], got {test_days}"
            )
        boundary = self._frame["date"].iloc[len(self) - test_days]
        return self.split_at(boundary)


@dataclass(frozen=True)
class FeedSplit:
    """Contiguous, non-overlapping halves of a feed around a boundary date"""
    boundary: pd.Timestamp
    pre: DailyFeed
    post: DailyFeed

    def __post_init__(self):
        """Validate no leakage"""
        if not self.pre.empty and self.pre.end >= self.boundary:
            raise ValueError(f"Pre half ends at {self.pre.end}, not before {self.boundary}")
        if not self.post.empty and self.post.start < self.boundary:
            raise ValueError(f"Post half starts at {self.post.start}, before {self.boundary}")

    @property
    def info(self) -> Dict:
        """Serialize split info"""
        return {
            "boundary": self.boundary.isoformat(),
            "pre_size": len(self.pre),
            "post_size": len(self.post),
            "pre_end": self.pre.end.isoformat() if not self.pre.empty else None,
            "post_start": self.post.start.isoformat() if not self.post.empty else None,
        }

    def rejoin(self) -> pd.DataFrame:
        """pre followed by post"""
        halves = [half.frame for half in (self.pre, self.post) if not half.empty]
        if not halves:
            return self.pre.frame
        return pd.concat(halves, ignore_index=True)
