# file: src/daylog/locations.py
"""
Step 2: Location Tagger

Dummy-code free-text place fields into one boolean column per location
category (Home, NearHome, School, Partner, DayTrip by default).

- Transit legs carry two fields (departure, arrival); a match on either sets
  the flag, so one leg can set two different categories.
- Expenses carry a single location field.
- Names that match no configured place produce no flag; they are logged,
  never raised.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Mapping, Sequence, Set

import pandas as pd

from .aggregate import FOOD_COLUMNS

logger = logging.getLogger(__name__)

TRANSIT_LOCATION_COLUMNS = ("departure_location", "arrival_location")
EXPENSE_LOCATION_COLUMNS = ("location",)

# Fixed columns of the unified table; a category may not reuse one
RESERVED_COLUMNS = ("date", "step_count", "transit_count", *FOOD_COLUMNS)


def check_category_names(categories: Sequence[str]) -> None:
    clash = [c for c in categories if c in RESERVED_COLUMNS]
    if clash:
        raise ValueError(f"Location categories collide with unified table columns: {clash}")


def _name_pattern(name: str) -> re.Pattern:
    return re.compile(r"(?<!\w)" + re.escape(name.casefold()) + r"(?!\w)")


class LocationTagger:
    """Place-name lookup shared by the transit and expense sources"""

    def __init__(self, category_map: Mapping[str, str]):
        """
        Args:
            category_map: Place name -> category. Names are matched
                case-insensitively as whole words of the free text, so
                "Utrecht Centraal" matches "Utrecht" but "Delftweg" does
                not match "Delft".
        """
        if not category_map:
            raise ValueError("category_map must not be empty")

        self.category_map = dict(category_map)
        self._names_by_category: Dict[str, List[re.Pattern]] = {}
        for name, category in self.category_map.items():
            self._names_by_category.setdefault(category, []).append(_name_pattern(name))
        check_category_names(self.categories)

    @property
    def categories(self) -> List[str]:
        """Categories in order of first appearance in the map"""
        return list(self._names_by_category)

    def match(self, text) -> Set[str]:
        """Categories whose place names occur in a single free-text value"""
        if not isinstance(text, str) or not text.strip():
            return set()

        folded = text.casefold()
        return {
            category
            for category, names in self._names_by_category.items()
            if any(name.search(folded) for name in names)
        }

    def tag(self, frame: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
        """
        Add one boolean column per category.

        Args:
            frame: Records with free-text location columns
            columns: Location columns to scan (flag set if ANY column matches)

        Returns:
            New DataFrame: input columns + one bool column per category
        """
        columns = list(columns)
        missing = [col for col in columns if col not in frame.columns]
        if missing:
            raise ValueError(f"Missing location columns: {missing}")

        clash = [cat for cat in self.categories if cat in frame.columns]
        if clash:
            raise ValueError(f"Location categories collide with existing columns: {clash}")

        matches = {col: frame[col].map(self.match) for col in columns}

        tagged = frame.copy()
        for category in self.categories:
            flag = pd.Series(False, index=frame.index)
            for col in columns:
                flag |= matches[col].map(lambda found: category in found).astype(bool)
            tagged[category] = flag

        self._log_unrecognized(frame, columns, matches)
        return tagged

    def tag_transit(self, transit: pd.DataFrame) -> pd.DataFrame:
        return self.tag(transit, TRANSIT_LOCATION_COLUMNS)

    def tag_expenses(self, expenses: pd.DataFrame) -> pd.DataFrame:
        return self.tag(expenses, EXPENSE_LOCATION_COLUMNS)

    @staticmethod
    def _log_unrecognized(
        frame: pd.DataFrame,
        columns: List[str],
        matches: Dict[str, pd.Series],
    ) -> None:
        unrecognized = set()
        for col in columns:
            present = frame[col].map(lambda v: isinstance(v, str) and bool(v.strip()))
            empty_match = matches[col].map(len) == 0
            unrecognized.update(frame.loc[present & empty_match, col].tolist())

        if unrecognized:
            sample = sorted(unrecognized)[:5]
            logger.info(
                "[tagger][UNRECOGNIZED] %d place name(s) matched no category, e.g. %s",
                len(unrecognized),
                sample,
            )
