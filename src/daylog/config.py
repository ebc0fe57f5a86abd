# file: src/daylog/config.py
"""
Pipeline Configuration

Paths of the three personal logs, the date window of the unified table and
the place-name lookup used by the location tagger.

Local runs keep paths in .env (DAYLOG_STEPS_PATH, DAYLOG_TRANSIT_PATH, ...),
so every run logs the same config.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import pandas as pd
from dotenv import load_dotenv

from .errors import WindowError
from .locations import check_category_names

# Place name -> location category. Extend per user; the categories are the
# distinct values, in order of first appearance.
DEFAULT_LOCATION_CATEGORY_MAP: Mapping[str, str] = MappingProxyType({
    "Voorburg": "Home",
    "Den Haag": "NearHome",
    "Rijswijk": "NearHome",
    "Leidschendam": "NearHome",
    "Delft": "School",
    "Utrecht": "Partner",
    "Amsterdam": "DayTrip",
    "Rotterdam": "DayTrip",
    "Haarlem": "DayTrip",
    "Leiden": "DayTrip",
})

DEFAULT_ESSENTIAL_FOOD_CATEGORIES: Tuple[str, ...] = ("Groceries", "Supermarket", "Essential")

FLAG_RESOLUTIONS = ("any", "majority")


@dataclass(frozen=True)
class PipelineConfig:
    # Sources
    steps_path: str = "data/steps.csv"
    transit_path: str = "data/transit.csv"
    expenses_path: str = "data/expenses.csv"
    sep: str = ","
    steps_date_format: Optional[str] = None
    transit_date_format: Optional[str] = None
    expenses_date_format: Optional[str] = None

    # Window of the unified table (inclusive); None = span of the data
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    # Tagging / aggregation
    location_category_map: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_LOCATION_CATEGORY_MAP)
    )
    flag_resolution: str = "any"
    food_category: str = "Food"
    essential_food_categories: Tuple[str, ...] = DEFAULT_ESSENTIAL_FOOD_CATEGORIES

    # IO
    output_dir: str = "data/processed"
    overwrite: bool = False

    def __post_init__(self):
        if self.flag_resolution not in FLAG_RESOLUTIONS:
            raise ValueError(
                f"flag_resolution must be one of {FLAG_RESOLUTIONS}, got {self.flag_resolution!r}"
            )
        if not self.location_category_map:
            raise ValueError("location_category_map must not be empty")
        check_category_names(self.categories())

    def fingerprint(self) -> Dict[str, object]:
        """
        Settings that determine the unified table's contents.

        JSON-native values only, so the dict compares equal after a round
        trip through metadata.json.
        """
        def day(value):
            return pd.Timestamp(value).date().isoformat() if value else None

        return {
            "sources": {
                "steps": str(Path(self.steps_path)),
                "transit": str(Path(self.transit_path)),
                "expenses": str(Path(self.expenses_path)),
            },
            "sep": self.sep,
            "date_formats": [self.steps_date_format, self.transit_date_format, self.expenses_date_format],
            "start_date": day(self.start_date),
            "end_date": day(self.end_date),
            "location_category_map": [[name, cat] for name, cat in self.location_category_map.items()],
            "flag_resolution": self.flag_resolution,
            "food_category": self.food_category,
            "essential_food_categories": list(self.essential_food_categories),
        }

    def run_id(self) -> str:
        return datetime.utcnow().strftime("%Y%m%d_%H%M%S")

    def categories(self) -> list[str]:
        return list(dict.fromkeys(self.location_category_map.values()))

    def date_window(self) -> Optional[Tuple[pd.Timestamp, pd.Timestamp]]:
        """
        Inclusive (start, end) of the unified table, or None when unset.

        A single bound is completed by the data span at merge time, so it
        is only returned here when both are configured.
        """
        if self.start_date is None or self.end_date is None:
            return None
        start = pd.Timestamp(self.start_date).normalize()
        end = pd.Timestamp(self.end_date).normalize()
        if start > end:
            raise WindowError(f"start_date {self.start_date} is after end_date {self.end_date}")
        return start, end

    def output_path(self) -> Path:
        return Path(self.output_dir)

    def unified_path(self) -> Path:
        return self.output_path() / "unified_daily.parquet"

    def metadata_path(self) -> Path:
        return self.output_path() / "metadata.json"


_ENV_FIELDS = {
    "DAYLOG_STEPS_PATH": "steps_path",
    "DAYLOG_TRANSIT_PATH": "transit_path",
    "DAYLOG_EXPENSES_PATH": "expenses_path",
    "DAYLOG_START_DATE": "start_date",
    "DAYLOG_END_DATE": "end_date",
    "DAYLOG_OUTPUT_DIR": "output_dir",
    "DAYLOG_FLAG_RESOLUTION": "flag_resolution",
    "DAYLOG_FOOD_CATEGORY": "food_category",
}


def load_location_map(path: str | Path) -> Dict[str, str]:
    """
    Read a place name -> category map from a file.

    Supported formats:
    - .json: an object {"Voorburg": "Home", ...}; key order is category order
    - .csv:  two columns `place,category`, one row per place name

    Raises:
        FileNotFoundError: no file at `path`
        ValueError: unknown extension, missing columns, blank cells, or one
            place name mapped to two categories
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Location map not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a JSON object of place -> category")
        pairs = list(raw.items())
    elif suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        df.columns = [str(c).strip().lower() for c in df.columns]
        missing = [col for col in ("place", "category") if col not in df.columns]
        if missing:
            raise ValueError(f"{path}: missing columns {missing}; got {df.columns.tolist()}")
        pairs = list(zip(df["place"], df["category"]))
    else:
        raise ValueError(f"{path}: location map must be .json or .csv, got {suffix!r}")

    mapping: Dict[str, str] = {}
    for place, category in pairs:
        place = str(place).strip() if place is not None else ""
        category = str(category).strip() if category is not None else ""
        if not place or not category:
            raise ValueError(f"{path}: blank place or category in row {place!r} -> {category!r}")
        if mapping.get(place, category) != category:
            raise ValueError(
                f"{path}: {place!r} mapped to both {mapping[place]!r} and {category!r}"
            )
        mapping[place] = category

    if not mapping:
        raise ValueError(f"{path}: location map is empty")
    return mapping


def _split_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_config(location_map: Optional[str] = None, **overrides) -> PipelineConfig:
    """
    Load pipeline config from environment, then apply keyword overrides.

    Reads DAYLOG_* variables from a .env file or the environment. Overrides
    whose value is None are ignored so CLI defaults don't mask the env.

    Args:
        location_map: Path of a .json / .csv place map (see load_location_map);
            falls back to DAYLOG_LOCATION_MAP, then the built-in default
        **overrides: PipelineConfig fields
    """
    load_dotenv()

    values = {}
    for env_name, field_name in _ENV_FIELDS.items():
        value = os.getenv(env_name)
        if value:
            values[field_name] = value

    essential = os.getenv("DAYLOG_ESSENTIAL_FOOD_CATEGORIES")
    if essential:
        values["essential_food_categories"] = _split_list(essential)

    map_path = location_map or os.getenv("DAYLOG_LOCATION_MAP")
    if map_path:
        values["location_category_map"] = load_location_map(map_path)

    overrides = {k: v for k, v in overrides.items() if v is not None}
    if isinstance(overrides.get("essential_food_categories"), str):
        overrides["essential_food_categories"] = _split_list(overrides["essential_food_categories"])

    values.update(overrides)
    return replace(PipelineConfig(), **values)
