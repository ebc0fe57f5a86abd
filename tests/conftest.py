"""Shared fixtures: small raw CSV logs written to tmp_path."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

PLACE_MAP = {
    "Voorburg": "Home",
    "Den Haag": "NearHome",
    "Delft": "School",
    "Utrecht": "Partner",
    "Amsterdam": "DayTrip",
}
CATEGORIES = ["Home", "NearHome", "School", "Partner", "DayTrip"]


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to <tmp_path>/<name>.csv and return the path."""

    def _write(name: str, rows: list[dict], columns: list[str] | None = None) -> Path:
        path = tmp_path / f"{name}.csv"
        pd.DataFrame(rows, columns=columns).to_csv(path, index=False)
        return path

    return _write


@pytest.fixture
def scenario_files(write_csv):
    """
    Three days of logs:
    - steps 2021-09-01..03 = [1000, 0, 500]
    - one transit leg on 09-02, Voorburg -> Utrecht
    - one essential food expense "-5,00" on 09-03 in Voorburg
    """
    steps = write_csv("steps", [
        {"date": "2021-09-01", "step_count": "1000"},
        {"date": "2021-09-02", "step_count": "0"},
        {"date": "2021-09-03", "step_count": "500"},
    ])
    transit = write_csv("transit", [
        {
            "date": "2021-09-02",
            "departure_location": "Voorburg",
            "arrival_location": "Utrecht Centraal",
            "fare": "7,40",
            "card": "3528-0000",
        },
    ])
    expenses = write_csv("expenses", [
        {
            "date": "2021-09-03",
            "amount": "-5,00",
            "category_broad": "Food",
            "category_specific": "Groceries",
            "location": "Albert Heijn Voorburg",
            "description": "AH 1234",
        },
    ])
    return {"steps": steps, "transit": transit, "expenses": expenses}


def daily_frame(rows: list[dict], columns: list[str], dtypes: dict | None = None) -> pd.DataFrame:
    """Build a per-day table with parsed dates (and typed columns when empty)."""
    df = pd.DataFrame(rows, columns=columns)
    df["date"] = pd.to_datetime(df["date"])
    for col, dtype in (dtypes or {}).items():
        df[col] = df[col].astype(dtype)
    return df
