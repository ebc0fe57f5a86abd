# file: src/daylog/io_utils.py
"""
Output files of a run: unified_daily.parquet, metadata.json and analysis
results. Writes go to a temp file in the target directory and are moved
into place, so a crashed run never leaves a half-written table.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _replace_atomically(path: Path, write: Callable[[Path], None]) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        write(tmp)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


def atomic_write_parquet(df: pd.DataFrame, path: Path) -> None:
    _replace_atomically(path, lambda tmp: df.to_parquet(tmp, index=False))


def _json_default(value: Any):
    if isinstance(value, pd.Timestamp):
        return value.date().isoformat() if value == value.normalize() else value.isoformat()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Path):
        return str(value)
    return str(value)


def atomic_write_json(payload: Dict[str, Any], path: Path) -> None:
    def write(tmp: Path) -> None:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=_json_default)

    _replace_atomically(path, write)


def read_unified(path: Path) -> pd.DataFrame:
    """
    Load a written unified daily table.

    Raises:
        FileNotFoundError: no table at `path`
        ValueError: the file has no date column
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Unified table not found: {path}")

    df = pd.read_parquet(path)
    if "date" not in df.columns:
        raise ValueError(f"{path} is not a unified daily table (no 'date' column)")
    df["date"] = pd.to_datetime(df["date"])
    return df
