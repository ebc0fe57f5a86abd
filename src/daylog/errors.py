# file: src/daylog/errors.py
"""
Fail-loud error types for the daily-log pipeline.

Unrecognized place names and empty days are not errors; they are logged
by the tagger and the merger.
"""

from __future__ import annotations

from typing import Any, Optional


class DataFormatError(ValueError):
    """A raw row could not be parsed (date, number, or row shape)."""

    def __init__(
        self,
        message: str,
        *,
        source: str = "",
        raw_value: Any = None,
        row: Optional[int] = None,
    ):
        self.source = source
        self.raw_value = raw_value
        self.row = row
        prefix = f"[{source}] " if source else ""
        location = f" (row {row})" if row is not None else ""
        super().__init__(f"{prefix}{message}{location}")


class WindowError(ValueError):
    """Configured date window is structurally invalid (start > end)."""
