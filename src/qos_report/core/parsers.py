"""
Reusable value extractors for spreadsheet cells.

These helpers handle the messy reality of hand-maintained exports:
- Dates arriving as native datetimes, spreadsheet serial numbers or text
- Numbers arriving as text with thousands separators, units or stray spaces
- Rows that are completely blank between real records

Every helper is total: bad input degrades to a documented default
instead of raising, so one broken cell never stops a batch.
"""

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Sequence

import numpy as np
import pandas as pd


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and strings that are empty after trimming."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def extract_value(row: Sequence[Any], index: int | None, default: Any = None) -> Any:
    """Return the cell at ``index`` or ``default`` when missing or blank."""
    if index is None or index < 0 or index >= len(row):
        return default
    value = row[index]
    if is_blank(value):
        return default
    return value


def is_empty_row(row: Sequence[Any]) -> bool:
    return all(is_blank(cell) for cell in row)


def cell_to_text(value: Any) -> str:
    """
    Render a cell as plain text.

    Integral floats lose their ".0" (a plant code stored as 106.0 becomes
    "106") so codes can be compared as opaque strings.
    """
    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class DateParser:
    """
    Robust date parser for spreadsheet cells.

    Accepts native datetimes, spreadsheet serial day numbers and text.
    Text is tried as ISO first, then against DATE_PATTERNS in order, so
    day/month ambiguity resolves the same way for every record.
    To extend: add (pattern, field order) pairs to DATE_PATTERNS.
    """

    # Ordered; the first pattern producing a valid calendar date wins
    DATE_PATTERNS = [
        (re.compile(r"(\d{4})-(\d{2})-(\d{2})"), ("year", "month", "day")),  # 2024-07-25
        (re.compile(r"(\d{2})/(\d{2})/(\d{4})"), ("month", "day", "year")),  # 07/25/2024
        (re.compile(r"(\d{2})\.(\d{2})\.(\d{4})"), ("day", "month", "year")),  # 25.07.2024
        (re.compile(r"(\d{4})(\d{2})(\d{2})"), ("year", "month", "day")),  # 20240725
    ]

    # Day zero of the spreadsheet serial calendar
    SERIAL_EPOCH = datetime(1899, 12, 30)

    def __init__(self, custom_patterns: list[tuple[re.Pattern, tuple[str, str, str]]] | None = None):
        """
        Args:
            custom_patterns: Additional (regex, field order) pairs tried before the defaults
        """
        self.patterns = (custom_patterns or []) + self.DATE_PATTERNS
        self._cache: dict[str, datetime | None] = {}

    def parse(self, value: Any) -> datetime | None:
        """Parse a cell into a naive datetime, or None when unparseable."""
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, (datetime, pd.Timestamp)):
            return self._from_datetime(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)

        if isinstance(value, (int, float, np.number)):
            return self._from_serial(value)

        if isinstance(value, str):
            return self._from_text(value)

        return None

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of date cells."""
        return series.apply(self.parse)

    def _from_datetime(self, value: datetime) -> datetime | None:
        if pd.isna(value):
            return None
        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
        return value.replace(tzinfo=None)

    def _from_serial(self, value: float) -> datetime | None:
        if not value or math.isnan(value) or math.isinf(value):
            return None
        try:
            return self.SERIAL_EPOCH + timedelta(days=float(value))
        except OverflowError:
            return None

    def _from_text(self, value: str) -> datetime | None:
        text = value.strip()
        if not text:
            return None

        if text in self._cache:
            return self._cache[text]

        result = self._try_iso(text)
        if result is None:
            for pattern, order in self.patterns:
                match = pattern.search(text)
                if not match:
                    continue
                parts = dict(zip(order, (int(g) for g in match.groups())))
                try:
                    result = datetime(parts["year"], parts["month"], parts["day"])
                    break
                except ValueError:
                    continue

        self._cache[text] = result
        return result

    @staticmethod
    def _try_iso(text: str) -> datetime | None:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed.replace(tzinfo=None)


_NUMBER_STRIP = re.compile(r"[^\d.\-]")
_LEADING_NUMBER = re.compile(r"^-?(\d+\.?\d*|\.\d+)")


def parse_number(value: Any) -> float:
    """
    Lossy numeric parse that never raises.

    Numbers pass through (NaN becomes 0). Text is stripped to digits,
    dots and minus signs and its leading number is read, so "1,200 PC"
    becomes 1200. Anything else is 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, np.number)):
        number = float(value)
        return 0.0 if math.isnan(number) else number
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(_NUMBER_STRIP.sub("", value))
        return float(match.group(0)) if match else 0.0
    return 0.0
