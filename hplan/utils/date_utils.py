"""
Central date utilities for hplan.

All simulation arithmetic works on monthly boundaries. Dates arrive as ISO
strings (``YYYY-MM-DD``), month-keys (``YYYY-MM``), ``date``/``datetime``
objects or pandas Timestamps and are normalized to pandas Timestamps.

Key Features:
- Universal date parsing with format detection
- Month-start normalization (required for monthly calculations)
- Month-key helpers used to index sparse per-month overrides
"""

from datetime import datetime, date
import pandas as pd
from dateutil.relativedelta import relativedelta
from typing import Union
import re
from hplan.utils.error_utils import error_handler, FinancialPlannerError, ScenarioShapeError

DateLike = Union[str, datetime, date, pd.Timestamp]

MONTH_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}$")


@error_handler
def parse_date(
    date_input: DateLike,
    normalize_to_month_start: bool = True,
    default_format: str = "iso",
) -> pd.Timestamp:
    """
    Universal date parser.

    Accepts multiple date formats and normalizes to pandas Timestamp.

    Args:
        date_input: Date in various formats (str, datetime, date, pd.Timestamp)
        normalize_to_month_start: If True, sets day to 1
        default_format: Default format assumption for ambiguous strings ("iso" or "day_first")

    Returns:
        pd.Timestamp: Normalized timestamp object

    Raises:
        ValueError: If date format cannot be determined or parsed
        TypeError: If input type is not supported

    Examples:
        >>> parse_date("2024-01-15")
        Timestamp('2024-01-01 00:00:00')

        >>> parse_date("2024-03")
        Timestamp('2024-03-01 00:00:00')
    """
    if date_input is None:
        raise ValueError("Date input cannot be None")

    # Handle pandas Timestamp
    if isinstance(date_input, pd.Timestamp):
        result = date_input

    # Handle datetime objects
    elif isinstance(date_input, (datetime, date)):
        result = pd.Timestamp(date_input)

    # Handle string inputs with format detection
    elif isinstance(date_input, str):
        result = _parse_date_string(date_input.strip(), default_format)

    else:
        raise TypeError(f"Unsupported date input type: {type(date_input)}")

    if pd.isna(result):
        raise ValueError(f"Unable to parse date '{date_input}'")

    result = result.normalize()
    if normalize_to_month_start:
        result = result.replace(day=1)

    return result


def _parse_date_string(date_str: str, default_format: str = "iso") -> pd.Timestamp:
    """
    Parse date string with automatic format detection.

    Supports:
    - Month-keys: YYYY-MM
    - ISO format: YYYY-MM-DD, YYYY/MM/DD, YYYY-MM-DDTHH:MM:SS
    - Day-first format: DD/MM/YYYY, DD-MM-YYYY
    """
    if not date_str:
        raise ValueError("Date string cannot be empty")

    if MONTH_KEY_PATTERN.match(date_str):
        return pd.Timestamp(datetime.strptime(date_str, "%Y-%m"))

    format_patterns = [
        "%Y-%m-%d",
        "%Y/%m/%d",
        "%Y-%m-%dT%H:%M:%S",
        "%d/%m/%Y",
        "%d-%m-%Y",
    ]

    for format_str in format_patterns:
        try:
            return pd.Timestamp(datetime.strptime(date_str, format_str))
        except ValueError:
            continue

    # Try pandas intelligent parsing as fallback
    try:
        return pd.to_datetime(date_str, dayfirst=(default_format == "day_first"))
    except (ValueError, TypeError):
        pass

    raise ValueError(
        f"Unable to parse date string '{date_str}'. Supported formats include: YYYY-MM, YYYY-MM-DD, DD/MM/YYYY"
    )


def month_key(date_input: DateLike) -> str:
    """Return the ``YYYY-MM`` key used to index sparse monthly overrides."""
    return parse_date(date_input).strftime("%Y-%m")


def add_months(date_input: DateLike, months: int) -> pd.Timestamp:
    """Shift a date by a whole number of months, keeping it on the month start."""
    return parse_date(date_input) + relativedelta(months=months)


def is_month_key(value) -> bool:
    """True when ``value`` is a well-formed ``YYYY-MM`` string."""
    if not isinstance(value, str) or not MONTH_KEY_PATTERN.match(value):
        return False
    return 1 <= int(value[5:7]) <= 12


def parse_optional_date(value, field: str, normalize: bool = True):
    """
    Parse an optional scenario date; empty values yield None.

    ``normalize`` moves the date to the first of its month.

    Raises:
        ScenarioShapeError: If a value is present but malformed
    """
    if value is None or value == "":
        return None
    try:
        return parse_date(value, normalize_to_month_start=normalize)
    except FinancialPlannerError as e:
        raise ScenarioShapeError(f"Malformed date in {field}: '{value}'") from e
