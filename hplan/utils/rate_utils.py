"""
Rate conversion and numeric coercion utilities.

Conventions:
- All rates in scenario inputs are annual decimals (e.g., 0.05 = 5%)
- Monthly rates are derived from annual rates: annual_decimal / 12
- Numeric inputs are read through ``safe_num`` so that strings, None and NaN
  never propagate through a multi-decade compounding loop
"""

from typing import Any, Optional
import numpy as np
from hplan.utils.error_utils import error_handler

MONTHS_PER_YEAR = 12


def safe_num(value: Any, default: float = 0.0) -> float:
    """
    Coerce ``value`` to a finite float, falling back to ``default``.

    Numeric strings (optionally with a trailing ``%`` or thousands commas) are
    parsed; anything else that is not a finite number yields the default.

    Examples:
        >>> safe_num("1,250.5")
        1250.5
        >>> safe_num(None, 0.07)
        0.07
        >>> safe_num(float("nan"), 3.0)
        3.0
    """
    if value is None or isinstance(value, bool):
        return float(default)

    if isinstance(value, str):
        cleaned = value.strip().replace(",", "").rstrip("%")
        if not cleaned:
            return float(default)
        try:
            value = float(cleaned)
        except ValueError:
            return float(default)

    try:
        number = float(value)
    except (TypeError, ValueError):
        return float(default)

    if not np.isfinite(number):
        return float(default)
    return number


def safe_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Integer variant of ``safe_num``; returns ``default`` for non-numbers."""
    number = safe_num(value, default=np.nan)
    if np.isnan(number):
        return default
    return int(number)


@error_handler
def annual_decimal_to_monthly_decimal(annual_rate_decimal: float) -> float:
    """
    Convert annual decimal rate to monthly decimal rate.

    Examples:
        >>> annual_decimal_to_monthly_decimal(0.06)
        0.005
    """
    return annual_rate_decimal / MONTHS_PER_YEAR


def inflation_factor(annual_rate: float, months_elapsed: int) -> float:
    """
    Smooth monthly-compounded inflation multiplier ``(1 + r) ** (m / 12)``.

    Examples:
        >>> inflation_factor(0.03, 0)
        1.0
        >>> round(inflation_factor(0.03, 12), 6)
        1.03
    """
    return (1 + annual_rate) ** (months_elapsed / MONTHS_PER_YEAR)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp ``value`` into ``[lower, upper]``."""
    return max(lower, min(upper, value))


def portfolio_return_for_age(
    age: Optional[int],
    initial: float,
    terminal: float,
    taper_start_age: int = 60,
    taper_end_age: int = 80,
) -> float:
    """
    Glide-path investment return for a given owner age.

    Returns ``initial`` before ``taper_start_age``, ``terminal`` from
    ``taper_end_age`` on, and a linear interpolation between them.
    An unknown age yields ``initial``.
    """
    if age is None or age < taper_start_age:
        return initial
    if age >= taper_end_age or taper_end_age <= taper_start_age:
        return terminal
    slope = (initial - terminal) / (taper_end_age - taper_start_age)
    return initial - slope * (age - taper_start_age)
