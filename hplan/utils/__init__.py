"""
Utility modules for hplan.

This package contains reusable utility functions for date handling,
rate conversions, numeric coercion and error handling.
"""

from hplan.utils.date_utils import (
    parse_date,
    month_key,
    add_months,
    is_month_key,
)

from hplan.utils.rate_utils import (
    safe_num,
    safe_int,
    annual_decimal_to_monthly_decimal,
    inflation_factor,
    clamp,
    portfolio_return_for_age,
    MONTHS_PER_YEAR,
)

from hplan.utils.error_utils import (
    FinancialPlannerError,
    ScenarioShapeError,
    error_handler,
    logger,
)

__all__ = [
    # Date utilities
    "parse_date",
    "month_key",
    "add_months",
    "is_month_key",
    # Rate utilities
    "safe_num",
    "safe_int",
    "annual_decimal_to_monthly_decimal",
    "inflation_factor",
    "clamp",
    "portfolio_return_for_age",
    "MONTHS_PER_YEAR",
    # Error handling
    "FinancialPlannerError",
    "ScenarioShapeError",
    "error_handler",
    "logger",
]
