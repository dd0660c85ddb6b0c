"""
Global assumptions for hplan.

One ``Assumptions`` object per scenario, read-only for every calculation.
``timing`` is a structural requirement; every numeric assumption falls back
to a documented default through ``safe_num``.
"""

from typing import Dict, Any, Optional

import pandas as pd

from hplan.core import constants as C
from hplan.core.schema import validate_timing
from hplan.utils.rate_utils import safe_num, safe_int, portfolio_return_for_age
from hplan.utils.error_utils import error_handler


class MarketAssumptions:
    """Investment return assumptions (annual decimals) and the glide path."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        data = data or {}
        self.initial = safe_num(data.get("initial"), C.DEFAULT_MARKET_INITIAL)
        self.terminal = safe_num(data.get("terminal"), C.DEFAULT_MARKET_TERMINAL)
        self.taper_start_age = safe_int(data.get("taper_start_age"), C.DEFAULT_TAPER_START_AGE)
        self.taper_end_age = safe_int(data.get("taper_end_age"), C.DEFAULT_TAPER_END_AGE)
        self.glide_path = bool(data.get("glide_path", False))

    def return_for_age(self, age: Optional[int]) -> float:
        return portfolio_return_for_age(
            age, self.initial, self.terminal, self.taper_start_age, self.taper_end_age
        )


class PropertyAssumptions:
    """Age-banded home appreciation parameters."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, market: Optional[Dict[str, Any]] = None):
        data = data or {}
        market = market or {}
        # baseline_growth historically lived under "market"
        self.baseline_growth = safe_num(
            data.get("baseline_growth", market.get("baseline_growth")), C.DEFAULT_PROPERTY_BASELINE_GROWTH
        )
        self.new_home_years = safe_num(data.get("new_home_years"), C.DEFAULT_NEW_HOME_YEARS)
        self.mid_home_years = safe_num(data.get("mid_home_years"), C.DEFAULT_MID_HOME_YEARS)
        self.new_home_addon = safe_num(data.get("new_home_addon"), C.DEFAULT_NEW_HOME_ADDON)
        self.mid_home_addon = safe_num(data.get("mid_home_addon"), C.DEFAULT_MID_HOME_ADDON)
        self.mature_home_addon = safe_num(data.get("mature_home_addon"), C.DEFAULT_MATURE_HOME_ADDON)
        self.min_growth = safe_num(data.get("min_growth"), C.DEFAULT_MIN_PROPERTY_GROWTH)
        self.max_growth = safe_num(data.get("max_growth"), C.DEFAULT_MAX_PROPERTY_GROWTH)
        self.selling_cost = safe_num(data.get("selling_cost"), C.DEFAULT_SELLING_COST)


class Assumptions:
    """
    Scenario-wide assumptions.

    Attributes:
        start_year, start_month: Simulation anchor (required)
        birth_year: Owner birth year for age-dependent rules, or None
        horizon_years: Projection length in years
        inflation: Annual inflation rates by name ("general", "medical", ...)
        market: MarketAssumptions
        property: PropertyAssumptions
        reverse_mortgage_rate: Annual accrual rate of the reverse mortgage
        ira_base_tax_rate: Tax rate for IRA withdrawals below the first bracket
    """

    def __init__(self, data: Dict[str, Any]):
        timing = validate_timing((data or {}).get("timing"))
        self.start_year = timing.start_year
        self.start_month = timing.start_month
        self.birth_year = timing.birth_year

        self.horizon_years = max(0, safe_int(data.get("horizon_years"), C.DEFAULT_HORIZON_YEARS))
        self.inflation = {
            name: safe_num(rate) for name, rate in (data.get("inflation") or {}).items()
        }
        self.market = MarketAssumptions(data.get("market"))
        self.property = PropertyAssumptions(data.get("property"), data.get("market"))

        rates = data.get("rates") or {}
        self.reverse_mortgage_rate = safe_num(rates.get("reverse_mortgage"), C.DEFAULT_REVERSE_MORTGAGE_RATE)
        taxes = data.get("taxes") or {}
        self.ira_base_tax_rate = safe_num(taxes.get("ira_base_rate"), C.IRA_BASE_TAX_RATE)

    @property
    def start_date(self) -> pd.Timestamp:
        return pd.Timestamp(year=self.start_year, month=self.start_month, day=1)

    @property
    def general_inflation(self) -> float:
        return self.inflation.get("general", 0.0)

    def age_in(self, year: int) -> Optional[int]:
        """Owner age during ``year``, or None when no birth year is known."""
        if self.birth_year is None:
            return None
        return year - self.birth_year

    @classmethod
    @error_handler
    def from_dict(cls, data: Any) -> 'Assumptions':
        """Build assumptions from a scenario's ``assumptions`` mapping (objects pass through)."""
        if isinstance(data, Assumptions):
            return data
        return cls(data or {})
