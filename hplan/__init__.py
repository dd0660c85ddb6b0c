"""
hplan - Household Financial Projection Engine

Deterministic month-by-month projection of a household's finances:
- Loan amortization with extra-payment strategies
- Asset growth (property, inherited IRA, investments)
- Cash-flow waterfall with a reverse-mortgage safety net
"""

from hplan.core.engine import (
    run_financial_simulation,
    calculate_fixed_loan,
    calculate_revolving_loan,
    amortize,
    calculate_asset_growth,
    project_simple_growth,
    project_home_value,
    project_inherited_ira,
    timeline_to_frame,
    summarize_by_year,
)
from hplan.core.models import resolve_active_profile_id, resolve_profile_data
from hplan.utils.error_utils import FinancialPlannerError, ScenarioShapeError

__version__ = "0.1.0"

__all__ = [
    "run_financial_simulation",
    "calculate_fixed_loan",
    "calculate_revolving_loan",
    "amortize",
    "calculate_asset_growth",
    "project_simple_growth",
    "project_home_value",
    "project_inherited_ira",
    "timeline_to_frame",
    "summarize_by_year",
    "resolve_active_profile_id",
    "resolve_profile_data",
    "FinancialPlannerError",
    "ScenarioShapeError",
]
