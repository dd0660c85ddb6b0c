"""
Calculation engines for hplan.

Modules:
    amortization: Loan schedules (fixed-rate and revolving)
    asset_growth: Yearly projections per asset type
    income: Earnings, Social Security and pensions
    state: Immutable simulation state records
    waterfall: Deficit drawdown across the buckets
    simulation: Monthly simulation engine
    reporting: Timeline roll-ups
"""

from hplan.core.engine.amortization import (
    calculate_fixed_loan,
    calculate_revolving_loan,
    amortize,
    balances_by_month,
    schedule_to_frame,
)

from hplan.core.engine.asset_growth import (
    calculate_asset_growth,
    project_simple_growth,
    project_home_value,
    project_inherited_ira,
    home_value_path,
    ira_tax_rate,
)

from hplan.core.engine.income import monthly_income, earner_benefits, benefit_income, EarnerBenefits

from hplan.core.engine.state import ReverseMortgage, SimulationState

from hplan.core.engine.waterfall import cover_deficit, deposit_surplus, apply_net_cash_flow, withdraw

from hplan.core.engine.simulation import (
    run_financial_simulation,
    step_month,
    build_plan,
    initial_state,
    MonthContext,
    StepResult,
)

from hplan.core.engine.reporting import timeline_to_frame, summarize_by_year

__all__ = [
    # Amortization
    "calculate_fixed_loan",
    "calculate_revolving_loan",
    "amortize",
    "balances_by_month",
    "schedule_to_frame",
    # Asset growth
    "calculate_asset_growth",
    "project_simple_growth",
    "project_home_value",
    "project_inherited_ira",
    "home_value_path",
    "ira_tax_rate",
    # Income
    "monthly_income",
    "earner_benefits",
    "benefit_income",
    "EarnerBenefits",
    # Simulation
    "ReverseMortgage",
    "SimulationState",
    "cover_deficit",
    "deposit_surplus",
    "apply_net_cash_flow",
    "withdraw",
    "run_financial_simulation",
    "step_month",
    "build_plan",
    "initial_state",
    "MonthContext",
    "StepResult",
    # Reporting
    "timeline_to_frame",
    "summarize_by_year",
]
