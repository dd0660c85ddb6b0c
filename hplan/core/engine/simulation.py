"""
Monthly simulation engine for hplan.

``run_financial_simulation`` parses a resolved scenario once into a
read-only ``ScenarioPlan`` (models, one amortization schedule per active
loan, one value path per property) and folds ``step_month`` over the month
index. Each step is a pure function of the previous state and the month
context, producing the next state, one timeline row and any events.

Step order within a month:
    1. Resolve income and expense profiles
    2. Income (earnings, Social Security, pensions)
    3. Expenses (inflated recurring categories, one-offs, debt service)
    4. Net cash flow
    5. Property purchases, then scheduled property sales
    6. Waterfall on deficit, surplus to liquid cash
    7. Growth of the buckets and reverse-mortgage accrual
    8. Forced sale when the reverse mortgage exceeds the LTV limit
    9. Loan payoff events
    10. Timeline row
"""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

import pandas as pd

from hplan.config import get_settings
from hplan.core import constants as C
from hplan.core.engine.amortization import amortize
from hplan.core.engine.asset_growth import home_value_path
from hplan.core.engine.income import EarnerBenefits, benefit_income, earner_benefits, monthly_income
from hplan.core.engine.state import ReverseMortgage, SimulationState
from hplan.core.engine.waterfall import Event, apply_net_cash_flow, cover_deficit, withdraw
from hplan.core.models.asset import PropertyAsset, asset_from_dict
from hplan.core.models.assumptions import Assumptions
from hplan.core.models.loan import Loan, LoanRevolving, loan_from_dict
from hplan.core.models.profile import resolve_profile_data
from hplan.core.schema import validate_scenario_shape
from hplan.utils.date_utils import add_months, month_key, parse_date
from hplan.utils.rate_utils import safe_num, inflation_factor
from hplan.utils.error_utils import error_handler, logger


@dataclass(frozen=True)
class LoanPlan:
    """A loan with its pre-computed schedule under the active strategy."""
    loan: Loan
    balances: Dict[str, float]
    first_month: Optional[str]
    last_month: Optional[str]
    paid_off: bool
    minimum_due: Dict[str, float] = field(default_factory=dict)

    def bills_in(self, key: str) -> bool:
        if self.first_month is None:
            return False
        return self.first_month <= key <= self.last_month

    def balance_at(self, key: str) -> float:
        return self.balances.get(key, 0.0)

    def payment_in(self, key: str) -> float:
        """Amount billed in a month; revolving lines never bill below the interest due."""
        return self.minimum_due.get(key, self.loan.scheduled_payment())


@dataclass(frozen=True)
class PropertyPlan:
    """A property with its unsold market value by calendar year."""
    asset: PropertyAsset
    values: Dict[int, float]

    @property
    def sell_month(self) -> Optional[str]:
        if self.asset.sell_date is None:
            return None
        return month_key(self.asset.sell_date)

    @property
    def purchase_month(self) -> Optional[str]:
        if self.asset.purchase_date is None:
            return None
        return month_key(self.asset.purchase_date)

    def owned_in(self, key: str) -> bool:
        return self.purchase_month is None or self.purchase_month <= key

    def value_in(self, year: int) -> float:
        return self.values.get(year, 0.0)


@dataclass(frozen=True)
class ScenarioPlan:
    """Read-only inputs shared by every step of one run."""
    assumptions: Assumptions
    income: Dict[str, Any]
    expenses: Dict[str, Any]
    profiles: Dict[str, Any]
    loans: Tuple[LoanPlan, ...]
    properties: Tuple[PropertyPlan, ...]
    one_offs: Dict[str, float]
    benefits: Tuple[EarnerBenefits, ...] = ()
    account_buckets: Dict[str, str] = field(default_factory=dict)

    def loans_by_id(self) -> Dict[str, LoanPlan]:
        return {plan.loan.id: plan for plan in self.loans}


@dataclass(frozen=True)
class MonthContext:
    """Position of one step in the month loop."""
    plan: ScenarioPlan
    index: int
    date: pd.Timestamp

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def month(self) -> int:
        return self.date.month

    @property
    def month_key(self) -> str:
        return self.date.strftime("%Y-%m")

    @property
    def date_str(self) -> str:
        return self.date.strftime("%Y-%m-%d")


@dataclass(frozen=True)
class StepResult:
    state: SimulationState
    row: Dict[str, Any]
    events: List[Event]


# ======================
# Plan construction
# ======================


def _plan_loan(loan: Loan, default_start: pd.Timestamp) -> LoanPlan:
    schedule = amortize(loan, default_start=default_start)["schedule"]
    if not schedule:
        return LoanPlan(loan, {}, None, None, False)
    minimum_due = {}
    if isinstance(loan, LoanRevolving):
        planned = loan.scheduled_payment()
        minimum_due = {row["date"]: max(planned, row["interest"]) for row in schedule}
    return LoanPlan(
        loan=loan,
        balances={row["date"]: row["ending_balance"] for row in schedule},
        first_month=schedule[0]["date"],
        last_month=schedule[-1]["date"],
        paid_off=schedule[-1]["is_payoff"],
        minimum_due=minimum_due,
    )


def _bucket_for(account_type: str) -> Optional[str]:
    if account_type in C.LIQUID_ACCOUNT_TYPES:
        return "liquid_cash"
    if account_type in C.INHERITED_ACCOUNT_TYPES:
        return "inherited_balance"
    if account_type in C.RETIREMENT_ACCOUNT_TYPES:
        return "retirement_balance"
    return None


def _index_one_offs(items: Optional[List[Dict[str, Any]]]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for item in items or []:
        if not item or not item.get("date"):
            continue
        key = month_key(parse_date(item["date"]))
        totals[key] = totals.get(key, 0.0) + safe_num(item.get("amount"))
    return totals


@error_handler
def build_plan(scenario: Mapping[str, Any], profiles: Optional[Mapping[str, Any]] = None) -> ScenarioPlan:
    """
    Parse a validated scenario into the read-only inputs of a run.

    Inactive loans and accounts are dropped here. Loans without a start date
    begin at the simulation start. Properties with a later ``start_date`` are
    future purchases.
    """
    assumptions = Assumptions.from_dict(scenario["assumptions"])

    loans = tuple(
        _plan_loan(loan, assumptions.start_date)
        for loan in (loan_from_dict(raw) for raw in (scenario.get("loans") or {}).values())
        if loan.active
    )

    properties = []
    account_buckets = {}
    for key, raw in (scenario.get("assets") or {}).items():
        asset = asset_from_dict(raw)
        if not asset.active:
            continue
        bucket = _bucket_for(asset.type)
        if bucket is not None:
            account_buckets[key] = account_buckets[asset.id] = bucket
        if not isinstance(asset, PropertyAsset):
            continue
        if asset.sell_date is not None and asset.sell_date < assumptions.start_date:
            logger.debug(f"Property {asset.id} was sold before the simulation start")
            continue
        path = home_value_path(asset, assumptions, assumptions.horizon_years)
        properties.append(PropertyPlan(asset, {point["year"]: point["value"] for point in path}))

    expenses = scenario.get("expenses") or {}
    return ScenarioPlan(
        assumptions=assumptions,
        income=scenario.get("income") or {},
        expenses=expenses,
        profiles=dict(profiles or {}),
        loans=loans,
        properties=tuple(properties),
        one_offs=_index_one_offs(expenses.get("one_offs")),
        benefits=earner_benefits(scenario.get("income") or {}, assumptions.birth_year),
        account_buckets=account_buckets,
    )


def initial_state(scenario: Mapping[str, Any]) -> SimulationState:
    """Pool the active account balances into the engine's three buckets."""
    pools = {"liquid_cash": 0.0, "inherited_balance": 0.0, "retirement_balance": 0.0}
    for raw in (scenario.get("assets") or {}).values():
        asset = asset_from_dict(raw)
        if not asset.active:
            continue
        bucket = _bucket_for(asset.type)
        if bucket is not None:
            pools[bucket] += asset.balance
    return SimulationState(**pools)


# ======================
# Per-month calculations
# ======================


def _category_total(items: Any) -> float:
    if isinstance(items, (list, tuple)):
        return sum(safe_num(item.get("amount")) if isinstance(item, dict) else safe_num(item) for item in items)
    if isinstance(items, dict):
        return safe_num(items.get("amount"))
    return safe_num(items)


def recurring_expenses(expense_data: Mapping[str, Any], general_inflation: float, months_elapsed: int) -> float:
    """Monthly total of the recurring categories, inflated to ``months_elapsed``."""
    base = sum(_category_total(expense_data.get(category)) for category in C.EXPENSE_CATEGORIES)
    return base * inflation_factor(general_inflation, months_elapsed)


def debt_service(plan: ScenarioPlan, closed_loans: FrozenSet[str], key: str) -> float:
    """
    Payments of the loans still open and billing in ``key``.

    Fixed loans bill their configured payment. Revolving lines bill
    ``max(planned payment, interest due)`` as their schedule charges it.
    """
    return sum(
        lp.payment_in(key)
        for lp in plan.loans
        if lp.loan.id not in closed_loans and lp.bills_in(key)
    )


def ltv_limit(age: Optional[int]) -> float:
    """Maximum reverse-mortgage loan-to-value ratio for the owner's age."""
    if age is None:
        return C.REVERSE_MORTGAGE_LTV_BANDS[0][1]
    for max_age, limit in C.REVERSE_MORTGAGE_LTV_BANDS:
        if age <= max_age:
            return limit
    return C.REVERSE_MORTGAGE_LTV_MAX


def growth_rate(assumptions: Assumptions, year: int) -> float:
    """Annual return applied to the buckets; flat ``market.initial`` unless the glide path is on."""
    market = assumptions.market
    if market.glide_path and assumptions.birth_year is not None:
        return market.return_for_age(assumptions.age_in(year))
    return market.initial


def sell_property(
    state: SimulationState,
    prop: PropertyPlan,
    ctx: MonthContext,
    forced: bool = False,
) -> Tuple[SimulationState, Event]:
    """
    Sell a property at its value for the current year.

    Net proceeds are the value after selling costs, less the linked loan
    balances and the whole reverse-mortgage balance. Positive proceeds go to
    liquid cash; the linked loans close and the reverse mortgage is cleared.
    """
    plan = ctx.plan
    loans = plan.loans_by_id()
    gross = prop.value_in(ctx.year) * (1 - plan.assumptions.property.selling_cost)

    linked = [loans[lid] for lid in prop.asset.linked_loan_ids if lid in loans]
    loan_payoff = sum(
        lp.balance_at(ctx.month_key) for lp in linked if lp.loan.id not in state.closed_loans
    )
    net = gross - loan_payoff - state.reverse_mortgage.balance

    new_state = replace(
        state,
        liquid_cash=state.liquid_cash + max(net, 0.0),
        reverse_mortgage=ReverseMortgage(),
        sold_properties=state.sold_properties | {prop.asset.id},
        closed_loans=state.closed_loans | {lp.loan.id for lp in linked},
    )
    label = "Forced Sale:" if forced else "Sold"
    return new_state, {"date": ctx.date_str, "text": f"{label} {prop.asset.name}. Net: ${net:,.0f}"}


def purchase_property(
    state: SimulationState,
    prop: PropertyPlan,
    ctx: MonthContext,
) -> Tuple[SimulationState, List[Event]]:
    """
    Fund a property bought this month.

    Each funding item is taken from the bucket its source account pools
    into. Whatever a bucket cannot cover is drawn through the waterfall.
    """
    events: List[Event] = [{"date": ctx.date_str, "text": f"Purchased Property: {prop.asset.name}"}]
    shortfall = 0.0
    for item in prop.asset.funding:
        bucket = ctx.plan.account_buckets.get(item["source_id"])
        if bucket is None:
            logger.debug(f"Property {prop.asset.id}: funding source {item['source_id']} is not a pooled account")
            continue
        state, residual = withdraw(state, bucket, item["amount"])
        shortfall += residual
    if shortfall > 0:
        state, waterfall_events = cover_deficit(state, shortfall, ctx.date_str, ctx.year)
        events.extend(waterfall_events)
    return state, events


def _held(plan: ScenarioPlan, state: SimulationState, key: str) -> List[PropertyPlan]:
    return [
        prop for prop in plan.properties
        if prop.owned_in(key) and prop.asset.id not in state.sold_properties
    ]


def step_month(state: SimulationState, ctx: MonthContext) -> StepResult:
    """
    Advance the simulation by one month.

    Args:
        state: Balances at the end of the previous month
        ctx: Month context (plan, month index, date)

    Returns:
        StepResult with the new state, the timeline row and this month's events
    """
    plan = ctx.plan
    assumptions = plan.assumptions
    key = ctx.month_key
    events: List[Event] = []

    income_data = resolve_profile_data(
        plan.income.get("profile_sequence"), ctx.date, plan.profiles, plan.income
    ) or {}
    expense_data = resolve_profile_data(
        plan.expenses.get("profile_sequence"), ctx.date, plan.profiles, plan.expenses
    ) or {}

    work_status = income_data.get("work_status", plan.income.get("work_status")) or {}
    inflation_mult = inflation_factor(assumptions.general_inflation, ctx.index)
    benefits, started = benefit_income(plan.benefits, state.started_benefits, ctx.year, inflation_mult)
    income = monthly_income(income_data, work_status, ctx.year, ctx.month) + benefits
    if started:
        state = replace(state, started_benefits=state.started_benefits | set(started))
        events.extend({"date": ctx.date_str, "text": text} for text in started.values())

    debt = debt_service(plan, state.closed_loans, key)
    expenses = (
        recurring_expenses(expense_data, assumptions.general_inflation, ctx.index)
        + plan.one_offs.get(key, 0.0)
        + debt
    )
    net_cash_flow = income - expenses

    for prop in plan.properties:
        if prop.purchase_month == key and prop.asset.id not in state.sold_properties:
            state, purchase_events = purchase_property(state, prop, ctx)
            events.extend(purchase_events)

    for prop in _held(plan, state, key):
        if prop.sell_month == key:
            state, event = sell_property(state, prop, ctx)
            events.append(event)

    state, waterfall_events = apply_net_cash_flow(state, net_cash_flow, ctx.date_str, ctx.year)
    events.extend(waterfall_events)

    monthly_growth = 1 + growth_rate(assumptions, ctx.year) / 12
    state = replace(
        state,
        liquid_cash=state.liquid_cash * monthly_growth,
        inherited_balance=state.inherited_balance * monthly_growth,
        retirement_balance=state.retirement_balance * monthly_growth,
        reverse_mortgage=state.reverse_mortgage.accrue(assumptions.reverse_mortgage_rate),
    )

    if state.reverse_mortgage.active and state.reverse_mortgage.balance > 0:
        remaining = _held(plan, state, key)
        property_value = sum(prop.value_in(ctx.year) for prop in remaining)
        limit = ltv_limit(assumptions.age_in(ctx.year))
        if property_value > 0 and state.reverse_mortgage.balance > limit * property_value:
            logger.info(
                f"{key}: reverse mortgage {state.reverse_mortgage.balance:,.0f} exceeds "
                f"{limit:.0%} of property value {property_value:,.0f}, forcing sale"
            )
            for prop in remaining:
                state, event = sell_property(state, prop, ctx, forced=True)
                events.append(event)

    for lp in plan.loans:
        if lp.paid_off and lp.last_month == key and lp.loan.id not in state.closed_loans:
            events.append({"date": ctx.date_str, "text": f"{lp.loan.name} Paid Off"})

    property_value = sum(prop.value_in(ctx.year) for prop in _held(plan, state, key))
    row = {
        "date": ctx.date_str,
        "month_key": key,
        "year": ctx.year,
        "month": ctx.month,
        "income": income,
        "expenses": expenses,
        "debt_service": debt,
        "net_cash_flow": net_cash_flow,
        "balances": {
            "liquid": state.liquid_cash,
            "inherited": state.inherited_balance,
            "retirement": state.retirement_balance,
            "reverse_mortgage": state.reverse_mortgage.balance,
            "property": property_value,
        },
        "net_worth": state.net_worth,
        "shortfall": 0.0,
    }
    return StepResult(state, row, events)


@error_handler
def run_financial_simulation(
    scenario: Mapping[str, Any],
    profiles: Optional[Mapping[str, Any]] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Run the deterministic monthly projection of a resolved scenario.

    The month loop covers ``horizon_years * 12`` months from
    ``assumptions.timing``, capped by ``HPLAN_MAX_SIMULATION_MONTHS``. Inputs
    are deep-copied and never mutated.

    Args:
        scenario: Resolved scenario (assumptions, income, expenses, assets, loans)
        profiles: Profile catalog ``{profile_id: {"id", "name", "data"}}``

    Returns:
        ``{"timeline": [row, ...], "events": [{"date", "text"}, ...]}``

    Raises:
        ScenarioShapeError: If the scenario is structurally invalid
    """
    scenario = copy.deepcopy(scenario)
    profiles = copy.deepcopy(dict(profiles or {}))
    validate_scenario_shape(scenario)

    plan = build_plan(scenario, profiles)
    settings = get_settings()
    months = plan.assumptions.horizon_years * 12
    if months > settings.max_simulation_months:
        logger.warning(
            f"Horizon of {months} months exceeds the ceiling, "
            f"simulating {settings.max_simulation_months} months"
        )
        months = settings.max_simulation_months

    start = plan.assumptions.start_date
    logger.info(
        f"Starting simulation: {months} months from {start:%Y-%m}, "
        f"{len(plan.loans)} loans, {len(plan.properties)} properties"
    )

    state = initial_state(scenario)
    timeline: List[Dict[str, Any]] = []
    events: List[Event] = []
    for index in range(months):
        result = step_month(state, MonthContext(plan, index, add_months(start, index)))
        state = result.state
        timeline.append(result.row)
        events.extend(result.events)

    logger.info(f"Simulation finished: {len(timeline)} rows, {len(events)} events")
    return {"timeline": timeline, "events": events}
