"""
Asset growth projector for hplan.

Year-by-year value projections per asset class, used for visualization and
by the simulation engine to price property sales:

- Property: age-banded appreciation, netted against linked loan balances
- Inherited IRA: mandatory 10-year depletion with bracketed withdrawal tax
- Everything else: simple annual compounding
"""

from typing import Any, Dict, List, Optional, Union

from hplan.core import constants as C
from hplan.core.engine.amortization import amortize, balances_by_month
from hplan.core.models.asset import Asset, PropertyAsset, InheritedIraAsset, asset_from_dict
from hplan.core.models.assumptions import Assumptions, PropertyAssumptions
from hplan.core.models.loan import loan_from_dict
from hplan.utils.rate_utils import clamp
from hplan.utils.error_utils import error_handler, logger


def ira_tax_rate(amount: float, base_rate: float = C.IRA_BASE_TAX_RATE) -> float:
    """
    Flat tax rate applied to an inherited-IRA withdrawal of ``amount``.

    The bracket is chosen by the gross size of the withdrawal alone and the
    rate applies to the whole amount (not marginal).
    """
    for threshold, rate in C.IRA_TAX_BRACKETS:
        if amount > threshold:
            return rate
    return base_rate


def home_growth_rate(age: float, location_factor: float, params: PropertyAssumptions):
    """
    Appreciation rate and age band for a building of ``age`` years.

    Returns:
        Tuple of (rate clamped to [min_growth, max_growth], bucket name)
    """
    if age <= params.new_home_years:
        bucket, addon = C.PropertyBucket.NEW, params.new_home_addon
    elif age <= params.new_home_years + params.mid_home_years:
        bucket, addon = C.PropertyBucket.MID, params.mid_home_addon
    else:
        bucket, addon = C.PropertyBucket.MATURE, params.mature_home_addon

    rate = params.baseline_growth + addon + location_factor
    return clamp(rate, params.min_growth, params.max_growth), bucket


def home_value_path(asset: PropertyAsset, assumptions: Assumptions, horizon_years: int) -> List[Dict[str, Any]]:
    """Market value path of a property for ``horizon_years + 1`` years, ignoring any sale."""
    start_year = assumptions.start_year
    build_year = asset.build_year if asset.build_year is not None else start_year - C.DEFAULT_HOME_AGE_YEARS
    initial_age = start_year - build_year

    path = []
    value = asset.balance
    for t in range(horizon_years + 1):
        age = initial_age + t
        rate, bucket = home_growth_rate(age, asset.location_factor, assumptions.property)
        path.append({
            "year": start_year + t,
            "age": age,
            "value": value,
            "growth_rate": rate,
            "bucket": bucket,
        })
        value *= 1 + rate
    return path


def _linked_loan_balances(asset: PropertyAsset, loans: Optional[Dict[str, Any]], assumptions: Assumptions) -> List[Dict[str, float]]:
    """Ending balance by month-key for each active linked loan (one schedule per loan)."""
    indexed = []
    for loan_id in asset.linked_loan_ids:
        raw = (loans or {}).get(loan_id)
        if raw is None:
            logger.debug(f"Property {asset.id}: linked loan {loan_id} not found")
            continue
        loan = loan_from_dict(raw)
        if not loan.active:
            continue
        indexed.append(balances_by_month(amortize(loan, default_start=assumptions.start_date)))
    return indexed


@error_handler
def project_home_value(
    asset: Union[PropertyAsset, Dict[str, Any]],
    assumptions: Union[Assumptions, Dict[str, Any]],
    loans: Optional[Dict[str, Any]] = None,
    horizon_years: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Project a property's value, linked debt and equity year by year.

    Debt is the sum of linked loan balances as of January of each year. From
    the sale year on every point reports zero value, debt and equity with
    bucket ``"sold"``.

    Returns:
        List of ``{year, age, value, growth_rate, bucket, debt, equity}``
    """
    asset = asset_from_dict(asset)
    assumptions = Assumptions.from_dict(assumptions)
    horizon = assumptions.horizon_years if horizon_years is None else horizon_years

    loan_balances = _linked_loan_balances(asset, loans, assumptions)
    sell_year = asset.sell_year

    projection = []
    for point in home_value_path(asset, assumptions, horizon):
        year = point["year"]
        if sell_year is not None and sell_year <= year:
            projection.append({
                **point,
                "value": 0.0,
                "growth_rate": 0.0,
                "bucket": C.PropertyBucket.SOLD,
                "debt": 0.0,
                "equity": 0.0,
            })
            continue

        january = f"{year}-01"
        debt = sum(balances.get(january, 0.0) for balances in loan_balances)
        projection.append({
            **point,
            "debt": debt,
            "equity": max(0.0, point["value"] - debt),
        })
    return projection


@error_handler
def project_inherited_ira(
    asset: Union[InheritedIraAsset, Dict[str, Any]],
    assumptions: Union[Assumptions, Dict[str, Any]],
    horizon_years: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Project an inherited IRA through its mandatory 10-year depletion window.

    Every January from the anchor year through anchor + 10 a withdrawal is
    taken: the configured fraction for that year, 20% otherwise, and always
    100% in the final year. Withdrawals are taxed by ``ira_tax_rate``; the
    remaining balance compounds at ``market.initial``.

    Returns:
        List of ``{year, start_balance, withdrawal_pct, withdrawal, tax_rate,
        tax, net_proceeds, cumulative_withdrawals, value}`` where ``value`` is
        the balance right after the January withdrawal
    """
    asset = asset_from_dict(asset)
    assumptions = Assumptions.from_dict(assumptions)
    horizon = assumptions.horizon_years if horizon_years is None else horizon_years

    anchor_year = asset.anchor_year(assumptions.start_year)
    final_year = anchor_year + C.IRA_DEPLETION_YEARS
    growth_rate = assumptions.market.initial

    projection = []
    balance = asset.balance
    cumulative = 0.0
    for t in range(horizon + 1):
        year = assumptions.start_year + t
        start_balance = balance
        pct = 0.0
        if anchor_year <= year <= final_year and balance > 0:
            if year == final_year:
                pct = 1.0
            else:
                override = asset.withdrawal_override(year, anchor_year)
                pct = C.IRA_DEFAULT_WITHDRAWAL_PCT if override is None else clamp(override, 0.0, 1.0)

        withdrawal = balance * pct
        tax_rate = ira_tax_rate(withdrawal, assumptions.ira_base_tax_rate) if withdrawal > 0 else 0.0
        tax = withdrawal * tax_rate
        balance -= withdrawal
        cumulative += withdrawal

        projection.append({
            "year": year,
            "start_balance": start_balance,
            "withdrawal_pct": pct,
            "withdrawal": withdrawal,
            "tax_rate": tax_rate,
            "tax": tax,
            "net_proceeds": withdrawal - tax,
            "cumulative_withdrawals": cumulative,
            "value": balance,
        })
        balance *= 1 + growth_rate
    return projection


@error_handler
def project_simple_growth(
    asset: Union[Asset, Dict[str, Any]],
    assumptions: Union[Assumptions, Dict[str, Any]],
    horizon_years: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Compound a balance once per year for ``horizon_years + 1`` points.

    The rate is the account's ``fixed_rate`` when ``growth_type == "fixed"``,
    otherwise ``market.initial``. No glide-path taper is applied here.
    """
    asset = asset_from_dict(asset)
    assumptions = Assumptions.from_dict(assumptions)
    horizon = assumptions.horizon_years if horizon_years is None else horizon_years

    if getattr(asset, "growth_type", None) == C.GrowthType.FIXED:
        rate = asset.fixed_rate
    else:
        rate = assumptions.market.initial

    projection = []
    balance = asset.balance
    for t in range(horizon + 1):
        projection.append({"year": assumptions.start_year + t, "value": balance, "growth_rate": rate})
        balance *= 1 + rate
    return projection


@error_handler
def calculate_asset_growth(
    asset: Union[Asset, Dict[str, Any], None],
    assumptions: Union[Assumptions, Dict[str, Any]],
    loans: Optional[Dict[str, Any]] = None,
    horizon_years: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Yearly projection of any asset account, dispatched by its type.

    Args:
        asset: Asset object or scenario account dict
        assumptions: Assumptions object or scenario ``assumptions`` mapping
        loans: Scenario loan map, used to net linked debt for properties
        horizon_years: Projection length; defaults to ``assumptions.horizon_years``

    Returns:
        List of yearly points (shape depends on the asset type); an empty
        list when no asset or type is given
    """
    if not asset:
        return []
    if isinstance(asset, dict) and not asset.get("type"):
        return []

    asset = asset_from_dict(asset)
    if isinstance(asset, PropertyAsset):
        return project_home_value(asset, assumptions, loans, horizon_years)
    if isinstance(asset, InheritedIraAsset):
        return project_inherited_ira(asset, assumptions, horizon_years)
    return project_simple_growth(asset, assumptions, horizon_years)
