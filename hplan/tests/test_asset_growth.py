"""
Tests for the asset growth projector.
"""

import pytest

from hplan.core.engine.asset_growth import (
    calculate_asset_growth,
    project_simple_growth,
    project_home_value,
    project_inherited_ira,
    home_growth_rate,
    ira_tax_rate,
)
from hplan.core.models import Assumptions, PropertyAsset
from hplan.tests.scenarios import account, fixed_loan


class TestDispatch:
    """calculate_asset_growth routing."""

    def test_no_asset(self, assumptions):
        """Missing assets and untyped accounts project to nothing."""
        assert calculate_asset_growth(None, assumptions) == []
        assert calculate_asset_growth({"id": "x", "balance": 10}, assumptions) == []

    def test_routes_by_type(self, assumptions):
        """Each asset type gets its own projection shape."""
        prop = calculate_asset_growth(account(100000, "home", "property"), assumptions)
        ira = calculate_asset_growth(account(100000, "ira", "inherited"), assumptions)
        cash = calculate_asset_growth(account(1000), assumptions)

        assert "equity" in prop[0]
        assert "withdrawal" in ira[0]
        assert set(cash[0]) == {"year", "value", "growth_rate"}

    def test_horizon_defaults_to_assumptions(self, assumptions):
        """The projection covers horizon_years + 1 points."""
        assert len(calculate_asset_growth(account(1000), assumptions)) == 6
        assert len(calculate_asset_growth(account(1000), assumptions, horizon_years=2)) == 3


class TestSimpleGrowth:
    """Yearly compounding of balance-only accounts."""

    def test_market_rate(self, assumptions):
        """Market accounts compound at market.initial."""
        points = project_simple_growth(account(1000), assumptions, horizon_years=2)

        assert [p["year"] for p in points] == [2026, 2027, 2028]
        assert points[0]["value"] == 1000
        assert points[2]["value"] == pytest.approx(1000 * 1.05 ** 2)
        assert points[0]["growth_rate"] == 0.05

    def test_fixed_rate(self, assumptions):
        """Fixed-growth accounts use their own rate."""
        asset = {**account(1000, type="joint"), "growth_type": "fixed", "fixed_rate": 0.02}
        points = project_simple_growth(asset, assumptions, horizon_years=1)
        assert points[1]["value"] == pytest.approx(1020)

    def test_bad_numbers_degrade(self, assumptions):
        """Unparseable balances coerce to zero instead of propagating NaN."""
        points = project_simple_growth(account("n/a"), assumptions, horizon_years=3)
        assert all(p["value"] == 0 for p in points)


class TestHomeValue:
    """Age-banded property appreciation."""

    def test_growth_bands(self):
        """The addon depends on the building age in each year."""
        params = Assumptions.from_dict({"timing": {"start_year": 2026, "start_month": 1}}).property

        assert home_growth_rate(3, 0.0, params) == (pytest.approx(0.035), "new")
        assert home_growth_rate(5, 0.0, params) == (pytest.approx(0.035), "new")
        assert home_growth_rate(6, 0.0, params) == (pytest.approx(0.027), "mid")
        assert home_growth_rate(20, 0.0, params) == (pytest.approx(0.027), "mid")
        assert home_growth_rate(21, 0.0, params) == (pytest.approx(0.02), "mature")

    def test_rate_is_clamped(self):
        """Location factors cannot push the rate outside [0, max_growth]."""
        params = Assumptions.from_dict({"timing": {"start_year": 2026, "start_month": 1}}).property

        assert home_growth_rate(30, 0.5, params)[0] == pytest.approx(0.04)
        assert home_growth_rate(30, -0.5, params)[0] == 0.0

    def test_band_transition(self, assumptions):
        """A two-year-old home moves from the new to the mid band after year three."""
        home = account(100000, "home", "property", build_year=2024)
        points = project_home_value(home, assumptions)

        assert [p["bucket"] for p in points] == ["new", "new", "new", "new", "mid", "mid"]
        assert [p["age"] for p in points] == [2, 3, 4, 5, 6, 7]
        assert points[1]["value"] == pytest.approx(103500)

    def test_default_build_year(self, assumptions):
        """Homes without a build year are treated as ten years old."""
        points = project_home_value(account(100000, "home", "property"), assumptions)
        assert points[0]["age"] == 10
        assert points[0]["bucket"] == "mid"

    def test_sold_years_are_zeroed(self, assumptions):
        """From the sale year on the projection reports nothing."""
        home = account(100000, "home", "property", sell_date="2028-06-01")
        points = project_home_value(home, assumptions)

        assert points[1]["bucket"] != "sold"
        assert points[1]["value"] > 0
        for point in points[2:]:
            assert point["bucket"] == "sold"
            assert point["value"] == point["debt"] == point["equity"] == 0

    def test_linked_debt_and_equity(self, assumptions):
        """Equity nets the January balance of every linked loan."""
        home = account(300000, "home", "property", linked_loan_ids=["m1", "m2", "gone"])
        loans = {
            "m1": fixed_loan("m1", 100000, 0, 1000),
            "m2": fixed_loan("m2", 12000, 0, 1000),
        }
        points = project_home_value(home, assumptions, loans)

        assert points[0]["debt"] == pytest.approx(99000 + 11000)
        assert points[0]["equity"] == pytest.approx(300000 - 110000)
        assert points[1]["debt"] == pytest.approx(87000)

    def test_legacy_linked_loan_id(self, assumptions):
        """A single linked_loan_id is still honoured."""
        home = account(300000, "home", "property", linked_loan_id="m1")
        points = project_home_value(home, assumptions, {"m1": fixed_loan("m1", 100000, 0, 1000)})
        assert points[0]["debt"] == pytest.approx(99000)

    def test_equity_floors_at_zero(self, assumptions):
        """Underwater properties report zero equity."""
        home = account(50000, "home", "property", linked_loan_ids=["m1"])
        points = project_home_value(home, assumptions, {"m1": fixed_loan("m1", 100000, 0, 100)})
        assert points[0]["equity"] == 0.0

    def test_inactive_and_undated_loans(self, assumptions):
        """Inactive loans are ignored; undated loans start with the projection."""
        home = account(300000, "home", "property", linked_loan_ids=["off", "undated"])
        loans = {
            "off": fixed_loan("off", 100000, 0, 1000, active=False),
            "undated": fixed_loan("undated", 5000, 0, 1000, start_date=None),
        }
        points = project_home_value(home, assumptions, loans)
        assert points[0]["debt"] == pytest.approx(4000)

    def test_accepts_models(self, assumptions):
        """Model objects are accepted as well as dicts."""
        home = PropertyAsset(id="home", balance=100000, build_year=2000)
        points = project_home_value(home, Assumptions.from_dict(assumptions), horizon_years=1)
        assert points[1]["value"] == pytest.approx(102000)


class TestInheritedIra:
    """Mandatory 10-year depletion."""

    def test_forced_depletion(self, assumptions):
        """The balance reaches zero in the tenth year after the anchor."""
        ira = account(100000, "ira", "inherited", start_date="2026-01-01")
        points = project_inherited_ira(ira, assumptions, horizon_years=12)
        by_year = {p["year"]: p for p in points}

        assert by_year[2036]["withdrawal_pct"] == 1.0
        assert by_year[2036]["value"] == 0
        assert by_year[2037]["withdrawal"] == 0
        assert by_year[2038]["value"] == 0

    def test_final_year_overrides_schedule(self, assumptions):
        """A configured percentage for the final year is ignored."""
        ira = account(100000, "ira", "inherited", start_date="2026-01-01",
                      withdrawal_schedule={"2036": 0.1, 2027: 0.5})
        by_year = {p["year"]: p for p in project_inherited_ira(ira, assumptions, horizon_years=10)}

        assert by_year[2027]["withdrawal_pct"] == 0.5
        assert by_year[2036]["withdrawal_pct"] == 1.0
        assert by_year[2036]["value"] == 0

    def test_default_withdrawal_and_tax(self, assumptions):
        """Twenty percent is withdrawn and taxed at the base rate."""
        ira = account(100000, "ira", "inherited", start_date="2026-01-01")
        first = project_inherited_ira(ira, assumptions)[0]

        assert first["start_balance"] == 100000
        assert first["withdrawal"] == pytest.approx(20000)
        assert first["tax_rate"] == 0.25
        assert first["tax"] == pytest.approx(5000)
        assert first["net_proceeds"] == pytest.approx(15000)
        assert first["value"] == pytest.approx(80000)

    def test_growth_after_withdrawal(self, assumptions):
        """The remainder compounds at market.initial until the next January."""
        ira = account(100000, "ira", "inherited", start_date="2026-01-01")
        second = project_inherited_ira(ira, assumptions)[1]
        assert second["start_balance"] == pytest.approx(80000 * 1.05)

    def test_list_schedule(self, assumptions):
        """List schedules are indexed by year offset from the anchor."""
        ira = account(100000, "ira", "inherited", start_date="2026-01-01",
                      withdrawal_schedule=[0.5, None])
        points = project_inherited_ira(ira, assumptions)

        assert points[0]["withdrawal_pct"] == 0.5
        assert points[1]["withdrawal_pct"] == 0.2

    def test_anchor_before_start(self, assumptions):
        """An IRA inherited before the simulation keeps its original window."""
        ira = account(100000, "ira", "inherited", start_date="2020-07-01")
        by_year = {p["year"]: p for p in project_inherited_ira(ira, assumptions, horizon_years=6)}

        assert by_year[2030]["value"] == 0
        assert by_year[2031]["withdrawal"] == 0

    def test_anchor_defaults_to_start_year(self, assumptions):
        """Without a start date the window opens in the simulation start year."""
        points = project_inherited_ira(account(1000, "ira", "inherited"), assumptions)
        assert points[0]["withdrawal_pct"] == 0.2

    def test_cumulative_withdrawals(self, assumptions):
        """Cumulative withdrawals add up the yearly amounts."""
        ira = account(100000, "ira", "inherited", start_date="2026-01-01")
        points = project_inherited_ira(ira, assumptions)
        assert points[-1]["cumulative_withdrawals"] == pytest.approx(sum(p["withdrawal"] for p in points))


@pytest.mark.parametrize("amount, expected", [
    (700000, 0.48),
    (600001, 0.48),
    (600000, 0.40),
    (450000, 0.40),
    (250000, 0.32),
    (200000, 0.25),
    (1000, 0.25),
])
def test_ira_tax_brackets(amount, expected):
    """The bracket is chosen by the gross withdrawal and applied flat."""
    assert ira_tax_rate(amount) == expected


def test_ira_tax_base_rate_override():
    """Withdrawals below every bracket use the configured base rate."""
    assert ira_tax_rate(1000, 0.15) == 0.15
