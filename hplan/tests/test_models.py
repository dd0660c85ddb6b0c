"""
Basic tests for hplan models.

Tests instantiation, dispatch and parsing of loan, asset and
assumption classes.
"""

import pytest
import pandas as pd

from hplan.core.models import (
    Asset,
    PropertyAsset,
    InheritedIraAsset,
    InvestmentAsset,
    asset_from_dict,
    Loan,
    LoanFixed,
    LoanRevolving,
    loan_from_dict,
    Assumptions,
)
from hplan.utils.error_utils import ScenarioShapeError
from hplan.tests.scenarios import account, fixed_loan


class TestLoanInstantiation:
    """Test loan creation and parsing."""

    def test_fixed_loan_creation(self):
        """Test LoanFixed instantiation."""
        loan = LoanFixed(id="mortgage", principal="250,000", rate=0.065, payment=1580,
                         start_date="2026-01-15", name="Mortgage")

        assert loan.principal == 250000.0
        assert loan.opening_balance == 250000.0
        assert loan.monthly_rate == pytest.approx(0.065 / 12)
        assert loan.start_date == pd.Timestamp("2026-01-01")
        assert loan.scheduled_payment() == 1580

    def test_standard_payment(self):
        """Test that a missing payment is sized from the term."""
        loan = LoanFixed(id="l", principal=100000, rate=0.06, payment=None, term_months=360)
        assert loan.payment == pytest.approx(599.55, abs=0.01)

        zero_rate = LoanFixed(id="l", principal=12000, rate=0, payment=None, term_months=12)
        assert zero_rate.payment == 1000

        no_term = LoanFixed(id="l", principal=12000, rate=0.05, payment=None)
        assert no_term.payment == 0.0

    def test_explicit_zero_payment_kept(self):
        """Test that an explicit zero payment is not replaced."""
        loan = LoanFixed(id="l", principal=12000, rate=0, payment=0, term_months=12)
        assert loan.payment == 0

    def test_revolving_loan_creation(self):
        """Test LoanRevolving instantiation."""
        loan = LoanRevolving(id="heloc", balance=20000, rate=0.09, payment=300)
        assert loan.opening_balance == 20000
        assert loan.start_date is None

    def test_fixed_loan_from_dict(self):
        """Test LoanFixed parsing from a scenario entry."""
        loan = loan_from_dict(fixed_loan("m", 1000, 0.05, 100, term_months=12))

        assert isinstance(loan, LoanFixed)
        assert loan.principal == 1000
        assert loan.term_months == 12
        assert loan.start_date == pd.Timestamp("2026-01-01")
        assert loan.active_strategy_id == "base"

    def test_revolving_from_dict(self):
        """Test LoanRevolving parsing from a scenario entry."""
        loan = loan_from_dict({
            "id": "heloc", "type": "revolving",
            "inputs": {"balance": "500", "rate": 0.1, "payment": 50, "start_date": "2026-02"},
        })
        assert isinstance(loan, LoanRevolving)
        assert loan.balance == 500
        assert loan.start_date == pd.Timestamp("2026-02-01")

    def test_dispatch(self):
        """Test that unknown types default to fixed loans."""
        assert isinstance(loan_from_dict({"id": "x", "type": "balloon", "inputs": {"principal": 1}}), LoanFixed)
        assert isinstance(loan_from_dict({"id": "x", "inputs": {"principal": 1}}), LoanFixed)
        loan = LoanRevolving(id="heloc", balance=1, rate=0, payment=1)
        assert loan_from_dict(loan) is loan

    def test_flat_dict(self):
        """Test loans given without an inputs section."""
        loan = loan_from_dict({"id": "x", "type": "fixed", "principal": 10, "rate": 0, "payment": 5})
        assert loan.principal == 10

    def test_extra_payments(self):
        """Test strategy extra payments."""
        loan = loan_from_dict(fixed_loan(
            "m", 1000, 0, 100,
            strategies={"base": {}, "fast": {"extra_payments": {"2026-02": "100", "bad": 5}}},
            active_strategy_id="fast",
        ))
        assert loan.extra_payments() == {"2026-02": 100.0}
        assert loan.extra_payments("base") == {}

    def test_base_loan_is_abstract(self):
        """Test that the base class has no balance."""
        with pytest.raises(NotImplementedError):
            Loan(id="x", rate=0, payment=0).opening_balance

    def test_malformed_date(self):
        """Test that malformed dates raise a shape error."""
        with pytest.raises(ScenarioShapeError):
            LoanFixed(id="x", principal=1, rate=0, payment=1, start_date="31/31/2026")


class TestAssetInstantiation:
    """Test asset creation."""

    def test_dispatch(self):
        """Test that asset_from_dict picks the variant by type."""
        assert isinstance(asset_from_dict(account(1, "home", "property")), PropertyAsset)
        assert isinstance(asset_from_dict(account(1, "ira", "inherited")), InheritedIraAsset)
        for kind in ("retirement", "joint", "cash", "other"):
            assert isinstance(asset_from_dict(account(1, "a", kind)), InvestmentAsset)

    def test_property_asset(self):
        """Test PropertyAsset fields."""
        asset = asset_from_dict(account(
            500000, "home", "property",
            build_year="1998", location_factor="0.005", linked_loan_ids=["m"], sell_date="2040-06-15",
        ))

        assert asset.build_year == 1998
        assert asset.location_factor == 0.005
        assert asset.linked_loan_ids == ["m"]
        assert asset.sell_date == pd.Timestamp("2040-06-01")
        assert asset.sell_year == 2040

    def test_inherited_ira_asset(self):
        """Test InheritedIraAsset overrides."""
        asset = asset_from_dict(account(
            100000, "ira", "inherited",
            start_date="2024-03-01", withdrawal_schedule={"2025": 0.3, 2026: None},
        ))

        assert asset.anchor_year(2030) == 2024
        assert asset.withdrawal_override(2025, 2024) == 0.3
        assert asset.withdrawal_override(2026, 2024) is None
        assert asset.withdrawal_override(2027, 2024) is None

    def test_inherited_ira_defaults(self):
        """Test anchor fallback and list schedules."""
        asset = InheritedIraAsset(id="ira", balance=1, withdrawal_schedule=[0.1, 0.2])
        assert asset.anchor_year(2030) == 2030
        assert asset.withdrawal_override(2031, 2030) == 0.2
        assert asset.withdrawal_override(2032, 2030) is None

    def test_investment_asset(self):
        """Test InvestmentAsset defaults."""
        asset = asset_from_dict(account(1000, "k", "retirement"))
        assert asset.growth_type == "market"
        assert asset.fixed_rate == 0.0
        assert asset.type == "retirement"
        assert asset.balance == 1000

    def test_passthrough(self):
        """Test that asset objects pass through unchanged."""
        asset = Asset(id="x", type="other", balance=5)
        assert asset_from_dict(asset) is asset


class TestAssumptions:
    """Test scenario-wide assumptions."""

    def test_defaults(self):
        """Test documented defaults."""
        assumptions = Assumptions.from_dict({"timing": {"start_year": 2026, "start_month": 3}})

        assert assumptions.start_date == pd.Timestamp("2026-03-01")
        assert assumptions.horizon_years == 35
        assert assumptions.general_inflation == 0.0
        assert assumptions.market.initial == 0.07
        assert assumptions.market.terminal == 0.035
        assert assumptions.market.glide_path is False
        assert assumptions.property.baseline_growth == 0.02
        assert assumptions.property.max_growth == 0.04
        assert assumptions.property.selling_cost == 0.06
        assert assumptions.reverse_mortgage_rate == 0.06
        assert assumptions.ira_base_tax_rate == 0.25
        assert assumptions.age_in(2030) is None

    def test_overrides(self):
        """Test that configured values replace the defaults."""
        assumptions = Assumptions.from_dict({
            "timing": {"start_year": 2026, "start_month": 1, "birth_year": 1966},
            "horizon_years": "10",
            "inflation": {"general": "0.03", "medical": 0.05},
            "market": {"initial": 0.06, "baseline_growth": 0.01},
            "rates": {"reverse_mortgage": 0.065},
            "taxes": {"ira_base_rate": 0.22},
        })

        assert assumptions.horizon_years == 10
        assert assumptions.general_inflation == 0.03
        assert assumptions.inflation["medical"] == 0.05
        assert assumptions.market.initial == 0.06
        assert assumptions.property.baseline_growth == 0.01
        assert assumptions.reverse_mortgage_rate == 0.065
        assert assumptions.ira_base_tax_rate == 0.22
        assert assumptions.age_in(2030) == 64

    def test_missing_timing(self):
        """Test that timing is required."""
        with pytest.raises(ScenarioShapeError):
            Assumptions.from_dict({"horizon_years": 10})

    def test_passthrough(self):
        """Test that Assumptions objects pass through."""
        assumptions = Assumptions.from_dict({"timing": {"start_year": 2026, "start_month": 1}})
        assert Assumptions.from_dict(assumptions) is assumptions
