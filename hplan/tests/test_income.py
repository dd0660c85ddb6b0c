"""
Tests for earnings, Social Security and pension income.
"""

import pytest

from hplan.core.engine.income import (
    benefit_income,
    earner_benefits,
    monthly_income,
    pension_start_year,
)


def income_with(**earner):
    return {
        "earners": {"sam": {"annual_salary": 0, **earner}},
        "work_status": {2026: {"sam": 1}, 2027: {"sam": 0.5}, 2028: {"sam": 0}},
    }


class TestMonthlyIncome:
    """Salaries and bonuses."""

    def test_salary(self):
        """Monthly salary is a twelfth of the annual salary."""
        income = income_with(annual_salary=24000)
        assert monthly_income(income, income["work_status"], 2026, 3) == pytest.approx(2000)

    def test_part_time(self):
        """Work-status fractions scale the salary."""
        income = income_with(annual_salary=24000)
        assert monthly_income(income, income["work_status"], 2027, 3) == pytest.approx(1000)


class TestPensionStartYear:
    """Pensions begin in the first year without work."""

    def test_first_zero_year(self):
        """The earliest year with status 0 wins."""
        assert pension_start_year({"2030": {"sam": 0}, 2028: {"sam": 0}, 2027: {"sam": 1}}, "sam") == 2028

    def test_never_retires(self):
        """Missing earners and non-zero statuses never start a pension."""
        assert pension_start_year({2026: {"sam": 1}, 2027: {"alex": 0}}, "sam") is None
        assert pension_start_year({}, "sam") is None


class TestEarnerBenefits:
    """Benefit terms parsed from the scenario's earners."""

    def test_only_configured_earners(self):
        """Earners without benefits are skipped."""
        income = {"earners": {"alex": {"annual_salary": 1}, "sam": {"pension": {"monthly_amount": 10}}}}
        assert [terms.earner for terms in earner_benefits(income)] == ["sam"]

    def test_defaults(self):
        """Start age defaults to 70; birth year falls back to the household's."""
        (terms,) = earner_benefits(income_with(social_security={"monthly_amount": "1,000"}), 1960)
        assert terms.social_security_age == 70
        assert terms.social_security_monthly == 1000
        assert terms.birth_year == 1960
        assert terms.birth_month == 1
        assert terms.label == "Sam"

    def test_social_security_proration(self):
        """The start-age year pays for the months after the birth month."""
        (terms,) = earner_benefits(income_with(
            birth_year=1956, birth_month=4,
            social_security={"start_age": 70, "monthly_amount": 1200},
        ))
        assert terms.social_security(2025, 1.0) == 0
        assert terms.social_security(2026, 1.0) == pytest.approx(800)
        assert terms.social_security(2027, 1.0) == pytest.approx(1200)
        assert terms.social_security(2027, 1.1) == pytest.approx(1320)

    def test_unknown_birth_year(self):
        """Social Security never starts without a birth year."""
        (terms,) = earner_benefits(income_with(social_security={"monthly_amount": 1000}))
        assert terms.social_security(2090, 1.0) == 0
        assert not terms.social_security_started(2090)

    def test_pension(self):
        """Pensions start in the first zero-status year and inflate only when adjusted."""
        (flat,) = earner_benefits(income_with(pension={"monthly_amount": 500}))
        (indexed,) = earner_benefits(income_with(pension={"monthly_amount": 500, "inflation_adjusted": True}))

        assert flat.pension_start_year == 2028
        assert flat.pension(2027, 1.2) == 0
        assert flat.pension(2028, 1.2) == 500
        assert indexed.pension(2028, 1.2) == pytest.approx(600)


class TestBenefitIncome:
    """Monthly benefit totals and start events."""

    def test_start_events_once(self):
        """Each benefit reports its start until it is recorded as started."""
        benefits = earner_benefits(income_with(
            birth_year=1958,
            social_security={"start_age": 70, "monthly_amount": 100},
            pension={"monthly_amount": 50},
        ))

        total, started = benefit_income(benefits, frozenset(), 2028, 1.0)
        assert total == pytest.approx(100 * 11 / 12 + 50)
        assert started == {
            "social_security:sam": "Sam Social Security Started",
            "pension:sam": "Sam Pension Started",
        }

        total, started = benefit_income(benefits, frozenset(started), 2029, 1.0)
        assert total == pytest.approx(150)
        assert started == {}
