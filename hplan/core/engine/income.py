"""
Household income for hplan.

Earned income comes from the active income profile: salaries and bonuses
scaled by each earner's work-status fraction for the year. Benefits are
personal facts read from the scenario's own earners:

    social_security: {"start_age": 70, "monthly_amount": ...}
        Paid from the year the earner reaches ``start_age``; that first year
        is prorated by birth month. Inflation-adjusted.
    pension: {"monthly_amount": ..., "inflation_adjusted": bool}
        Paid from the first year whose work status for the earner is 0.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from hplan.utils.rate_utils import safe_num, safe_int

DEFAULT_SOCIAL_SECURITY_AGE = 70


def _year_status(work_status: Mapping[Any, Any], year: int) -> Mapping[str, Any]:
    return work_status.get(year, work_status.get(str(year))) or {}


def monthly_income(income_data: Mapping[str, Any], work_status: Mapping[Any, Any], year: int, month: int) -> float:
    """
    Salaries plus bonuses for one month.

    Each earner's ``annual_salary / 12`` and any bonus paid in ``month`` are
    scaled by that earner's work-status fraction for ``year`` (0.0 when the
    year or earner is missing).
    """
    year_status = _year_status(work_status, year)
    total = 0.0
    for name, earner in (income_data.get("earners") or {}).items():
        fraction = safe_num(year_status.get(name), 0.0)
        if not earner or fraction == 0:
            continue
        total += safe_num(earner.get("annual_salary")) / 12 * fraction
        bonus = earner.get("bonus") or {}
        if safe_int(bonus.get("month")) == month:
            total += safe_num(bonus.get("amount")) * fraction
    return total


def pension_start_year(work_status: Mapping[Any, Any], earner: str) -> Optional[int]:
    """First year whose work status for ``earner`` is explicitly 0, or None."""
    for year in sorted(safe_int(key) for key in work_status if safe_int(key) is not None):
        status = _year_status(work_status, year)
        if status.get(earner) is not None and safe_num(status[earner], 1.0) == 0:
            return year
    return None


@dataclass(frozen=True)
class EarnerBenefits:
    """Social Security and pension terms of one earner."""
    earner: str
    label: str
    birth_year: Optional[int]
    birth_month: int
    social_security_age: int
    social_security_monthly: float
    has_social_security: bool
    pension_monthly: float
    pension_inflation_adjusted: bool
    pension_start_year: Optional[int]

    @property
    def social_security_key(self) -> str:
        return f"social_security:{self.earner}"

    @property
    def pension_key(self) -> str:
        return f"pension:{self.earner}"

    def social_security(self, year: int, inflation_mult: float) -> float:
        """Monthly benefit in ``year``; the start year is prorated by birth month."""
        if not self.has_social_security or self.birth_year is None:
            return 0.0
        age = year - self.birth_year
        if age < self.social_security_age:
            return 0.0
        amount = self.social_security_monthly * inflation_mult
        if age == self.social_security_age:
            amount *= max(0, 12 - self.birth_month) / 12
        return amount

    def social_security_started(self, year: int) -> bool:
        return (
            self.has_social_security
            and self.birth_year is not None
            and year - self.birth_year >= self.social_security_age
        )

    def pension(self, year: int, inflation_mult: float) -> float:
        """Monthly pension in ``year``."""
        if self.pension_start_year is None or year < self.pension_start_year:
            return 0.0
        if self.pension_inflation_adjusted:
            return self.pension_monthly * inflation_mult
        return self.pension_monthly


def earner_benefits(
    income: Mapping[str, Any],
    default_birth_year: Optional[int] = None,
) -> Tuple[EarnerBenefits, ...]:
    """Benefit terms of every earner that has Social Security or a pension configured."""
    work_status = income.get("work_status") or {}
    benefits = []
    for name, earner in (income.get("earners") or {}).items():
        earner = earner or {}
        social_security = earner.get("social_security")
        pension = earner.get("pension")
        if not social_security and not pension:
            continue
        social_security = social_security or {}
        pension = pension or {}
        birth_month = safe_int(earner.get("birth_month"), 1)
        benefits.append(EarnerBenefits(
            earner=name,
            label=earner.get("name") or name.title(),
            birth_year=safe_int(earner.get("birth_year"), default_birth_year),
            birth_month=min(max(birth_month, 1), 12),
            social_security_age=safe_int(social_security.get("start_age"), DEFAULT_SOCIAL_SECURITY_AGE),
            social_security_monthly=safe_num(social_security.get("monthly_amount")),
            has_social_security=bool(social_security),
            pension_monthly=safe_num(pension.get("monthly_amount")),
            pension_inflation_adjusted=bool(pension.get("inflation_adjusted", False)),
            pension_start_year=pension_start_year(work_status, name) if pension else None,
        ))
    return tuple(benefits)


def benefit_income(
    benefits: Tuple[EarnerBenefits, ...],
    started: FrozenSet[str],
    year: int,
    inflation_mult: float,
) -> Tuple[float, Dict[str, str]]:
    """
    Benefits paid in one month.

    Returns:
        Tuple of (total, ``{started_key: event text}`` for benefits that begin
        this month and are not in ``started``)
    """
    total = 0.0
    newly_started: Dict[str, str] = {}
    for terms in benefits:
        total += terms.social_security(year, inflation_mult)
        if terms.social_security_started(year) and terms.social_security_key not in started:
            newly_started[terms.social_security_key] = f"{terms.label} Social Security Started"

        pension = terms.pension(year, inflation_mult)
        total += pension
        if (
            terms.pension_start_year is not None
            and year >= terms.pension_start_year
            and terms.pension_key not in started
        ):
            newly_started[terms.pension_key] = f"{terms.label} Pension Started"
    return total, newly_started
