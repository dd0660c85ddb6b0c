"""
Simulation state records for hplan.

The month loop threads one immutable ``SimulationState`` through a fold:
every step builds a new record with ``dataclasses.replace`` instead of
mutating running balances.
"""

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional

from hplan.core.constants import BUCKET_LABELS

# Drawdown order of the cash-flow waterfall
WATERFALL_BUCKETS = tuple(BUCKET_LABELS)


@dataclass(frozen=True)
class ReverseMortgage:
    """Reverse-mortgage liability, held as a positive magnitude."""
    balance: float = 0.0
    active: bool = False
    start_year: Optional[int] = None

    def draw(self, amount: float, year: int) -> 'ReverseMortgage':
        return ReverseMortgage(
            balance=self.balance + amount,
            active=True,
            start_year=self.start_year if self.active else year,
        )

    def accrue(self, annual_rate: float) -> 'ReverseMortgage':
        if not self.active:
            return self
        return replace(self, balance=self.balance * (1 + annual_rate / 12))


@dataclass(frozen=True)
class SimulationState:
    """Running balances at the end of a month."""
    liquid_cash: float = 0.0
    inherited_balance: float = 0.0
    retirement_balance: float = 0.0
    reverse_mortgage: ReverseMortgage = field(default_factory=ReverseMortgage)
    sold_properties: FrozenSet[str] = frozenset()
    closed_loans: FrozenSet[str] = frozenset()
    started_benefits: FrozenSet[str] = frozenset()

    @property
    def financial_assets(self) -> float:
        return self.liquid_cash + self.inherited_balance + self.retirement_balance

    @property
    def net_worth(self) -> float:
        """Financial assets less the reverse mortgage; property values are not included."""
        return self.financial_assets - self.reverse_mortgage.balance
