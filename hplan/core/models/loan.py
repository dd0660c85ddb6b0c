"""
Loan models for hplan.

Loans are a tagged union: one class per loan kind, each carrying its own
inputs. ``loan_from_dict`` dispatches on the ``type`` field of a scenario's
loan entry.

Classes:
    Loan: Common fields, strategies and scenario parsing
    LoanFixed: Fixed-rate amortizing loan (mortgage, auto loan)
    LoanRevolving: Revolving credit line (HELOC) paid down from a balance
"""

from typing import Dict, Any, Optional, Union
from datetime import datetime
import numpy_financial as npf
import pandas as pd

from hplan.core.constants import LoanType, BASE_STRATEGY_ID
from hplan.utils.date_utils import parse_optional_date, is_month_key
from hplan.utils.rate_utils import safe_num, safe_int, annual_decimal_to_monthly_decimal
from hplan.utils.error_utils import error_handler


class Loan:
    """
    Base class for all loans.

    Attributes:
        id: Unique loan identifier
        name: Display name used in event texts
        rate: Annual interest rate as decimal (0.065 = 6.5%)
        payment: Scheduled monthly payment
        start_date: First payment month (normalized to month start), or None
        active: Inactive loans are ignored by the simulation engine
        strategies: Mapping strategy id -> {"name", "extra_payments": {YYYY-MM: amount}}
        active_strategy_id: Strategy whose extra payments are applied
    """

    type: Optional[str] = None

    def __init__(
        self,
        id: str,
        rate: float,
        payment: Optional[float],
        start_date: Union[str, datetime, pd.Timestamp, None] = None,
        name: Optional[str] = None,
        active: bool = True,
        strategies: Optional[Dict[str, Dict]] = None,
        active_strategy_id: str = BASE_STRATEGY_ID,
    ):
        self.id = id
        self.name = name or id
        self.rate = safe_num(rate)
        self.payment = payment
        self.start_date = parse_optional_date(start_date, f"loan '{id}' start_date")
        self.active = bool(active)
        self.strategies = strategies or {}
        self.active_strategy_id = active_strategy_id or BASE_STRATEGY_ID

    @property
    def opening_balance(self) -> float:
        raise NotImplementedError("Subclasses must implement opening_balance")

    @property
    def monthly_rate(self) -> float:
        return annual_decimal_to_monthly_decimal(self.rate)

    def scheduled_payment(self) -> float:
        """Configured minimum monthly payment."""
        return safe_num(self.payment)

    def extra_payments(self, strategy_id: Optional[str] = None) -> Dict[str, float]:
        """
        Sparse month-key -> extra principal map for a strategy.

        Defaults to the active strategy. Unknown strategies and malformed
        month-keys contribute nothing.
        """
        strategy = self.strategies.get(strategy_id or self.active_strategy_id) or {}
        raw = strategy.get("extra_payments") or {}
        return {key: safe_num(amount) for key, amount in raw.items() if is_month_key(key)}

    @error_handler
    def get_projection(self, strategy_id: Optional[str] = None) -> pd.DataFrame:
        """
        Calculate the loan amortization schedule projection.

        Returns:
            DataFrame with columns: date, beginning_balance, payment, principal,
            interest, extra_applied, ending_balance, is_payoff
        """
        from hplan.core.engine.amortization import amortize, schedule_to_frame

        return schedule_to_frame(amortize(self, strategy_id))

    @staticmethod
    def _inputs(data: Dict[str, Any]) -> Dict[str, Any]:
        # Scenario loans nest their terms under "inputs"; flat dicts are accepted too
        return data.get("inputs") or data

    @classmethod
    def _common_kwargs(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        inputs = cls._inputs(data)
        payment = inputs.get("payment")
        return {
            "id": data.get("id", ""),
            "name": data.get("name"),
            "rate": inputs.get("rate"),
            "payment": None if payment is None else safe_num(payment),
            "start_date": inputs.get("start_date"),
            "active": data.get("active", True),
            "strategies": data.get("strategies") or {},
            "active_strategy_id": data.get("active_strategy_id") or BASE_STRATEGY_ID,
        }


class LoanFixed(Loan):
    """
    Fixed-rate amortizing loan.

    The amortization loop is payoff-driven; ``term_months`` only sizes the
    standard payment when no payment is configured.
    """

    type = LoanType.FIXED.value

    def __init__(
        self,
        id: str,
        principal: float,
        rate: float,
        payment: Optional[float],
        start_date: Union[str, datetime, pd.Timestamp, None] = None,
        term_months: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(id, rate, payment, start_date, **kwargs)
        self.principal = safe_num(principal)
        self.term_months = safe_int(term_months)
        if self.payment is None:
            self.payment = self.standard_payment()

    @property
    def opening_balance(self) -> float:
        return self.principal

    def standard_payment(self) -> float:
        """
        Level monthly payment that retires the principal over ``term_months``.

        Returns 0.0 when the term is unknown or non-positive.
        """
        if not self.term_months or self.term_months <= 0 or self.principal <= 0:
            return 0.0
        if self.rate == 0:
            return self.principal / self.term_months
        return float(-npf.pmt(self.monthly_rate, self.term_months, self.principal))

    @classmethod
    @error_handler
    def from_dict(cls, data: Dict[str, Any]) -> 'LoanFixed':
        """Deserialize a fixed loan from a scenario loan entry."""
        inputs = cls._inputs(data)
        return cls(
            principal=inputs.get("principal", inputs.get("balance")),
            term_months=inputs.get("term_months"),
            **cls._common_kwargs(data),
        )


class LoanRevolving(Loan):
    """
    Revolving credit line (HELOC).

    Purely balance-driven; the amortization floor is the interest due, so a
    planned payment below interest-only never causes negative amortization.
    """

    type = LoanType.REVOLVING.value

    def __init__(
        self,
        id: str,
        balance: float,
        rate: float,
        payment: Optional[float],
        start_date: Union[str, datetime, pd.Timestamp, None] = None,
        **kwargs,
    ):
        super().__init__(id, rate, payment, start_date, **kwargs)
        self.balance = safe_num(balance)

    @property
    def opening_balance(self) -> float:
        return self.balance

    @classmethod
    @error_handler
    def from_dict(cls, data: Dict[str, Any]) -> 'LoanRevolving':
        """Deserialize a revolving loan from a scenario loan entry."""
        inputs = cls._inputs(data)
        return cls(
            balance=inputs.get("balance", inputs.get("principal")),
            **cls._common_kwargs(data),
        )


LOAN_CLASSES = {
    LoanType.FIXED.value: LoanFixed,
    LoanType.REVOLVING.value: LoanRevolving,
}


def loan_from_dict(data: Union[Dict[str, Any], Loan]) -> Loan:
    """
    Build the loan variant matching ``data["type"]``.

    Unknown or missing types are treated as fixed-rate loans. Loan objects
    are returned unchanged.
    """
    if isinstance(data, Loan):
        return data
    loan_cls = LOAN_CLASSES.get(data.get("type") or LoanType.FIXED.value, LoanFixed)
    return loan_cls.from_dict(data)
