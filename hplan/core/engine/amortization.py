"""
Amortization calculator for hplan.

Produces month-by-month schedules to payoff for fixed-rate and revolving
loans, applying a sparse map of extra-principal payments keyed by
``YYYY-MM``. The calculators are total: bad numbers degrade to an empty or
truncated schedule instead of raising, and every loop stops after
MAX_AMORTIZATION_MONTHS rows.
"""

import copy
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import pandas as pd
from dateutil.relativedelta import relativedelta

from hplan.core.constants import MAX_AMORTIZATION_MONTHS, PAYOFF_TOLERANCE
from hplan.core.models.loan import Loan, LoanRevolving, loan_from_dict
from hplan.utils.date_utils import parse_date
from hplan.utils.rate_utils import safe_num
from hplan.utils.error_utils import error_handler, logger, ScenarioShapeError

LoanInput = Union[Loan, Dict[str, Any]]


def _run_schedule(
    balance: float,
    start_date: pd.Timestamp,
    monthly_rate: float,
    extra_payments: Optional[Mapping[str, Any]],
    base_payment: Callable[[float], float],
    loan_id: str,
) -> List[Dict[str, Any]]:
    """Shared amortization loop; ``base_payment`` maps interest due to the minimum payment."""
    extra_payments = extra_payments or {}
    schedule = []
    current_date = start_date

    while balance > PAYOFF_TOLERANCE and len(schedule) < MAX_AMORTIZATION_MONTHS:
        key = current_date.strftime("%Y-%m")

        interest = balance * monthly_rate
        extra = safe_num(extra_payments.get(key))
        total_payment = base_payment(interest) + extra

        # Final month: never pay more than what is owed
        if total_payment > balance + interest:
            total_payment = balance + interest

        principal = total_payment - interest
        beginning_balance = balance
        balance -= principal
        paid_off = balance <= PAYOFF_TOLERANCE

        schedule.append({
            "date": key,
            "display_date": current_date.strftime("%b %Y"),
            "beginning_balance": beginning_balance,
            "payment": total_payment,
            "principal": principal,
            "interest": interest,
            "extra_applied": extra,
            "ending_balance": 0.0 if paid_off else balance,
            "is_payoff": paid_off,
        })

        current_date += relativedelta(months=1)

    if balance > PAYOFF_TOLERANCE and len(schedule) >= MAX_AMORTIZATION_MONTHS:
        logger.warning(
            f"Loan {loan_id}: schedule truncated at {MAX_AMORTIZATION_MONTHS} months "
            f"with {balance:,.2f} outstanding"
        )
    return schedule


def _summarize(schedule: List[Dict[str, Any]]) -> Dict[str, Any]:
    last = schedule[-1] if schedule else None
    return {
        "total_interest": sum(row["interest"] for row in schedule),
        "payoff_date": last["date"] if last else None,
        "total_months": len(schedule),
        "final_payment": last["payment"] if last else None,
    }


@error_handler
def calculate_fixed_loan(loan: LoanInput, extra_payments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Generate the month-by-month schedule of a fixed-rate loan.

    Each month: interest = balance x rate/12; payment = scheduled payment plus
    the extra for that month, clamped to balance + interest; the remainder of
    the payment after interest reduces the balance. Iteration stops once the
    balance is within PAYOFF_TOLERANCE of zero or after 600 months.

    Args:
        loan: LoanFixed (or scenario loan dict) with principal, rate, payment, start_date
        extra_payments: Sparse ``{"YYYY-MM": amount}`` map of extra principal

    Returns:
        ``{"schedule": [row, ...], "summary": {...}}``; a principal <= 0 gives
        an empty schedule
    """
    loan = loan_from_dict(loan)
    if loan.start_date is None:
        raise ScenarioShapeError(f"Fixed loan '{loan.id}' requires a start_date")

    scheduled = loan.scheduled_payment()
    schedule = _run_schedule(
        loan.opening_balance,
        loan.start_date,
        loan.monthly_rate,
        extra_payments,
        lambda interest: scheduled,
        loan.id,
    )
    return {"schedule": schedule, "summary": _summarize(schedule)}


@error_handler
def calculate_revolving_loan(loan: LoanInput, extra_payments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Generate the paydown schedule of a revolving credit line.

    The minimum payment is ``max(planned payment, interest due)``, so the
    balance never grows. Without a start date the schedule begins in the
    current month, which makes the result depend on the wall clock; callers
    needing reproducible output must supply one.

    Args:
        loan: LoanRevolving (or scenario loan dict) with balance, rate, payment
        extra_payments: Sparse ``{"YYYY-MM": amount}`` map of extra principal

    Returns:
        ``{"schedule": [row, ...], "summary": {...}}``
    """
    loan = loan_from_dict(loan)
    start_date = loan.start_date
    if start_date is None:
        start_date = parse_date(pd.Timestamp.now())
        logger.warning(f"Revolving loan {loan.id} has no start_date, starting at {start_date:%Y-%m}")

    planned = loan.scheduled_payment()
    schedule = _run_schedule(
        loan.opening_balance,
        start_date,
        loan.monthly_rate,
        extra_payments,
        lambda interest: max(planned, interest),
        loan.id,
    )
    return {"schedule": schedule, "summary": _summarize(schedule)}


@error_handler
def amortize(
    loan: LoanInput,
    strategy_id: Optional[str] = None,
    default_start: Optional[pd.Timestamp] = None,
) -> Dict[str, Any]:
    """
    Schedule a loan with the extra payments of one of its strategies.

    Dispatches on the loan variant; defaults to the loan's active strategy.
    A loan without a start date begins at ``default_start`` when one is given;
    the caller's loan object is left untouched.
    """
    loan = loan_from_dict(loan)
    if loan.start_date is None and default_start is not None:
        loan = copy.copy(loan)
        loan.start_date = parse_date(default_start)
    extra = loan.extra_payments(strategy_id)
    if isinstance(loan, LoanRevolving):
        return calculate_revolving_loan(loan, extra)
    return calculate_fixed_loan(loan, extra)


def balances_by_month(result: Dict[str, Any]) -> Dict[str, float]:
    """Index a schedule's ending balances by month-key for O(1) lookups."""
    return {row["date"]: row["ending_balance"] for row in result["schedule"]}


@error_handler
def schedule_to_frame(result: Dict[str, Any]) -> pd.DataFrame:
    """
    Convert a schedule result to a DataFrame with one row per month.

    Returns:
        DataFrame with columns: date, beginning_balance, payment, principal,
        interest, extra_applied, ending_balance, is_payoff
    """
    columns = [
        "date", "beginning_balance", "payment", "principal",
        "interest", "extra_applied", "ending_balance", "is_payoff",
    ]
    df = pd.DataFrame(result["schedule"], columns=columns + ["display_date"])[columns]
    df["date"] = pd.to_datetime(df["date"], format="%Y-%m")
    return df
