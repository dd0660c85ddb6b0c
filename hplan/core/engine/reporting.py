"""
Timeline roll-ups for hplan.

Convenience views over the engine's monthly timeline for collaborators that
chart or export results. Nothing here feeds back into the simulation.
"""

from typing import Any, Dict, List

import pandas as pd

from hplan.utils.error_utils import error_handler

BALANCE_COLUMNS = ["liquid", "inherited", "retirement", "reverse_mortgage", "property"]


@error_handler
def timeline_to_frame(timeline: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Flatten a timeline into a DataFrame indexed by month.

    Nested balances become ``balance_<bucket>`` columns.

    Returns:
        DataFrame with columns: year, month, income, expenses, debt_service,
        net_cash_flow, net_worth, shortfall, balance_liquid, balance_inherited,
        balance_retirement, balance_reverse_mortgage, balance_property
    """
    if not timeline:
        return pd.DataFrame(
            columns=["year", "month", "income", "expenses", "debt_service", "net_cash_flow",
                     "net_worth", "shortfall"] + [f"balance_{name}" for name in BALANCE_COLUMNS]
        )

    df = pd.json_normalize(timeline, sep="_")
    df = df.rename(columns={f"balances_{name}": f"balance_{name}" for name in BALANCE_COLUMNS})
    df["date"] = pd.to_datetime(df["date"])
    return df.set_index("date").drop(columns=["month_key"])


@error_handler
def summarize_by_year(timeline: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Annual roll-up of a monthly timeline.

    Income, expenses, debt service and net cash flow are summed per year;
    balances and net worth are taken from the year's last month.
    ``had_shortfall`` flags any month with an unfunded shortfall and
    ``reverse_mortgage_change`` is the change in the reverse-mortgage balance
    over the year.
    """
    df = timeline_to_frame(timeline)
    if df.empty:
        return pd.DataFrame()

    grouped = df.groupby("year")
    summary = grouped[["income", "expenses", "debt_service", "net_cash_flow"]].sum()
    summary["had_shortfall"] = grouped["shortfall"].max() > 0

    year_end = grouped[["net_worth"] + [f"balance_{name}" for name in BALANCE_COLUMNS]].last()
    summary = summary.join(year_end)

    previous = summary["balance_reverse_mortgage"].shift(1, fill_value=0.0)
    summary["reverse_mortgage_change"] = summary["balance_reverse_mortgage"] - previous
    return summary
