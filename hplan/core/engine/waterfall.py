"""
Cash-flow waterfall for hplan.

A monthly deficit is drawn from the buckets in a fixed priority order:
liquid cash, then the inherited IRA, then retirement. Whatever the three
buckets cannot cover is borrowed against the reverse mortgage, which
activates on first use. A surplus goes entirely to liquid cash.
"""

from dataclasses import replace
from typing import Dict, List, Tuple

from hplan.core.constants import BUCKET_LABELS, EVENT_REVERSE_MORTGAGE_ACTIVATED
from hplan.core.engine.state import SimulationState, WATERFALL_BUCKETS
from hplan.utils.error_utils import logger

Event = Dict[str, str]


def deposit_surplus(state: SimulationState, surplus: float) -> SimulationState:
    """Add a non-negative net cash flow to liquid cash."""
    if surplus <= 0:
        return state
    return replace(state, liquid_cash=state.liquid_cash + surplus)


def withdraw(state: SimulationState, bucket: str, amount: float) -> Tuple[SimulationState, float]:
    """
    Take up to ``amount`` from one bucket.

    Returns:
        Tuple of (new state, the part of ``amount`` the bucket could not cover)
    """
    balance = getattr(state, bucket)
    taken = min(max(balance, 0.0), amount)
    return replace(state, **{bucket: balance - taken}), amount - taken


def cover_deficit(
    state: SimulationState,
    deficit: float,
    date: str,
    year: int,
) -> Tuple[SimulationState, List[Event]]:
    """
    Draw ``deficit`` from the buckets in waterfall order.

    A bucket drained from a positive balance to exactly zero emits
    ``"<Bucket> Depleted"``. Any residual need is added to the reverse
    mortgage; ``"Reverse Mortgage Activated"`` is emitted only on the draw
    that activates it.

    Args:
        state: State before the draw
        deficit: Positive amount to fund
        date: Event date (``YYYY-MM-DD``)
        year: Calendar year, recorded as the reverse mortgage start year

    Returns:
        Tuple of (new state, events)
    """
    events: List[Event] = []
    needed = deficit
    updates = {}

    for bucket in WATERFALL_BUCKETS:
        if needed <= 0:
            break
        balance = getattr(state, bucket)
        if balance <= 0:
            continue
        if balance > needed:
            updates[bucket] = balance - needed
            needed = 0.0
        else:
            updates[bucket] = 0.0
            needed -= balance
            events.append({"date": date, "text": f"{BUCKET_LABELS[bucket]} Depleted"})

    reverse_mortgage = state.reverse_mortgage
    if needed > 0:
        if not reverse_mortgage.active:
            events.append({"date": date, "text": EVENT_REVERSE_MORTGAGE_ACTIVATED})
        reverse_mortgage = reverse_mortgage.draw(needed, year)

    for event in events:
        logger.debug(f"{event['date']}: {event['text']}")
    return replace(state, reverse_mortgage=reverse_mortgage, **updates), events


def apply_net_cash_flow(
    state: SimulationState,
    net_cash_flow: float,
    date: str,
    year: int,
) -> Tuple[SimulationState, List[Event]]:
    """Route a month's net cash flow: surplus to liquid cash, deficit through the waterfall."""
    if net_cash_flow >= 0:
        return deposit_surplus(state, net_cash_flow), []
    return cover_deficit(state, -net_cash_flow, date, year)
