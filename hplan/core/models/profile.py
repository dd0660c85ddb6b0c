"""
Profile resolution for hplan.

A profile is a named, reusable bundle of income or expense configuration.
Scenarios attach profiles through a profile sequence; this module owns the
single "last active entry not after the date wins" rule shared by the
engine and by every collaborator that needs the effective profile.
"""

from typing import Dict, Any, Iterable, Optional

from hplan.utils.date_utils import DateLike, parse_date, parse_optional_date


def resolve_active_profile_id(sequence: Optional[Iterable[Dict[str, Any]]], date: DateLike) -> Optional[str]:
    """
    Return the profile id effective on ``date``.

    Among entries with ``is_active`` set, the one with the latest
    ``start_date`` not after ``date`` wins. Entries sharing a start date are
    resolved in favour of the later one in the sequence.

    Args:
        sequence: Ordered entries ``{"profile_id", "start_date", "is_active"}``
        date: Simulation date

    Returns:
        The winning profile id, or None when no entry is in effect

    Examples:
        >>> seq = [{"profile_id": "A", "start_date": "2026-01", "is_active": True},
        ...        {"profile_id": "B", "start_date": "2027-06", "is_active": True}]
        >>> resolve_active_profile_id(seq, "2027-01-01")
        'A'
    """
    if not sequence:
        return None

    target = parse_date(date, normalize_to_month_start=False)
    winner = None
    winner_start = None
    for entry in sequence:
        if not entry.get("is_active", False):
            continue
        start = parse_optional_date(entry.get("start_date"), "profile_sequence start_date", normalize=False)
        if start is None or start > target:
            continue
        if winner_start is None or start >= winner_start:
            winner, winner_start = entry.get("profile_id"), start
    return winner


def resolve_profile_data(
    sequence: Optional[Iterable[Dict[str, Any]]],
    date: DateLike,
    profiles: Optional[Dict[str, Dict[str, Any]]],
    fallback: Optional[Dict[str, Any]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Return the configuration bundle effective on ``date``.

    Falls back to ``fallback`` (the scenario's inline data) when no entry is
    in effect or the winning id is missing from the catalog.
    """
    profile_id = resolve_active_profile_id(sequence, date)
    if profile_id is None or not profiles:
        return fallback
    profile = profiles.get(profile_id)
    if not profile or profile.get("data") is None:
        return fallback
    return profile["data"]
