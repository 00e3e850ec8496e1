"""Deterministic building scores and cross-property rankings.

Rankings sort descending by the chosen priority and break ties by
ascending building id, so the order never depends on input order.
"""

from __future__ import annotations

from typing import Iterable

from buildings.schema import SCORE_COMPONENTS, BuildingRecord

PRIORITIES: tuple[str, ...] = SCORE_COMPONENTS + ("overall",)


def overall_score(record: BuildingRecord) -> float:
    """Mean of the five component scores, one decimal, rounded half-up."""
    return record.scores.overall


def check_priority(priority: str) -> str:
    if priority not in PRIORITIES:
        raise ValueError(
            f"Unknown priority {priority!r}; expected one of {', '.join(PRIORITIES)}"
        )
    return priority


def priority_score(record: BuildingRecord, priority: str) -> float:
    check_priority(priority)
    if priority == "overall":
        return overall_score(record)
    return float(getattr(record.scores, priority))


def compare(records: Iterable[BuildingRecord], priority: str = "overall") -> list[tuple[str, float]]:
    """Rank records by ``priority``: [(id, score), ...] best first."""
    check_priority(priority)
    scored = [(record.id, priority_score(record, priority)) for record in records]
    return sorted(scored, key=lambda item: (-item[1], item[0]))


def score_breakdown(record: BuildingRecord) -> dict[str, float]:
    """All six dimensions for one building, in chart order."""
    return {priority: priority_score(record, priority) for priority in PRIORITIES}


def rank_all(records: Iterable[BuildingRecord]) -> dict[str, list[tuple[str, float]]]:
    """Ranked lists for every priority, keyed by priority."""
    records = list(records)
    return {priority: compare(records, priority) for priority in PRIORITIES}
