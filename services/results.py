from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List


@dataclass(frozen=True)
class NominationTally:
    """Per-nomination rollup as returned by the grouped vote query."""
    id: int
    poll_id: int
    name: str
    manager: str
    created_at: datetime
    vote_count: int
    total_score: int


@dataclass(frozen=True)
class NominationResult:
    id: int
    poll_id: int
    name: str
    manager: str
    created_at: datetime
    vote_count: int
    total_score: int
    average: float


def average_score(total_score: int, vote_count: int) -> float:
    if vote_count <= 0:
        return 0.0
    return total_score / vote_count


def rank_nominations(tallies: Iterable[NominationTally]) -> List[NominationResult]:
    """Rank by average, then total score (both descending), then name.

    Sorting uses the unrounded average; only the returned value is rounded to
    two decimals. Names compare by code point so equal stats always resolve
    to the same order.
    """
    scored = [(tally, average_score(tally.total_score, tally.vote_count)) for tally in tallies]
    scored.sort(key=lambda row: (-row[1], -row[0].total_score, row[0].name))

    return [
        NominationResult(
            id=tally.id,
            poll_id=tally.poll_id,
            name=tally.name,
            manager=tally.manager,
            created_at=tally.created_at,
            vote_count=tally.vote_count,
            total_score=tally.total_score,
            average=round(average, 2),
        )
        for tally, average in scored
    ]


def order_by_votes(tallies: Iterable[NominationTally]) -> List[NominationTally]:
    """Open-poll listing: most votes first, then name. Carries no scores out."""
    return sorted(tallies, key=lambda tally: (-tally.vote_count, tally.name))
