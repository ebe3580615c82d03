"""Open/closed resolution for polls.

A poll is CLOSED as soon as any of its triggers fires: the manual close flag,
a passed expiry, or the total vote cap being reached. Resolution never writes
anything back; the manual flag is only set by the explicit close operation.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class PollStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ClosureReason(str, Enum):
    MANUAL = "MANUAL"
    EXPIRED = "EXPIRED"
    MAX_VOTES = "MAX_VOTES"


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp for storage in the naive-UTC DateTime columns."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def closure_reason(poll, total_votes: int, now: Optional[datetime] = None) -> Optional[ClosureReason]:
    """First trigger that closes the poll, or None while it is open.

    ``poll`` only needs ``closed_manually``, ``expires_at`` and ``max_votes``.
    ``total_votes`` must come from a fresh count of the poll's votes.
    """
    if poll.closed_manually:
        return ClosureReason.MANUAL

    if poll.expires_at is not None:
        current = as_utc(now) if now is not None else datetime.now(timezone.utc)
        if current > as_utc(poll.expires_at):
            return ClosureReason.EXPIRED

    # A cap of zero or less means no cap
    if poll.max_votes and poll.max_votes > 0 and total_votes >= poll.max_votes:
        return ClosureReason.MAX_VOTES

    return None


def resolve_status(poll, total_votes: int, now: Optional[datetime] = None) -> PollStatus:
    if closure_reason(poll, total_votes, now) is None:
        return PollStatus.OPEN
    return PollStatus.CLOSED
