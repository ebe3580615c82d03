from services.poll_status import ClosureReason, PollStatus, closure_reason, resolve_status
from services.results import NominationResult, NominationTally, order_by_votes, rank_nominations

__all__ = [
    "ClosureReason",
    "PollStatus",
    "closure_reason",
    "resolve_status",
    "NominationResult",
    "NominationTally",
    "order_by_votes",
    "rank_nominations",
]
