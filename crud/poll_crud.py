from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy import insert, update, select, delete, func, Select
from sqlalchemy.ext.asyncio import AsyncSession
from models import Poll, Nomination, Vote
from schemas.poll_schema import PollSchema
from services.poll_status import PollStatus, closure_reason


class PollCrud:
    def __init__(self):
        self.table = Poll

    async def create_poll(self, session: AsyncSession, poll_data: dict) -> Poll:
        stmt = insert(Poll).values(**poll_data).returning(Poll)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_poll_by_id(self, session: AsyncSession, poll_id: int, for_update: bool = False) -> Optional[Poll]:
        stmt = select(Poll).where(Poll.id == poll_id)
        if for_update:
            # Serializes concurrent vote inserts against the same poll
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    def list_polls_query(self) -> Select:
        total_votes = (
            select(func.count(Vote.id))
            .where(Vote.poll_id == Poll.id)
            .correlate(Poll)
            .scalar_subquery()
            .label("total_votes")
        )
        return select(Poll, total_votes).order_by(Poll.created_at.desc(), Poll.id.desc())

    async def close_poll(self, session: AsyncSession, poll_id: int) -> Optional[Poll]:
        stmt = update(Poll).where(Poll.id == poll_id).values(closed_manually=True).returning(Poll)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def delete_poll(self, session: AsyncSession, poll_id: int) -> bool:
        """Delete a poll with its votes and nominations. Returns False if it did not exist."""
        await session.execute(delete(Vote).where(Vote.poll_id == poll_id))
        await session.execute(delete(Nomination).where(Nomination.poll_id == poll_id))
        result = await session.execute(delete(Poll).where(Poll.id == poll_id).returning(Poll.id))
        return result.scalar_one_or_none() is not None

    async def build_poll_response_data(
        self,
        session: AsyncSession,
        poll: Poll,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        from crud.nomination_crud import nomination_crud as NominationCrud
        from crud.vote_crud import vote_crud as VoteCrud

        total_votes = await VoteCrud.count_votes_for_poll(session, poll.id)
        reason = closure_reason(poll, total_votes, now)
        status = PollStatus.OPEN if reason is None else PollStatus.CLOSED

        # Scores stay hidden until the poll is closed
        if status is PollStatus.CLOSED:
            ranked = await NominationCrud.list_nominations_with_stats(session, poll.id)
            nominations = [nomination_with_stats(result) for result in ranked]
        else:
            tallies = await NominationCrud.list_nominations(session, poll.id)
            nominations = [plain_nomination(tally) for tally in tallies]

        response_dict = PollSchema.model_validate(poll).model_dump()
        response_dict.update({
            "status": status,
            "closure_reason": reason,
            "total_votes": total_votes,
            "nominations": nominations,
        })
        return response_dict


def plain_nomination(tally) -> Dict[str, Any]:
    return {
        "id": tally.id,
        "poll_id": tally.poll_id,
        "name": tally.name,
        "manager": tally.manager,
        "created_at": tally.created_at,
        "vote_count": tally.vote_count,
    }


def nomination_with_stats(result) -> Dict[str, Any]:
    nomination = plain_nomination(result)
    nomination["stats"] = {
        "total_score": result.total_score,
        "vote_count": result.vote_count,
        "average": result.average,
    }
    return nomination


poll_crud = PollCrud()
