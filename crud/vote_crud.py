from typing import Optional
from sqlalchemy import select, insert, func, literal, Integer
from sqlalchemy.ext.asyncio import AsyncSession
from models import Vote


class VoteCrud:

    def __init__(self):
        self.table = Vote

    async def create_vote(self, session: AsyncSession, poll_id: int, nomination_id: int, score: int) -> Vote:
        stmt = insert(Vote).values(
            poll_id=poll_id,
            nomination_id=nomination_id,
            score=score
        ).returning(Vote)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def create_vote_within_cap(
        self,
        session: AsyncSession,
        poll_id: int,
        nomination_id: int,
        score: int,
        max_votes: Optional[int]
    ) -> Optional[Vote]:
        """Insert a vote only while the poll holds fewer than ``max_votes`` votes.

        Count and insert run as one INSERT ... SELECT statement, so concurrent
        writers cannot both slip under the cap. Returns None when the cap is
        already reached.
        """
        if not max_votes or max_votes <= 0:
            return await self.create_vote(session, poll_id, nomination_id, score)

        current_votes = (
            select(func.count(Vote.id))
            .where(Vote.poll_id == poll_id)
            .correlate(None)
            .scalar_subquery()
        )
        source = select(
            literal(poll_id, Integer),
            literal(nomination_id, Integer),
            literal(score, Integer),
        ).where(current_votes < max_votes)

        stmt = (
            insert(Vote)
            .from_select(["poll_id", "nomination_id", "score"], source)
            .returning(Vote)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def count_votes_for_poll(self, session: AsyncSession, poll_id: int) -> int:
        stmt = select(func.count(Vote.id)).where(Vote.poll_id == poll_id)
        result = await session.execute(stmt)
        return result.scalar_one()

    async def count_votes_for_nomination(self, session: AsyncSession, nomination_id: int) -> int:
        stmt = select(func.count(Vote.id)).where(Vote.nomination_id == nomination_id)
        result = await session.execute(stmt)
        return result.scalar_one()


vote_crud = VoteCrud()
