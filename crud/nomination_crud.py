from typing import List, Optional, Sequence

from sqlalchemy import insert, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models import Nomination, Vote
from services.results import NominationResult, NominationTally, order_by_votes, rank_nominations


class NominationCrud:
    def __init__(self):
        self.table = Nomination

    async def create_nomination(self, session: AsyncSession, poll_id: int, name: str, manager: str) -> Nomination:
        stmt = insert(Nomination).values(poll_id=poll_id, name=name, manager=manager).returning(Nomination)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def create_nominations(self, session: AsyncSession, nominations: List[dict]) -> Sequence[Nomination]:
        if not nominations:
            return []
        stmt = insert(Nomination).values(nominations).returning(Nomination)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_nomination_for_poll(self, session: AsyncSession, poll_id: int, nomination_id: int) -> Optional[Nomination]:
        stmt = (
            select(Nomination)
            .where(Nomination.id == nomination_id)
            .where(Nomination.poll_id == poll_id)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_nomination_tallies(self, session: AsyncSession, poll_id: int) -> List[NominationTally]:
        """Vote count and score total for every nomination of a poll, zero-vote ones included."""
        stmt = (
            select(
                Nomination.id,
                Nomination.poll_id,
                Nomination.name,
                Nomination.manager,
                Nomination.created_at,
                func.count(Vote.id).label("vote_count"),
                func.coalesce(func.sum(Vote.score), 0).label("total_score"),
            )
            .outerjoin(Vote, Vote.nomination_id == Nomination.id)
            .where(Nomination.poll_id == poll_id)
            .group_by(
                Nomination.id,
                Nomination.poll_id,
                Nomination.name,
                Nomination.manager,
                Nomination.created_at,
            )
        )
        result = await session.execute(stmt)
        return [
            NominationTally(
                id=row.id,
                poll_id=row.poll_id,
                name=row.name,
                manager=row.manager,
                created_at=row.created_at,
                vote_count=int(row.vote_count),
                total_score=int(row.total_score),
            )
            for row in result
        ]

    async def list_nominations(self, session: AsyncSession, poll_id: int) -> List[NominationTally]:
        tallies = await self.get_nomination_tallies(session, poll_id)
        return order_by_votes(tallies)

    async def list_nominations_with_stats(self, session: AsyncSession, poll_id: int) -> List[NominationResult]:
        tallies = await self.get_nomination_tallies(session, poll_id)
        return rank_nominations(tallies)


nomination_crud = NominationCrud()
