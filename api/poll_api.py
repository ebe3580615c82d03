import logging

from fastapi import HTTPException, APIRouter
from fastapi_pagination import Page
from fastapi_pagination.ext.sqlalchemy import apaginate
from starlette import status

from core.depends import AsyncDBSession
from core.errors import internal_error
from core.settings import settings
from schemas.poll_schema import (
    CreatePollRequestSchema,
    PollSchema,
    PollListItemSchema,
    PollResponseSchema,
    PollResultsResponseSchema,
    PollDeleteResponseSchema,
)
from schemas.vote_schema import VoteRequestSchema, VoteResponseSchema
from services.poll_status import ClosureReason, PollStatus, closure_reason, resolve_status, to_naive_utc
from crud.poll_crud import poll_crud as PollCrud, nomination_with_stats
from crud.nomination_crud import nomination_crud as NominationCrud
from crud.vote_crud import vote_crud as VoteCrud


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/poll",
)

CLOSED_DETAILS = {
    ClosureReason.MANUAL: "Poll is closed",
    ClosureReason.EXPIRED: "Poll is closed (expired)",
    ClosureReason.MAX_VOTES: "Poll is closed (max votes reached)",
}


def resolve_vote_score(score):
    if not settings.SCORED_VOTING:
        return settings.MIN_SCORE

    if score is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Score is required")

    if score < settings.MIN_SCORE or score > settings.MAX_SCORE:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Score must be between {settings.MIN_SCORE} and {settings.MAX_SCORE}"
        )
    return score


def poll_list_items(rows):
    items = []
    for poll, total_votes in rows:
        item = PollSchema.model_validate(poll).model_dump()
        item["status"] = resolve_status(poll, total_votes)
        item["total_votes"] = total_votes
        items.append(item)
    return items


@router.post("/", response_model=PollResponseSchema, status_code=status.HTTP_201_CREATED)
async def create_poll(
    session: AsyncDBSession,
    poll: CreatePollRequestSchema,
):
    try:
        async with session.begin():
            poll_data = {
                "title": poll.title,
                # A cap of zero or less is stored as no cap
                "max_votes": poll.max_votes if poll.max_votes and poll.max_votes > 0 else None,
                "expires_at": to_naive_utc(poll.expires_at),
                "closed_manually": False,
            }
            created_poll = await PollCrud.create_poll(session, poll_data)

            nominations_data = [
                {
                    "poll_id": created_poll.id,
                    "name": nomination.name,
                    "manager": nomination.manager,
                }
                for nomination in poll.nominations
            ]
            await NominationCrud.create_nominations(session, nominations_data)

            response_data = await PollCrud.build_poll_response_data(session, created_poll)

        logger.info(f"Created poll {created_poll.id} with {len(nominations_data)} nominations")
        return PollResponseSchema.model_validate(response_data)

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        raise internal_error("Failed to create poll", e)


@router.get("/", response_model=Page[PollListItemSchema])
async def get_all_polls(
    session: AsyncDBSession,
):
    try:
        async with session.begin():
            return await apaginate(session, PollCrud.list_polls_query(), transformer=poll_list_items)

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        raise internal_error("Failed to fetch polls", e)


@router.get("/{poll_id}", response_model=PollResponseSchema)
async def get_poll(
    session: AsyncDBSession,
    poll_id: int,
):
    try:
        async with session.begin():
            existing_poll = await PollCrud.get_poll_by_id(session, poll_id)
            if not existing_poll:
                raise HTTPException(status_code=404, detail="Poll not found")

            response_data = await PollCrud.build_poll_response_data(session, existing_poll)

        return PollResponseSchema.model_validate(response_data)

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        raise internal_error("Failed to fetch poll", e)


@router.get("/{poll_id}/results", response_model=PollResultsResponseSchema)
async def get_poll_results(
    session: AsyncDBSession,
    poll_id: int,
):
    """Ranked results, only available once the poll is closed."""
    try:
        async with session.begin():
            existing_poll = await PollCrud.get_poll_by_id(session, poll_id)
            if not existing_poll:
                raise HTTPException(status_code=404, detail="Poll not found")

            total_votes = await VoteCrud.count_votes_for_poll(session, existing_poll.id)
            if resolve_status(existing_poll, total_votes) is PollStatus.OPEN:
                raise HTTPException(
                    status_code=409,
                    detail="Results are available once the poll is closed"
                )

            ranked = await NominationCrud.list_nominations_with_stats(session, existing_poll.id)

        return PollResultsResponseSchema(
            poll_id=existing_poll.id,
            status=PollStatus.CLOSED,
            total_votes=total_votes,
            results=[nomination_with_stats(result) for result in ranked],
        )

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        raise internal_error("Failed to fetch results", e)


@router.post("/{poll_id}/close", response_model=PollResponseSchema)
async def close_poll(
    session: AsyncDBSession,
    poll_id: int,
):
    try:
        async with session.begin():
            closed_poll = await PollCrud.close_poll(session, poll_id)
            if not closed_poll:
                raise HTTPException(status_code=404, detail="Poll not found")

            response_data = await PollCrud.build_poll_response_data(session, closed_poll)

        logger.info(f"Poll {poll_id} closed manually")
        return PollResponseSchema.model_validate(response_data)

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        raise internal_error("Failed to close poll", e)


@router.delete("/{poll_id}", response_model=PollDeleteResponseSchema)
async def delete_poll(
    session: AsyncDBSession,
    poll_id: int,
):
    try:
        async with session.begin():
            deleted = await PollCrud.delete_poll(session, poll_id)
            if not deleted:
                raise HTTPException(status_code=404, detail="Poll not found")

        logger.info(f"Poll {poll_id} deleted")
        return PollDeleteResponseSchema(message="Poll deleted successfully", id=poll_id)

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        raise internal_error("Failed to delete poll", e)


@router.post("/{poll_id}/vote", response_model=VoteResponseSchema, status_code=status.HTTP_201_CREATED)
async def vote_on_poll(
    session: AsyncDBSession,
    poll_id: int,
    vote_data: VoteRequestSchema,
):
    """Record an anonymous vote for one nomination of an open poll."""
    try:
        score = resolve_vote_score(vote_data.score)

        async with session.begin():
            # Row lock serializes votes per poll on PostgreSQL, SQLite ignores it
            existing_poll = await PollCrud.get_poll_by_id(session, poll_id, for_update=True)
            if not existing_poll:
                raise HTTPException(status_code=404, detail="Poll not found")

            nomination = await NominationCrud.get_nomination_for_poll(
                session,
                existing_poll.id,
                vote_data.nomination_id
            )
            if not nomination:
                raise HTTPException(
                    status_code=404,
                    detail=f"Nomination {vote_data.nomination_id} not found for this poll"
                )

            total_votes = await VoteCrud.count_votes_for_poll(session, existing_poll.id)
            reason = closure_reason(existing_poll, total_votes)
            if reason is not None:
                logger.warning(f"Rejected vote on poll {poll_id}: {reason.value}")
                raise HTTPException(status_code=409, detail=CLOSED_DETAILS[reason])

            vote = await VoteCrud.create_vote_within_cap(
                session,
                existing_poll.id,
                nomination.id,
                score,
                existing_poll.max_votes
            )
            if vote is None:
                # Another vote filled the cap after the status check
                logger.warning(f"Rejected vote on poll {poll_id}: {ClosureReason.MAX_VOTES.value}")
                raise HTTPException(status_code=409, detail=CLOSED_DETAILS[ClosureReason.MAX_VOTES])

            response = VoteResponseSchema(
                id=vote.id,
                poll_id=vote.poll_id,
                nomination_id=vote.nomination_id,
                score=vote.score,
                created_at=vote.created_at,
                total_votes=await VoteCrud.count_votes_for_poll(session, existing_poll.id),
                nomination_votes=await VoteCrud.count_votes_for_nomination(session, nomination.id),
            )

        logger.info(f"Recorded vote {response.id} on poll {poll_id} for nomination {nomination.id}")
        return response

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        raise internal_error("Failed to record vote", e)
