from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from services.poll_status import ClosureReason, PollStatus


class CreateNominationSchema(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(..., min_length=1, max_length=200)
    manager: str = Field(..., min_length=1, max_length=200)

class CreatePollRequestSchema(BaseModel):
    model_config = {"str_strip_whitespace": True}

    title: str = Field(..., min_length=1, max_length=300)
    nominations: List[CreateNominationSchema] = Field(..., min_length=1)
    max_votes: Optional[int] = Field(None, description="Total vote cap across all nominations, 0 or less means no cap")
    expires_at: Optional[datetime] = None


class NominationStatsSchema(BaseModel):
    total_score: int
    vote_count: int
    average: float

class NominationSchema(BaseModel):
    id: int
    poll_id: int
    name: str
    manager: str
    created_at: datetime
    vote_count: int
    stats: Optional[NominationStatsSchema] = None

    model_config = {"from_attributes": True}


class PollSchema(BaseModel):
    id: int
    title: str
    max_votes: Optional[int] = None
    expires_at: Optional[datetime] = None
    closed_manually: bool
    created_at: datetime

    model_config = {"from_attributes": True}

class PollListItemSchema(PollSchema):
    status: PollStatus
    total_votes: int

class PollResponseSchema(PollSchema):
    status: PollStatus
    closure_reason: Optional[ClosureReason] = None
    total_votes: int
    nominations: List[NominationSchema]


class PollResultsResponseSchema(BaseModel):
    poll_id: int
    status: PollStatus
    total_votes: int
    results: List[NominationSchema]


class PollDeleteResponseSchema(BaseModel):
    message: str
    id: int
