from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class VoteRequestSchema(BaseModel):
    nomination_id: int = Field(..., description="ID of the nomination to vote for")
    score: Optional[int] = Field(None, description="1-10 when scored voting is enabled, ignored otherwise")


class VoteResponseSchema(BaseModel):
    """Created vote with the fresh tallies it produced."""
    id: int
    poll_id: int
    nomination_id: int
    score: int
    created_at: datetime
    total_votes: int
    nomination_votes: int
