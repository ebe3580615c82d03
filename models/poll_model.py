from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, DateTime, Boolean, false, func
from sqlalchemy.orm import Mapped, mapped_column
from core.base import Base


class Poll(Base):
    __tablename__ = "polls"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    max_votes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    # Only ever set to True, there is no reopen
    closed_manually: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)

