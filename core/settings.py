import json
import os

from typing import Optional

from pydantic import PostgresDsn, field_validator
from pydantic.fields import computed_field
from pydantic_settings import BaseSettings


DEFAULT_SQLITE_URI = "sqlite+aiosqlite:///./polls.db"


class Settings(BaseSettings):

    SERVER_ADDRESS: str = "127.0.0.1"
    SERVER_PORT: int = int(os.getenv("PORT", 8000))  # Default 8000, but use PORT when the platform sets it
    BACKEND_CORS_ORIGINS: list[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            if not v.startswith("["):
                return [origin.strip() for origin in v.split(",") if origin.strip()]
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                raise ValueError(v) from None
        return v

    FRONTEND_URL: Optional[str] = None
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_POOL_SIZE: int = 50
    POSTGRES_MAX_OVERFLOW: int = 0

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        # Check for DATABASE_URL first (Railway, Render, etc.)
        if "DATABASE_URL" in os.environ:
            db_url = os.environ["DATABASE_URL"]
            # Convert postgresql:// to postgresql+psycopg:// for compatibility
            if db_url.startswith("postgresql://") and "+psycopg" not in db_url:
                db_url = db_url.replace("postgresql://", "postgresql+psycopg://")
            return db_url

        # Local development falls back to a SQLite file
        if not all([self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_SERVER, self.POSTGRES_DB]):
            return DEFAULT_SQLITE_URI

        return str(
            PostgresDsn.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                path=f"{self.POSTGRES_DB or ''}",
            )
        )

    # Voting policy
    SCORED_VOTING: bool = True  # False: binary mode, every vote counts as MIN_SCORE
    MIN_SCORE: int = 1
    MAX_SCORE: int = 10

    DEBUG: bool = False  # Adds the underlying error text to 500 responses
    WATCH_FILES: bool = False
    LOG_LEVEL: str = "info"  # Logging level: critical, error, warning, info, debug, trace

    class Config:
        env_file = "local.env"
        case_sensitive = True
        extra = "allow"
        env_ignore_empty = True


settings = Settings()
