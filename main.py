import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_pagination import add_pagination
import uvicorn
from core.settings import settings
from api.api import api_router

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="Polls API", version="1.0.0")

if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"Adding CORS middleware with origins: {settings.BACKEND_CORS_ORIGINS}")
    cors_origins = [str(origin) for origin in settings.BACKEND_CORS_ORIGINS]
else:
    logger.info("No CORS origins configured, using wildcard")
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_origins != ["*"],  # Don't use credentials with wildcard
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=32400,
)

app.include_router(api_router)

# Must follow include_router so the paginated routes are registered
add_pagination(app)


@app.get("/")
async def root():
    return {"message": "Polls API", "version": "1.0.0"}

@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "scored_voting": settings.SCORED_VOTING,
        "frontend_url": settings.FRONTEND_URL
    }


if __name__ == "__main__":
    run_args = {
        "app": "main:app",
        "host": settings.SERVER_ADDRESS,
        "port": settings.SERVER_PORT,
        "log_level": settings.LOG_LEVEL,
        "reload": settings.WATCH_FILES,
    }

    uvicorn.run(**run_args)
