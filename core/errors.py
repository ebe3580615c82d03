import logging

from fastapi import HTTPException
from starlette import status

from core.settings import settings

logger = logging.getLogger(__name__)


def internal_error(action: str, error: Exception) -> HTTPException:
    """Log an unexpected failure and build the generic 500 for it.

    Must be called from inside the ``except`` block handling ``error``.
    """
    logger.exception(f"{action}: {error}")
    detail = f"{action}: {error}" if settings.DEBUG else action
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
