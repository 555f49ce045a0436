from typing import Any, Dict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.db.async_session import check_async_database_health

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
async def health_check():
    """Liveness probe; does not touch the database."""
    return {"status": "ok", "service": settings.PROJECT_NAME, "version": settings.VERSION}


@router.get("/database", response_model=Dict[str, Any])
async def database_health_check():
    """
    Database connectivity check with connection pool information.

    Responds 503 when the connection test fails.
    """
    health_status = await check_async_database_health()
    if health_status["status"] != "healthy":
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status)
    return health_status
