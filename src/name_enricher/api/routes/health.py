"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from name_enricher import __version__
from name_enricher.api.deps import DB
from name_enricher.core.errors import StoreError
from name_enricher.observability.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str
    database: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", response_model=HealthResponse)
async def liveness():
    """Liveness probe - is the service running?"""
    return HealthResponse(status="ok", timestamp=_now())


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness(database: DB):
    """Readiness probe - can the service reach its database?"""
    db_status = "ok"
    try:
        database.ping()
    except StoreError as e:
        logger.error("readiness_db_check_failed", error=str(e))
        db_status = f"error: {e}"

    return ReadinessResponse(
        status="ok" if db_status == "ok" else "degraded",
        database=db_status,
        timestamp=_now(),
    )
