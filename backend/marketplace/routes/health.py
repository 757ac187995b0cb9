"""
RR Nagar Backend — Health Check Routes
========================================

What:  Liveness text at GET / and a dependency probe at GET /health.
Who:   Load balancers, Docker health checks, uptime monitors.

Status levels:
    healthy:    database reachable, translator available
    degraded:   database reachable, translator unavailable or circuit open
                (products and categories still work without translation)
    unhealthy:  database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace import __version__
from marketplace.database import get_db_session
from marketplace.schemas.common import HealthResponse
from marketplace.services.gemini_translator import CircuitBreaker, get_translation_service
from marketplace.services.translation_base import TranslationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "RR Nagar Backend Running"


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(
    db: AsyncSession = Depends(get_db_session),
    translator: TranslationService = Depends(get_translation_service),
) -> HealthResponse:
    """
    Probes the database with SELECT 1 and the translator with its own
    health_check(). A translator whose circuit is open is not called.
    """
    db_status = "connected"
    translation_status = "available"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    breaker = getattr(translator, "circuit_breaker", None)
    if breaker is not None and breaker.state == CircuitBreaker.OPEN:
        translation_status = "circuit_open"
    else:
        try:
            if not await translator.health_check():
                translation_status = "unavailable"
        except Exception as e:
            translation_status = "unavailable"
            logger.warning("Health check: translator unreachable: %s", str(e))

    if translation_status != "available" and overall != "unhealthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        translation=translation_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
