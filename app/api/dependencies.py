"""FastAPI dependencies for RetroScreen."""

from collections.abc import AsyncGenerator

import redis.asyncio as redis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.base import async_session_factory
from app.services.candidates import CandidateScoringEngine, CandidateService
from app.services.candidates.clock import reference_today_provider
from app.services.candidates.repository import SqlAlchemyCandidateRepository


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_redis() -> AsyncGenerator[redis.Redis, None]:
    """Get Redis client dependency."""
    settings = get_settings()
    client = redis.from_url(settings.redis_url)
    try:
        yield client
    finally:
        await client.aclose()


def get_scoring_engine() -> CandidateScoringEngine:
    """Get candidate scoring engine configured from defaults.yaml."""
    return CandidateScoringEngine()


async def get_candidate_service(
    db: AsyncSession = Depends(get_db),
    engine: CandidateScoringEngine = Depends(get_scoring_engine),
) -> CandidateService:
    """Get the daily candidate service bound to the request session."""
    repository = SqlAlchemyCandidateRepository(db, classic_year=engine.classic_year)
    return CandidateService(
        repository,
        engine=engine,
        today_provider=reference_today_provider(get_settings().timezone),
    )
