"""Configuration API endpoints."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_scoring_engine
from app.config import get_settings
from app.services.candidates import CandidateScoringEngine

router = APIRouter(prefix="/api/config", tags=["config"])


@router.get("/candidates")
async def get_candidates_config(
    engine: CandidateScoringEngine = Depends(get_scoring_engine),
):
    """Get the effective candidate selection configuration."""
    return {
        "timezone": get_settings().timezone,
        "window": engine.window,
        "cooldown": engine.cooldown,
        "thresholds": engine.thresholds,
        "weights": engine.weights,
        "min_score": engine.min_score,
    }
