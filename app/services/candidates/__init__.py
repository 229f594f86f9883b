"""Daily featured-screening selection for RetroScreen."""

from app.services.candidates.engine import CandidateScoringEngine, select_best
from app.services.candidates.service import CandidateService, DecisionReferenceError
from app.services.candidates.types import (
    CandidateResult,
    PublishedCandidate,
    SkippedCandidate,
)

__all__ = [
    "CandidateScoringEngine",
    "CandidateService",
    "CandidateResult",
    "DecisionReferenceError",
    "PublishedCandidate",
    "SkippedCandidate",
    "select_best",
]
