"""Daily candidate selection service.

get_candidate(D) is idempotent per date:

1. A stored decision for D is returned as-is (published rows are rehydrated
   with fresh movie and screening details).
2. Otherwise eligibility -> cooldown -> scoring -> selection runs once, the
   outcome is written with insert-if-absent semantics, and the freshly
   computed result is returned.

Concurrent callers for the same date are serialised by the unique post_date
constraint, not by locks here.
"""

from datetime import date

import structlog

from app.services.candidates.clock import TodayProvider, reference_today_provider
from app.services.candidates.cooldown import compute_cooldown_sets, history_range
from app.services.candidates.eligibility import filter_eligible, screening_window
from app.services.candidates.engine import CandidateScoringEngine, select_best
from app.services.candidates.repository import CandidateRepository
from app.services.candidates.types import (
    REASON_PUBLISHED,
    REASON_SKIPPED,
    CandidateResult,
    Decision,
    PublishedCandidate,
    ScoredCandidate,
    SkippedCandidate,
)

logger = structlog.get_logger(__name__)


class DecisionReferenceError(LookupError):
    """A stored published decision points at a movie or screening that is gone."""

    def __init__(self, post_date: date, movie_id: int | None, screening_id: int | None):
        super().__init__(
            f"Decision for {post_date.isoformat()} references movie={movie_id} "
            f"screening={screening_id}, which can no longer be resolved"
        )
        self.post_date = post_date
        self.movie_id = movie_id
        self.screening_id = screening_id


def reported_best_score(score: int | None) -> int | None:
    """Best score as exposed in skipped results; non-positive means none."""
    # Skipped rows store 0 for "no candidate", so a real 0 reads back as null;
    # the fresh path reports it the same way to keep results idempotent.
    if score is None or score <= 0:
        return None
    return score


class CandidateService:
    """Selects and remembers the featured screening for each calendar day."""

    def __init__(
        self,
        repository: CandidateRepository,
        engine: CandidateScoringEngine | None = None,
        today_provider: TodayProvider | None = None,
    ):
        self.repository = repository
        self.engine = engine or CandidateScoringEngine()
        self.today_provider = today_provider or reference_today_provider()

    async def get_candidate(self, target_date: date | None = None) -> CandidateResult:
        """
        Return the decision for target_date, computing it on first request.

        Args:
            target_date: Decision date; defaults to today in the reference timezone

        Returns:
            PublishedCandidate or SkippedCandidate

        Raises:
            DecisionReferenceError: Stored decision cannot be rehydrated
        """
        target = target_date or self.today_provider()

        cached = await self._from_cache(target)
        if cached is not None:
            return cached

        return await self._compute(target)

    async def _from_cache(self, target: date) -> CandidateResult | None:
        decision = await self.repository.find_decision(target)
        if decision is None:
            return None

        logger.info(
            "candidate_cache_hit",
            date=target.isoformat(),
            published=decision.published,
        )

        if not decision.published:
            return SkippedCandidate(
                date=target,
                candidates_checked=decision.candidates_checked or 0,
                best_score=reported_best_score(decision.score),
                min_score=self.engine.min_score,
            )

        movie = screening = None
        if decision.movie_id is not None:
            movie = await self.repository.fetch_movie_by_id(decision.movie_id)
        if decision.screening_id is not None:
            screening = await self.repository.fetch_screening_by_id(
                decision.screening_id
            )
        if movie is None or screening is None:
            logger.warning(
                "candidate_cache_reference_missing",
                date=target.isoformat(),
                movie_id=decision.movie_id,
                screening_id=decision.screening_id,
            )
            raise DecisionReferenceError(
                target, decision.movie_id, decision.screening_id
            )

        return PublishedCandidate(
            date=target, score=decision.score, movie=movie, screening=screening
        )

    async def _compute(self, target: date) -> CandidateResult:
        engine = self.engine
        window = screening_window(target, engine.min_days, engine.max_days)
        history_start, history_end = history_range(target, engine.soft_end_days)

        movies = await self.repository.fetch_eligible_movies(window.start, window.end)
        history = await self.repository.fetch_published_history(
            history_start, history_end
        )

        cooldown = compute_cooldown_sets(
            target,
            history,
            hard_days=engine.hard_days,
            soft_start_days=engine.soft_start_days,
            soft_end_days=engine.soft_end_days,
        )
        eligible = filter_eligible(
            movies,
            target,
            min_days=engine.min_days,
            max_days=engine.max_days,
            classic_year=engine.classic_year,
        )
        candidates = [m for m in eligible if m.id not in cooldown.hard]

        scored = engine.score_candidates(candidates, target, cooldown.soft)
        best = select_best(scored)

        if engine.is_publishable(best):
            return await self._publish(target, best, len(candidates))

        return await self._skip(target, best, len(candidates))

    async def _publish(
        self, target: date, best: ScoredCandidate, candidates_checked: int
    ) -> PublishedCandidate:
        await self.repository.upsert_decision(
            Decision(
                post_date=target,
                published=True,
                movie_id=best.movie.id,
                screening_id=best.screening.id,
                score=best.score,
                reason=REASON_PUBLISHED,
                candidates_checked=candidates_checked,
            )
        )

        logger.info(
            "candidate_selected",
            date=target.isoformat(),
            movie_id=best.movie.id,
            screening_id=best.screening.id,
            score=best.score,
            components=best.components,
        )

        return PublishedCandidate(
            date=target,
            score=best.score,
            movie=best.movie.summary,
            screening=best.screening.summary,
        )

    async def _skip(
        self, target: date, best: ScoredCandidate | None, candidates_checked: int
    ) -> SkippedCandidate:
        best_score = best.score if best is not None else None

        await self.repository.upsert_decision(
            Decision(
                post_date=target,
                published=False,
                movie_id=None,
                screening_id=None,
                score=best_score or 0,
                reason=REASON_SKIPPED,
                candidates_checked=candidates_checked,
            )
        )

        logger.info(
            "candidate_skipped",
            date=target.isoformat(),
            candidates_checked=candidates_checked,
            best_score=best_score,
            min_score=self.engine.min_score,
        )

        return SkippedCandidate(
            date=target,
            candidates_checked=candidates_checked,
            best_score=reported_best_score(best_score),
            min_score=self.engine.min_score,
        )
