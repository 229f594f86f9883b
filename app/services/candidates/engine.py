"""Candidate scoring engine.

Scores every (movie, screening) pair that survived eligibility and hard
cooldown, then selects the single best pair for the day.

score = days_out_band + era_band + multi_city + multi_genre + subtitled
        + soft_cooldown_penalty

Exactly one days-out band and one era band apply to each pair. City spread
and genre count are properties of the movie, evaluated over all of its
eligible screenings.
"""

from collections.abc import Iterable
from datetime import date
from typing import Any

import structlog

from app.config import get_settings
from app.services.candidates.eligibility import days_until
from app.services.candidates.types import (
    CandidateMovie,
    CandidateScreening,
    ScoredCandidate,
)

logger = structlog.get_logger(__name__)

REQUIRED_WEIGHTS = (
    "screening_nearby",
    "screening_upcoming",
    "deep_classic",
    "classic",
    "multi_city",
    "multi_genre",
    "subtitled",
    "soft_cooldown_penalty",
)


class CandidateScoringEngine:
    """
    Rule-based scorer and selector for the daily featured screening.

    Integer points per rule:

    | rule                              | points |
    |-----------------------------------|--------|
    | screening 1-3 days out            | +40    |
    | screening 4-7 days out            | +20    |
    | produced before 1980              | +20    |
    | produced 1980-1999                | +10    |
    | eligible screenings in 2+ cities  | +20    |
    | 2+ genres                         | +10    |
    | subtitled screening               | +10    |
    | soft cooldown                     | -30    |

    A pair is publishable when its score reaches min_score (60).
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize the engine.

        Args:
            config: Optional candidates configuration. If not provided,
                   loads the candidates section of settings.config_path
        """
        if config is None:
            config = self._load_default_config()

        self.config = config
        self.window = config.get("window", {})
        self.cooldown = config.get("cooldown", {})
        self.thresholds = config.get("thresholds", {})
        self.weights = config.get("weights", {})
        self.min_score = int(config.get("min_score", 60))

        self._validate_config()

    def _load_default_config(self) -> dict[str, Any]:
        """Load the candidates section of the configured defaults.yaml."""
        full_config = get_settings().load_defaults_config()
        if "candidates" in full_config:
            return full_config["candidates"]
        return self._get_fallback_config()

    @staticmethod
    def _get_fallback_config() -> dict[str, Any]:
        """Fallback configuration if defaults.yaml is missing."""
        return {
            "window": {"min_days": 1, "max_days": 7, "nearby_max_days": 3},
            "cooldown": {"hard_days": 21, "soft_start_days": 22, "soft_end_days": 35},
            "thresholds": {
                "classic_year": 2000,
                "deep_classic_year": 1980,
                "multi_city_min": 2,
                "multi_genre_min": 2,
            },
            "weights": {
                "screening_nearby": 40,
                "screening_upcoming": 20,
                "deep_classic": 20,
                "classic": 10,
                "multi_city": 20,
                "multi_genre": 10,
                "subtitled": 10,
                "soft_cooldown_penalty": -30,
            },
            "min_score": 60,
        }

    def _validate_config(self) -> None:
        """Validate configuration has all required keys."""
        for w in REQUIRED_WEIGHTS:
            if w not in self.weights:
                raise ValueError(f"Missing weight: {w}")
        if self.min_days > self.nearby_max_days or self.nearby_max_days > self.max_days:
            raise ValueError(
                "Window must satisfy min_days <= nearby_max_days <= max_days"
            )

    # Window and cooldown parameters read by the eligibility filter and the
    # cooldown calculator.

    @property
    def min_days(self) -> int:
        return int(self.window.get("min_days", 1))

    @property
    def max_days(self) -> int:
        return int(self.window.get("max_days", 7))

    @property
    def nearby_max_days(self) -> int:
        return int(self.window.get("nearby_max_days", 3))

    @property
    def hard_days(self) -> int:
        return int(self.cooldown.get("hard_days", 21))

    @property
    def soft_start_days(self) -> int:
        return int(self.cooldown.get("soft_start_days", 22))

    @property
    def soft_end_days(self) -> int:
        return int(self.cooldown.get("soft_end_days", 35))

    @property
    def classic_year(self) -> int:
        return int(self.thresholds.get("classic_year", 2000))

    @property
    def deep_classic_year(self) -> int:
        return int(self.thresholds.get("deep_classic_year", 1980))

    # Rules

    def days_out_points(self, days_out: int) -> int:
        """Points for how soon the screening is. Outside the window = 0."""
        if self.min_days <= days_out <= self.nearby_max_days:
            return self.weights["screening_nearby"]
        if self.nearby_max_days < days_out <= self.max_days:
            return self.weights["screening_upcoming"]
        return 0

    def era_points(self, production_year: int) -> int:
        """Points for how old the movie is."""
        if production_year < self.deep_classic_year:
            return self.weights["deep_classic"]
        if production_year < self.classic_year:
            return self.weights["classic"]
        return 0

    def movie_points(self, movie: CandidateMovie) -> dict[str, int]:
        """Per-movie rules, evaluated over every eligible screening."""
        # Unknown cinemas map to city 0 or None and are not a city
        cities = {s.city_id for s in movie.screenings if s.city_id}
        multi_city_min = self.thresholds.get("multi_city_min", 2)
        multi_genre_min = self.thresholds.get("multi_genre_min", 2)

        return {
            "multi_city": (
                self.weights["multi_city"] if len(cities) >= multi_city_min else 0
            ),
            "multi_genre": (
                self.weights["multi_genre"]
                if len(movie.genre_ids) >= multi_genre_min
                else 0
            ),
        }

    def score_screening(
        self,
        movie: CandidateMovie,
        screening: CandidateScreening,
        target: date,
        soft_cooldown_ids: frozenset[int] | set[int] = frozenset(),
        movie_points: dict[str, int] | None = None,
    ) -> ScoredCandidate:
        """
        Score a single (movie, screening) pair.

        Args:
            movie: Eligible movie (screenings already windowed)
            screening: One of the movie's screenings
            target: Decision date
            soft_cooldown_ids: Movies in the soft cooldown band
            movie_points: Precomputed per-movie rules, if available

        Returns:
            ScoredCandidate with total score and component breakdown
        """
        if movie_points is None:
            movie_points = self.movie_points(movie)

        components = {
            "days_out": self.days_out_points(days_until(target, screening.starts_at)),
            "era": self.era_points(movie.production_year),
            **movie_points,
            "subtitled": self.weights["subtitled"] if screening.is_subtitled else 0,
            "soft_cooldown": (
                self.weights["soft_cooldown_penalty"]
                if movie.id in soft_cooldown_ids
                else 0
            ),
        }
        score = sum(components.values())

        logger.debug(
            "candidate_scored",
            movie_id=movie.id,
            screening_id=screening.id,
            score=score,
            **components,
        )

        return ScoredCandidate(
            movie=movie, screening=screening, score=score, components=components
        )

    def score_candidates(
        self,
        movies: Iterable[CandidateMovie],
        target: date,
        soft_cooldown_ids: frozenset[int] | set[int] = frozenset(),
    ) -> list[ScoredCandidate]:
        """Score every screening of every movie, preserving input order."""
        scored = []
        for movie in movies:
            points = self.movie_points(movie)
            for screening in movie.screenings:
                scored.append(
                    self.score_screening(
                        movie, screening, target, soft_cooldown_ids, points
                    )
                )
        return scored

    def is_publishable(self, candidate: ScoredCandidate | None) -> bool:
        return candidate is not None and candidate.score >= self.min_score


def select_best(scored: Iterable[ScoredCandidate]) -> ScoredCandidate | None:
    """
    Highest scoring candidate, or None when there are none.

    Ties keep the first candidate seen; no randomisation.
    """
    best = None
    for candidate in scored:
        if best is None or candidate.score > best.score:
            best = candidate
    return best
