"""Typed inputs and outputs of the daily candidate selection engine.

The repository builds these once from joined catalogue rows, so the scoring
code never sees ORM objects.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any

REASON_PUBLISHED = "HIGH_QUALITY_CANDIDATE"
REASON_SKIPPED = "NO_HIGH_QUALITY_CANDIDATE"


@dataclass(frozen=True)
class GenreSummary:
    id: int
    slug: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "slug": self.slug, "name": self.name}


@dataclass(frozen=True)
class CitySummary:
    id: int
    slug: str
    name: str
    name_declinated: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "nameDeclinated": self.name_declinated,
        }


# Placeholder for screenings whose cinema has no resolvable city
UNKNOWN_CITY = CitySummary(id=0, slug="", name="", name_declinated="")


@dataclass(frozen=True)
class CinemaSummary:
    id: int
    slug: str
    name: str
    street: str | None
    city: CitySummary = UNKNOWN_CITY

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "street": self.street,
            "city": self.city.to_dict(),
        }


@dataclass(frozen=True)
class MovieSummary:
    """Hero card of a movie, rendered in a published result."""

    id: int
    slug: str
    title: str
    title_original: str | None
    production_year: int
    duration: int | None
    poster_url: str | None
    description: str | None
    backdrop_url: str | None
    genres: tuple[GenreSummary, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "titleOriginal": self.title_original,
            "productionYear": self.production_year,
            "duration": self.duration,
            "posterUrl": self.poster_url,
            "genres": [g.to_dict() for g in self.genres],
            "description": self.description,
            "backdropUrl": self.backdrop_url,
        }


@dataclass(frozen=True)
class ScreeningSummary:
    """Screening details rendered in a published result."""

    id: int
    starts_at: datetime
    ticket_url: str | None
    is_dubbing: bool
    is_subtitled: bool
    cinema: CinemaSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.starts_at.strftime("%Y-%m-%d"),
            "time": self.starts_at.strftime("%H:%M"),
            "dateTime": self.starts_at.strftime("%Y-%m-%dT%H:%M:%S"),
            "ticketUrl": self.ticket_url,
            "isDubbing": self.is_dubbing,
            "isSubtitled": self.is_subtitled,
            "cinema": self.cinema.to_dict(),
        }


@dataclass(frozen=True)
class CandidateScreening:
    """Screening as seen by the scorer."""

    id: int
    movie_id: int
    starts_at: datetime
    is_subtitled: bool
    is_dubbing: bool
    city_id: int | None
    summary: ScreeningSummary | None = field(default=None, compare=False)


@dataclass(frozen=True)
class CandidateMovie:
    """Classic movie with its screenings inside the eligibility window."""

    id: int
    production_year: int
    has_image: bool
    genre_ids: frozenset[int]
    screenings: tuple[CandidateScreening, ...]
    summary: MovieSummary | None = field(default=None, compare=False)

    def with_screenings(self, screenings) -> "CandidateMovie":
        """Copy of this movie carrying only the given screenings."""
        return replace(self, screenings=tuple(screenings))


@dataclass(frozen=True)
class CooldownRecord:
    """Past published decision used to compute cooldowns."""

    movie_id: int | None
    post_date: date


@dataclass(frozen=True)
class CooldownSets:
    """Disjoint movie id sets produced by the cooldown calculator."""

    hard: frozenset[int] = frozenset()
    soft: frozenset[int] = frozenset()


@dataclass(frozen=True)
class Decision:
    """Persisted outcome for one calendar day."""

    post_date: date
    published: bool
    movie_id: int | None
    screening_id: int | None
    score: int
    reason: str
    candidates_checked: int | None = None


@dataclass(frozen=True)
class ScoredCandidate:
    """A (movie, screening) pair with its score and per-rule breakdown."""

    movie: CandidateMovie
    screening: CandidateScreening
    score: int
    components: dict[str, int] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class PublishedCandidate:
    """A screening was chosen for the given date."""

    date: date
    score: int
    movie: MovieSummary
    screening: ScreeningSummary
    reason: str = REASON_PUBLISHED

    publish = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "publish": True,
            "date": self.date.isoformat(),
            "score": self.score,
            "reason": self.reason,
            "movie": self.movie.to_dict(),
            "screening": self.screening.to_dict(),
        }


@dataclass(frozen=True)
class SkippedCandidate:
    """Nothing good enough to feature on the given date."""

    date: date
    candidates_checked: int
    best_score: int | None
    min_score: int
    reason: str = REASON_SKIPPED

    publish = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "publish": False,
            "date": self.date.isoformat(),
            "reason": self.reason,
            "meta": {
                "candidatesChecked": self.candidates_checked,
                "bestScore": self.best_score,
                "minScore": self.min_score,
            },
        }


CandidateResult = PublishedCandidate | SkippedCandidate
