"""Data access for the candidate selection engine.

CandidateRepository is the seam between the engine and the database. The
SQLAlchemy implementation reads the catalogue already joined and filtered,
and writes decisions with INSERT ... ON CONFLICT (post_date) DO NOTHING so
that concurrent writers for the same day cannot overwrite each other.
"""

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import Protocol, TypeVar

import structlog
from sqlalchemy import and_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from app.models.domain import Cinema, InstagramPost, Movie, MovieGenre, Screening
from app.services.candidates.types import (
    UNKNOWN_CITY,
    CandidateMovie,
    CandidateScreening,
    CinemaSummary,
    CitySummary,
    CooldownRecord,
    Decision,
    GenreSummary,
    MovieSummary,
    ScreeningSummary,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEADLOCK_SQLSTATE = "40P01"
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 0.1


class CandidateRepository(Protocol):
    """Operations the engine needs from the store."""

    async def fetch_eligible_movies(
        self, window_start: datetime, window_end: datetime
    ) -> list[CandidateMovie]: ...

    async def fetch_published_history(
        self, range_start: date, range_end: date
    ) -> list[CooldownRecord]: ...

    async def find_decision(self, post_date: date) -> Decision | None: ...

    async def upsert_decision(self, decision: Decision) -> None: ...

    async def fetch_movie_by_id(self, movie_id: int) -> MovieSummary | None: ...

    async def fetch_screening_by_id(
        self, screening_id: int
    ) -> ScreeningSummary | None: ...


# Row mappers


def map_movie_summary(movie: Movie) -> MovieSummary:
    """Hero summary of a movie row with its genres loaded."""
    return MovieSummary(
        id=movie.id,
        slug=movie.slug,
        title=movie.title,
        title_original=movie.title_original or None,
        production_year=movie.production_year,
        duration=movie.duration if movie.duration > 0 else None,
        poster_url=movie.poster_url,
        description=movie.description or None,
        backdrop_url=movie.backdrop_url or None,
        genres=tuple(
            GenreSummary(id=mg.genre.id, slug=mg.genre.slug, name=mg.genre.name)
            for mg in movie.movie_genres
        ),
    )


def map_cinema_summary(cinema: Cinema | None) -> CinemaSummary:
    if cinema is None:
        return CinemaSummary(id=0, slug="", name="", street=None)
    city = cinema.city
    return CinemaSummary(
        id=cinema.id,
        slug=cinema.slug,
        name=cinema.name,
        street=cinema.street,
        city=(
            CitySummary(
                id=city.id,
                slug=city.slug,
                name=city.name,
                name_declinated=city.name_declinated,
            )
            if city is not None
            else UNKNOWN_CITY
        ),
    )


def map_screening_summary(screening: Screening) -> ScreeningSummary:
    """Summary of a screening row with its cinema and city loaded."""
    return ScreeningSummary(
        id=screening.id,
        starts_at=screening.date,
        ticket_url=screening.url or None,
        is_dubbing=bool(screening.is_dubbing),
        is_subtitled=bool(screening.is_subtitled),
        cinema=map_cinema_summary(screening.cinema),
    )


def map_candidate_screening(screening: Screening) -> CandidateScreening:
    cinema = screening.cinema
    return CandidateScreening(
        id=screening.id,
        movie_id=screening.movie_id,
        starts_at=screening.date,
        is_subtitled=bool(screening.is_subtitled),
        is_dubbing=bool(screening.is_dubbing),
        city_id=cinema.city_id if cinema is not None else None,
        summary=map_screening_summary(screening),
    )


def map_decision(row: InstagramPost) -> Decision:
    return Decision(
        post_date=row.post_date,
        published=row.published,
        movie_id=row.movie_id,
        screening_id=row.screening_id,
        score=row.score,
        reason=row.reason,
        candidates_checked=row.candidates_checked,
    )


def build_decision_insert(decision: Decision):
    """INSERT for a decision that leaves an existing row for the date untouched."""
    stmt = insert(InstagramPost).values(
        post_date=decision.post_date,
        movie_id=decision.movie_id,
        screening_id=decision.screening_id,
        score=decision.score,
        published=decision.published,
        reason=decision.reason,
        candidates_checked=decision.candidates_checked,
    )
    return stmt.on_conflict_do_nothing(index_elements=["post_date"])


def is_deadlock_error(exc: BaseException) -> bool:
    """Check whether a database error is a PostgreSQL deadlock (40P01)."""
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code == DEADLOCK_SQLSTATE


class SqlAlchemyCandidateRepository:
    """
    CandidateRepository backed by the async SQLAlchemy session.

    Only the decision write is retried (on deadlock, with exponential
    backoff); every other database error propagates unchanged.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        classic_year: int = 2000,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
    ):
        self.session = session
        self.classic_year = classic_year
        self.max_retries = max_retries
        self.base_delay = base_delay

    async def fetch_eligible_movies(
        self, window_start: datetime, window_end: datetime
    ) -> list[CandidateMovie]:
        """Classic movies with a backdrop and their bookable screenings in the window."""
        screening_filter = (
            Screening.date >= window_start,
            Screening.date <= window_end,
            Screening.url.is_not(None),
            Screening.url != "",
        )

        movie_result = await self.session.execute(
            select(Movie)
            .options(selectinload(Movie.movie_genres).joinedload(MovieGenre.genre))
            .where(
                Movie.production_year < self.classic_year,
                Movie.backdrop_url.is_not(None),
                Movie.backdrop_url != "",
                Movie.screenings.any(and_(*screening_filter)),
            )
            .order_by(Movie.id)
        )
        movies = movie_result.scalars().unique().all()
        if not movies:
            return []

        screening_result = await self.session.execute(
            select(Screening)
            .options(joinedload(Screening.cinema).joinedload(Cinema.city))
            .where(
                Screening.movie_id.in_([m.id for m in movies]),
                *screening_filter,
            )
            .order_by(Screening.movie_id, Screening.date, Screening.id)
        )
        by_movie: dict[int, list[CandidateScreening]] = defaultdict(list)
        for screening in screening_result.scalars().unique():
            by_movie[screening.movie_id].append(map_candidate_screening(screening))

        return [
            CandidateMovie(
                id=movie.id,
                production_year=movie.production_year,
                has_image=bool(movie.backdrop_url),
                genre_ids=frozenset(mg.genre_id for mg in movie.movie_genres),
                screenings=tuple(by_movie.get(movie.id, ())),
                summary=map_movie_summary(movie),
            )
            for movie in movies
        ]

    async def fetch_published_history(
        self, range_start: date, range_end: date
    ) -> list[CooldownRecord]:
        """Published decisions dated in [range_start, range_end)."""
        result = await self.session.execute(
            select(InstagramPost.movie_id, InstagramPost.post_date)
            .where(
                InstagramPost.published == True,  # noqa: E712
                InstagramPost.post_date >= range_start,
                InstagramPost.post_date < range_end,
            )
            .order_by(InstagramPost.post_date)
        )
        return [
            CooldownRecord(movie_id=row.movie_id, post_date=row.post_date)
            for row in result.all()
        ]

    async def find_decision(self, post_date: date) -> Decision | None:
        result = await self.session.execute(
            select(InstagramPost).where(InstagramPost.post_date == post_date)
        )
        row = result.scalar_one_or_none()
        return map_decision(row) if row is not None else None

    async def upsert_decision(self, decision: Decision) -> None:
        """Insert the decision unless one already exists for its date."""

        async def _write() -> None:
            result = await self.session.execute(build_decision_insert(decision))
            await self.session.commit()
            logger.info(
                "decision_persisted",
                post_date=decision.post_date.isoformat(),
                published=decision.published,
                inserted=bool(result.rowcount),
            )

        await self._with_deadlock_retry(_write, label="upsert_decision")

    async def fetch_movie_by_id(self, movie_id: int) -> MovieSummary | None:
        result = await self.session.execute(
            select(Movie)
            .options(selectinload(Movie.movie_genres).joinedload(MovieGenre.genre))
            .where(Movie.id == movie_id)
        )
        movie = result.scalar_one_or_none()
        return map_movie_summary(movie) if movie is not None else None

    async def fetch_screening_by_id(
        self, screening_id: int
    ) -> ScreeningSummary | None:
        result = await self.session.execute(
            select(Screening)
            .options(joinedload(Screening.cinema).joinedload(Cinema.city))
            .where(Screening.id == screening_id)
        )
        screening = result.scalar_one_or_none()
        return map_screening_summary(screening) if screening is not None else None

    async def _with_deadlock_retry(
        self, operation: Callable[[], Awaitable[T]], label: str
    ) -> T:
        """Run operation, retrying deadlocks with exponential backoff."""
        for attempt in range(1, self.max_retries + 1):
            try:
                return await operation()
            except DBAPIError as e:
                if not is_deadlock_error(e) or attempt == self.max_retries:
                    raise
                await self.session.rollback()
                delay = self.base_delay * 2 ** (attempt - 1)
                logger.warning(
                    "decision_write_deadlock_retrying",
                    label=label,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    delay_seconds=delay,
                )
                await asyncio.sleep(delay)

        raise RuntimeError(f"[{label}] exhausted {self.max_retries} retries")
