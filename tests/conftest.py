"""Pytest configuration and fixtures for RetroScreen tests."""

from datetime import date, datetime, time, timedelta

import pytest

from app.services.candidates.types import (
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

BASE_DATE = date(2026, 3, 1)


class FakeCandidateRepository:
    """In-memory CandidateRepository with insert-if-absent decisions."""

    def __init__(self, movies=(), history=(), decisions=()):
        self.movies = list(movies)
        self.history = list(history)
        self.decisions = {d.post_date: d for d in decisions}
        self.writes: list[Decision] = []
        self.fetch_calls = 0
        self.windows: list[tuple[datetime, datetime]] = []
        self.history_ranges: list[tuple[date, date]] = []
        self.deleted_movie_ids: set[int] = set()
        self.deleted_screening_ids: set[int] = set()

    async def fetch_eligible_movies(self, window_start, window_end):
        self.fetch_calls += 1
        self.windows.append((window_start, window_end))
        result = []
        for movie in self.movies:
            screenings = [
                s for s in movie.screenings if window_start <= s.starts_at <= window_end
            ]
            if screenings:
                result.append(movie.with_screenings(screenings))
        return result

    async def fetch_published_history(self, range_start, range_end):
        self.history_ranges.append((range_start, range_end))
        records = list(self.history) + [
            CooldownRecord(movie_id=d.movie_id, post_date=d.post_date)
            for d in self.decisions.values()
            if d.published
        ]
        return [r for r in records if range_start <= r.post_date < range_end]

    async def find_decision(self, post_date):
        return self.decisions.get(post_date)

    async def upsert_decision(self, decision):
        self.writes.append(decision)
        self.decisions.setdefault(decision.post_date, decision)

    async def fetch_movie_by_id(self, movie_id):
        if movie_id in self.deleted_movie_ids:
            return None
        for movie in self.movies:
            if movie.id == movie_id:
                return movie.summary
        return None

    async def fetch_screening_by_id(self, screening_id):
        if screening_id in self.deleted_screening_ids:
            return None
        for movie in self.movies:
            for screening in movie.screenings:
                if screening.id == screening_id:
                    return screening.summary
        return None


def _city(city_id: int | None) -> CitySummary:
    if not city_id:
        return CitySummary(id=0, slug="", name="", name_declinated="")
    return CitySummary(
        id=city_id,
        slug=f"city-{city_id}",
        name=f"City {city_id}",
        name_declinated=f"City {city_id}",
    )


@pytest.fixture
def base_date():
    """Decision date used across tests."""
    return BASE_DATE


@pytest.fixture
def make_screening():
    """Build a CandidateScreening a number of days after BASE_DATE."""

    def _make(
        screening_id: int,
        movie_id: int,
        days_out: int = 2,
        hour: int = 19,
        city_id: int | None = 1,
        subtitled: bool = False,
        dubbed: bool = False,
        base: date = BASE_DATE,
    ) -> CandidateScreening:
        starts_at = datetime.combine(base + timedelta(days=days_out), time(hour, 0))
        return CandidateScreening(
            id=screening_id,
            movie_id=movie_id,
            starts_at=starts_at,
            is_subtitled=subtitled,
            is_dubbing=dubbed,
            city_id=city_id,
            summary=ScreeningSummary(
                id=screening_id,
                starts_at=starts_at,
                ticket_url=f"https://tickets.example/{screening_id}",
                is_dubbing=dubbed,
                is_subtitled=subtitled,
                cinema=CinemaSummary(
                    id=(city_id or 0) * 10,
                    slug=f"kino-{city_id}",
                    name=f"Kino {city_id}",
                    street=None,
                    city=_city(city_id),
                ),
            ),
        )

    return _make


@pytest.fixture
def make_movie():
    """Build a CandidateMovie with a matching hero summary."""

    def _make(
        movie_id: int,
        year: int = 1982,
        genre_ids=(1, 2),
        screenings=(),
        has_image: bool = True,
        title: str | None = None,
    ) -> CandidateMovie:
        return CandidateMovie(
            id=movie_id,
            production_year=year,
            has_image=has_image,
            genre_ids=frozenset(genre_ids),
            screenings=tuple(screenings),
            summary=MovieSummary(
                id=movie_id,
                slug=f"movie-{movie_id}",
                title=title or f"Movie {movie_id}",
                title_original=title or f"Movie {movie_id}",
                production_year=year,
                duration=120,
                poster_url=f"https://img.example/poster/{movie_id}.jpg",
                description="A classic.",
                backdrop_url=(
                    f"https://img.example/backdrop/{movie_id}.jpg" if has_image else None
                ),
                genres=tuple(
                    GenreSummary(id=g, slug=f"genre-{g}", name=f"Genre {g}")
                    for g in genre_ids
                ),
            ),
        )

    return _make


@pytest.fixture
def fake_repository():
    """Factory for in-memory repositories."""
    return FakeCandidateRepository


@pytest.fixture
def high_quality_movie(make_movie, make_screening):
    """1982, two genres, two cities, subtitled screening two days out (90 points)."""
    return make_movie(
        1,
        year=1982,
        genre_ids=(1, 2),
        title="Blade Runner",
        screenings=[
            make_screening(100, 1, days_out=2, city_id=1, subtitled=True),
            make_screening(101, 1, days_out=5, city_id=2),
        ],
    )


@pytest.fixture
def weak_movie(make_movie, make_screening):
    """1995, one genre, one city, plain screening five days out (30 points)."""
    return make_movie(
        2,
        year=1995,
        genre_ids=(3,),
        screenings=[make_screening(200, 2, days_out=5, city_id=3)],
    )
