"""Eligibility filter and screening window helpers.

A movie is a candidate on date D when it is a classic with a promotional
image and has at least one screening whose local calendar date falls in
[D + min_days, D + max_days].
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

import structlog

from app.services.candidates.types import CandidateMovie

logger = structlog.get_logger(__name__)

DEFAULT_MIN_DAYS = 1
DEFAULT_MAX_DAYS = 7
DEFAULT_CLASSIC_YEAR = 2000


@dataclass(frozen=True)
class ScreeningWindow:
    """Inclusive local-time bounds of the screenings considered for a date."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def days_until(base: date, moment: datetime) -> int:
    """Whole calendar days from base to the day of moment."""
    return (moment.date() - base).days


def screening_window(
    target: date,
    min_days: int = DEFAULT_MIN_DAYS,
    max_days: int = DEFAULT_MAX_DAYS,
) -> ScreeningWindow:
    """Window from the start of D+min_days to the end of D+max_days."""
    return ScreeningWindow(
        start=datetime.combine(add_days(target, min_days), time.min),
        end=datetime.combine(add_days(target, max_days), time.max),
    )


def is_classic(movie: CandidateMovie, classic_year: int = DEFAULT_CLASSIC_YEAR) -> bool:
    return movie.production_year < classic_year and movie.has_image


def filter_eligible(
    movies: Iterable[CandidateMovie],
    target: date,
    *,
    min_days: int = DEFAULT_MIN_DAYS,
    max_days: int = DEFAULT_MAX_DAYS,
    classic_year: int = DEFAULT_CLASSIC_YEAR,
) -> list[CandidateMovie]:
    """
    Keep classic movies with their in-window screenings only.

    Movies left without screenings are dropped. The result is ordered by
    movie id, and each movie's screenings by start time then id, so that
    first-seen tie breaking is the same on every call.

    Args:
        movies: Movies fetched for the window (may carry extra screenings)
        target: Decision date
        min_days: First day offset of the window
        max_days: Last day offset of the window (inclusive)
        classic_year: Movies produced in or after this year are excluded

    Returns:
        Ordered list of eligible movies
    """
    eligible = []
    dropped = 0

    for movie in sorted(movies, key=lambda m: m.id):
        if not is_classic(movie, classic_year):
            dropped += 1
            continue

        screenings = sorted(
            (
                s
                for s in movie.screenings
                if min_days <= days_until(target, s.starts_at) <= max_days
            ),
            key=lambda s: (s.starts_at, s.id),
        )
        if not screenings:
            dropped += 1
            continue

        eligible.append(movie.with_screenings(screenings))

    logger.debug(
        "eligibility_filtered",
        target=target.isoformat(),
        eligible=len(eligible),
        dropped=dropped,
    )
    return eligible
