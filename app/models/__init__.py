"""Database models for RetroScreen."""

from app.models.base import Base, async_session_factory, engine
from app.models.domain import (
    Cinema,
    City,
    Genre,
    InstagramPost,
    JobRun,
    Movie,
    MovieGenre,
    Screening,
)

__all__ = [
    # Base
    "Base",
    "engine",
    "async_session_factory",
    # Catalogue
    "City",
    "Cinema",
    "Genre",
    "Movie",
    "MovieGenre",
    "Screening",
    # Decisions
    "InstagramPost",
    "JobRun",
]
