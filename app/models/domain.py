"""Domain models for RetroScreen.

Catalogue tables (cities, cinemas, genres, movies, screenings) are written by
the scraping pipeline; this service only reads them. The instagram_posts table
is the one-row-per-day decision log owned by the candidate selection engine.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, TimestampMixin


class City(Base):
    """City that hosts one or more cinemas."""

    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    name_declinated: Mapped[str] = mapped_column(
        String(255), nullable=False, doc="Locative form used in captions"
    )
    areacode: Mapped[int | None] = mapped_column(Integer, nullable=True)

    cinemas: Mapped[list["Cinema"]] = relationship("Cinema", back_populates="city")

    def __repr__(self) -> str:
        return f"<City {self.name}>"


class Cinema(Base, TimestampMixin):
    """Venue where screenings take place."""

    __tablename__ = "cinemas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    city_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cities.id"), nullable=False
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(255), nullable=False)
    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    latitude: Mapped[float | None] = mapped_column(nullable=True)
    longitude: Mapped[float | None] = mapped_column(nullable=True)

    city: Mapped["City"] = relationship("City", back_populates="cinemas")
    screenings: Mapped[list["Screening"]] = relationship(
        "Screening", back_populates="cinema"
    )

    def __repr__(self) -> str:
        return f"<Cinema {self.name}>"


class Genre(Base, TimestampMixin):
    """Movie genre."""

    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Genre {self.name}>"


class MovieGenre(Base, TimestampMixin):
    """Association between movies and genres."""

    __tablename__ = "movies_genres"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    movie_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("movies.id"), nullable=False
    )
    genre_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("genres.id"), nullable=False
    )

    movie: Mapped["Movie"] = relationship("Movie", back_populates="movie_genres")
    genre: Mapped["Genre"] = relationship("Genre")

    __table_args__ = (
        UniqueConstraint("movie_id", "genre_id", name="uq_movies_genres_movie_genre"),
    )


class Movie(Base, TimestampMixin):
    """
    Movie in the catalogue.

    Only movies produced before the classic year threshold and carrying a
    backdrop image are ever considered for the daily feature.
    """

    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_original: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    production_year: Mapped[int] = mapped_column(Integer, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    language: Mapped[str | None] = mapped_column(String(255), nullable=True)
    poster_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    backdrop_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    movie_genres: Mapped[list["MovieGenre"]] = relationship(
        "MovieGenre", back_populates="movie", order_by="MovieGenre.genre_id"
    )
    screenings: Mapped[list["Screening"]] = relationship(
        "Screening", back_populates="movie"
    )

    __table_args__ = (Index("idx_movies_production_year", "production_year"),)

    def __repr__(self) -> str:
        return f"<Movie {self.title} ({self.production_year})>"


class Screening(Base, TimestampMixin):
    """
    Single screening of a movie in a cinema.

    The date column holds local wall-clock time in the reference timezone.
    """

    __tablename__ = "screenings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    movie_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("movies.id"), nullable=False
    )
    cinema_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cinemas.id"), nullable=False
    )
    url: Mapped[str | None] = mapped_column(
        String(255), nullable=True, doc="Ticket booking URL"
    )
    type: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    is_dubbing: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_subtitled: Mapped[bool] = mapped_column(Boolean, nullable=False)

    movie: Mapped["Movie"] = relationship("Movie", back_populates="screenings")
    cinema: Mapped["Cinema"] = relationship("Cinema", back_populates="screenings")

    __table_args__ = (
        UniqueConstraint(
            "movie_id",
            "cinema_id",
            "date",
            "type",
            "is_dubbing",
            "is_subtitled",
            name="uq_screenings_identity",
        ),
        Index("idx_screenings_movie_date", "movie_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<Screening movie={self.movie_id} at {self.date}>"


class InstagramPost(Base, CreatedAtMixin):
    """
    Daily featured-screening decision.

    At most one row per post_date. Rows are inserted once with
    ON CONFLICT DO NOTHING and never updated or deleted, so the first writer
    for a date fixes the outcome for every later request.
    """

    __tablename__ = "instagram_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_date: Mapped[date] = mapped_column(Date, unique=True, nullable=False)
    movie_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("movies.id"), nullable=True
    )
    screening_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("screenings.id"), nullable=True
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False)
    reason: Mapped[str] = mapped_column(String(100), nullable=False)
    candidates_checked: Mapped[int | None] = mapped_column(
        Integer, nullable=True, doc="Candidate movies scored when the row was written"
    )

    __table_args__ = (
        Index(
            "idx_instagram_posts_published_date",
            "post_date",
            postgresql_where=(published == True),  # noqa: E712
        ),
    )

    def __repr__(self) -> str:
        return f"<InstagramPost {self.post_date} published={self.published}>"


class JobRun(Base):
    """
    Task execution audit log.

    Every scheduled task run is logged here for monitoring and debugging.
    """

    __tablename__ = "job_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_name: Mapped[str] = mapped_column(String(100), nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, doc="'running', 'success', 'failed'"
    )
    records_processed: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    job_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONB, nullable=True
    )

    def __repr__(self) -> str:
        return f"<JobRun {self.job_name} status={self.status}>"
