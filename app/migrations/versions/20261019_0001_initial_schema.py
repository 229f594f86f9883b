"""Initial schema for RetroScreen.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the catalogue tables read by the candidate selection engine and the
decision log it writes:
- cities, cinemas, genres, movies, movies_genres, screenings
- instagram_posts: one row per post_date, unique, never updated
- job_runs: task audit log
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "cities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("name_declinated", sa.String(length=255), nullable=False),
        sa.Column("areacode", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_cities"),
        sa.UniqueConstraint("source_id", name="uq_cities_source_id"),
    )

    op.create_table(
        "cinemas",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("city_id", sa.Integer(), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=255), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["city_id"], ["cities.id"], name="fk_cinemas_city_id_cities"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_cinemas"),
        sa.UniqueConstraint("source_id", name="uq_cinemas_source_id"),
    )

    op.create_table(
        "genres",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_genres"),
        sa.UniqueConstraint("source_id", name="uq_genres_source_id"),
    )

    op.create_table(
        "movies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("title_original", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("production_year", sa.Integer(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("language", sa.String(length=255), nullable=True),
        sa.Column("poster_url", sa.String(length=255), nullable=True),
        sa.Column("backdrop_url", sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_movies"),
        sa.UniqueConstraint("source_id", name="uq_movies_source_id"),
    )
    op.create_index("idx_movies_production_year", "movies", ["production_year"])

    op.create_table(
        "movies_genres",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("movie_id", sa.Integer(), nullable=False),
        sa.Column("genre_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["movie_id"], ["movies.id"], name="fk_movies_genres_movie_id_movies"
        ),
        sa.ForeignKeyConstraint(
            ["genre_id"], ["genres.id"], name="fk_movies_genres_genre_id_genres"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_movies_genres"),
        sa.UniqueConstraint("movie_id", "genre_id", name="uq_movies_genres_movie_genre"),
    )

    # Screening dates are local wall-clock time in the reference timezone
    op.create_table(
        "screenings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("movie_id", sa.Integer(), nullable=False),
        sa.Column("cinema_id", sa.Integer(), nullable=False),
        sa.Column("url", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=255), nullable=False),
        sa.Column("date", sa.DateTime(timezone=False), nullable=False),
        sa.Column("is_dubbing", sa.Boolean(), nullable=False),
        sa.Column("is_subtitled", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["movie_id"], ["movies.id"], name="fk_screenings_movie_id_movies"
        ),
        sa.ForeignKeyConstraint(
            ["cinema_id"], ["cinemas.id"], name="fk_screenings_cinema_id_cinemas"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_screenings"),
        sa.UniqueConstraint(
            "movie_id",
            "cinema_id",
            "date",
            "type",
            "is_dubbing",
            "is_subtitled",
            name="uq_screenings_identity",
        ),
    )
    op.create_index(
        "idx_screenings_movie_date", "screenings", ["movie_id", "date"]
    )

    # Decision log: the unique post_date is the idempotency guarantee
    op.create_table(
        "instagram_posts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("post_date", sa.Date(), nullable=False),
        sa.Column("movie_id", sa.Integer(), nullable=True),
        sa.Column("screening_id", sa.Integer(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.String(length=100), nullable=False),
        sa.Column("candidates_checked", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["movie_id"], ["movies.id"], name="fk_instagram_posts_movie_id_movies"
        ),
        sa.ForeignKeyConstraint(
            ["screening_id"],
            ["screenings.id"],
            name="fk_instagram_posts_screening_id_screenings",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_instagram_posts"),
        sa.UniqueConstraint("post_date", name="uq_instagram_posts_post_date"),
    )
    op.create_index(
        "idx_instagram_posts_published_date",
        "instagram_posts",
        ["post_date"],
        postgresql_where=sa.text("published = true"),
    )

    op.create_table(
        "job_runs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_name", sa.String(length=100), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("records_processed", sa.Integer(), nullable=True, default=0),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_job_runs"),
    )


def downgrade() -> None:
    op.drop_table("job_runs")
    op.drop_index("idx_instagram_posts_published_date", table_name="instagram_posts")
    op.drop_table("instagram_posts")
    op.drop_index("idx_screenings_movie_date", table_name="screenings")
    op.drop_table("screenings")
    op.drop_table("movies_genres")
    op.drop_index("idx_movies_production_year", table_name="movies")
    op.drop_table("movies")
    op.drop_table("genres")
    op.drop_table("cinemas")
    op.drop_table("cities")
