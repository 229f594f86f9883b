"""Cooldown calculator.

Movies featured recently are split into two bands by how many days ago they
were published:

- hard band (1..hard_days): excluded from candidacy entirely
- soft band (soft_start_days..soft_end_days): eligible but penalised

Only published decisions count; skipped days never cool a movie down.
"""

from collections.abc import Iterable
from datetime import date

import structlog

from app.services.candidates.eligibility import add_days
from app.services.candidates.types import CooldownRecord, CooldownSets

logger = structlog.get_logger(__name__)

DEFAULT_HARD_DAYS = 21
DEFAULT_SOFT_START_DAYS = 22
DEFAULT_SOFT_END_DAYS = 35


def history_range(
    target: date, soft_end_days: int = DEFAULT_SOFT_END_DAYS
) -> tuple[date, date]:
    """Half-open [start, end) range of decision dates that can affect target."""
    return add_days(target, -soft_end_days), target


def compute_cooldown_sets(
    target: date,
    history: Iterable[CooldownRecord],
    *,
    hard_days: int = DEFAULT_HARD_DAYS,
    soft_start_days: int = DEFAULT_SOFT_START_DAYS,
    soft_end_days: int = DEFAULT_SOFT_END_DAYS,
) -> CooldownSets:
    """
    Partition previously published movies into hard and soft cooldown sets.

    Records outside [target - soft_end_days, target) and records without a
    movie are ignored. A movie found in both bands is only hard-excluded.

    Args:
        target: Decision date
        history: Published decisions, any order
        hard_days: Days ago (inclusive) that still hard-exclude a movie
        soft_start_days: First day ago of the soft band
        soft_end_days: Last day ago of the soft band

    Returns:
        CooldownSets with disjoint hard and soft ids
    """
    hard: set[int] = set()
    soft: set[int] = set()

    for record in history:
        if record.movie_id is None:
            continue

        days_ago = (target - record.post_date).days
        if 1 <= days_ago <= hard_days:
            hard.add(record.movie_id)
        elif soft_start_days <= days_ago <= soft_end_days:
            soft.add(record.movie_id)

    soft -= hard

    if hard or soft:
        logger.debug(
            "cooldown_computed",
            target=target.isoformat(),
            hard=sorted(hard),
            soft=sorted(soft),
        )

    return CooldownSets(hard=frozenset(hard), soft=frozenset(soft))
