"""Daily candidate selection task.

Runs the selection once per day so the decision is stored before anything
asks for it. Re-running for a date that already has a decision is a no-op
read of the stored row.
"""

import asyncio
from datetime import date, datetime, timezone

import structlog

from app.models.base import get_task_session
from app.models.domain import JobRun
from app.services.candidates import CandidateScoringEngine, CandidateService
from app.services.candidates.repository import SqlAlchemyCandidateRepository
from app.tasks import celery_app

logger = structlog.get_logger(__name__)


@celery_app.task(bind=True, soft_time_limit=90, time_limit=120)
def select_daily_candidate(self, target_date: str | None = None):
    """
    Scheduled: daily at candidate_task_hour (reference timezone)

    Args:
        target_date: Optional ISO date; defaults to today in the reference timezone

    Returns:
        The candidate result as a JSON-serialisable dict
    """
    parsed = date.fromisoformat(target_date) if target_date else None

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(_select_daily_candidate_async(self, parsed))
    finally:
        loop.close()


async def _select_daily_candidate_async(task, target_date: date | None):
    """Async implementation of the daily selection."""
    started_at = datetime.now(timezone.utc)
    job_status = "running"
    error_message = None
    outcome: dict | None = None

    async with get_task_session() as session:
        job_run = JobRun(
            job_name="select_daily_candidate",
            started_at=started_at,
            status="running",
        )
        session.add(job_run)
        await session.commit()

        try:
            engine = CandidateScoringEngine()
            repository = SqlAlchemyCandidateRepository(
                session, classic_year=engine.classic_year
            )
            service = CandidateService(repository, engine=engine)

            result = await service.get_candidate(target_date)
            outcome = result.to_dict()
            job_status = "success"

            logger.info(
                "daily_candidate_task_complete",
                date=outcome["date"],
                publish=outcome["publish"],
                duration_seconds=(datetime.now(timezone.utc) - started_at).total_seconds(),
            )

        except Exception as e:
            job_status = "failed"
            error_message = str(e)
            await session.rollback()
            logger.error(
                "daily_candidate_task_failed",
                error=str(e),
                task_id=task.request.id,
            )
            raise

        finally:
            job_run.completed_at = datetime.now(timezone.utc)
            job_run.status = job_status
            job_run.error_message = error_message
            job_run.records_processed = 1 if outcome is not None else 0
            job_run.job_metadata = (
                {"date": outcome["date"], "publish": outcome["publish"]}
                if outcome is not None
                else None
            )
            session.add(job_run)
            await session.commit()

    return outcome
