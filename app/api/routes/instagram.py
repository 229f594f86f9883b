"""Daily Instagram candidate endpoint."""

from datetime import date

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_candidate_service
from app.services.candidates import CandidateService, DecisionReferenceError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/instagram", tags=["instagram"])


@router.get("/candidate")
async def get_candidate(
    target_date: date | None = Query(
        None,
        alias="date",
        description="Decision date (YYYY-MM-DD); defaults to today in the reference timezone",
    ),
    service: CandidateService = Depends(get_candidate_service),
):
    """
    Get the featured screening for a day.

    The first request for a date computes and stores the decision; every
    later request for that date returns the stored decision unchanged.
    """
    try:
        result = await service.get_candidate(target_date)
    except DecisionReferenceError as e:
        logger.warning("candidate_not_found", error=str(e))
        raise HTTPException(status_code=404, detail=str(e)) from e

    return result.to_dict()
