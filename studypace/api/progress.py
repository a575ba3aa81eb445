from fastapi import APIRouter, Depends, HTTPException
from typing import Annotated

from studypace.api.deps import SessionDep, CurrentUser, http_error
from studypace.schemas.progress import PageCompleteRequest
from studypace.services.progress import ProgressService
from studypace.services.estimates import EstimateService

router = APIRouter()


# Helper to initialize service with the CORRECT user
def get_progress_service(db: SessionDep, user: CurrentUser) -> ProgressService:
    return ProgressService(db, user_id=user.id)


@router.post("/pages/complete", name="complete_page")
async def complete_page(
        request: PageCompleteRequest,
        service: Annotated[ProgressService, Depends(get_progress_service)],
        db: SessionDep
):
    """
    Record the time spent on a page and mark it completed.
    Transactions are committed here (Controller layer).
    """
    try:
        result = service.record_page_progress(
            request.document_id,
            request.page_number,
            request.time_spent_seconds
        )
        db.commit()
        db.refresh(result.stats)

        stats = result.stats
        return {
            "document_id": request.document_id,
            "page_number": request.page_number,
            "newly_completed": result.newly_completed,
            "page_time_spent_seconds": result.page.time_spent_seconds,
            "formatted_time": result.formatted_time,
            "words_per_minute": result.words_per_minute,
            "stats": {
                "total_pages_read": stats.total_pages_read,
                "total_time_spent_seconds": stats.total_time_spent_seconds,
                "average_reading_speed_seconds": round(stats.average_reading_speed_seconds, 1),
                "current_streak_days": stats.current_streak_days,
                "longest_streak_days": stats.longest_streak_days,
            }
        }
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/documents/{document_id}", name="document_progress")
async def get_document_progress(
        document_id: int,
        service: Annotated[ProgressService, Depends(get_progress_service)],
):
    """Per-document progress with the remaining-time estimate."""
    try:
        progress = service.document_progress(document_id)
        estimate = EstimateService(service.db, service.user_id).get_remaining_estimate(document_id)
    except ValueError as e:
        raise http_error(e)

    progress["estimated_remaining_seconds"] = estimate.remaining_seconds
    progress["formatted_remaining"] = estimate.formatted
    progress["estimated_completion_date"] = estimate.completion_date
    return progress
