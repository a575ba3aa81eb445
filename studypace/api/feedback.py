from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Annotated

from studypace.api.deps import SessionDep, CurrentUser, http_error
from studypace.schemas.progress import FeedbackRequest
from studypace.services.feedback import FeedbackService
from studypace.core.pace import focus_indicator

router = APIRouter()


def get_feedback_service(db: SessionDep, user: CurrentUser) -> FeedbackService:
    return FeedbackService(db, user_id=user.id)


@router.post("/", name="reading_feedback")
async def get_reading_feedback(
        request: FeedbackRequest,
        service: Annotated[FeedbackService, Depends(get_feedback_service)],
        db: SessionDep
):
    """
    Real-time pace feedback for the page being read.
    Works without any history: the classifier falls back to 120s/page.
    """
    try:
        result, record = service.get_feedback(
            request.page_time_seconds,
            document_id=request.document_id,
            activity_level=request.activity_level,
            page_number=request.page_number,
            session_id=request.session_id
        )
        db.commit()
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "id": record.id,
        "type": result.type.value,
        "message": result.message,
        "encouragement_level": result.encouragement_level,
        "suggestions": result.suggestions,
        "metrics": {
            "current_time": result.current_time,
            "personal_average": result.personal_average,
            "difficulty_adjusted_average": result.difficulty_adjusted_average,
            "difference_seconds": result.difference_seconds,
            "pace_description": result.pace_description,
            "focus_indicator": focus_indicator(request.activity_level),
        }
    }


@router.get("/", name="recent_feedback")
async def get_recent_feedback(
        service: Annotated[FeedbackService, Depends(get_feedback_service)],
        limit: int = Query(20, ge=1, le=100)
):
    return [
        {
            "id": f.id,
            "document_id": f.document_id,
            "page_number": f.page_number,
            "type": f.feedback_type,
            "message": f.message,
            "encouragement_level": f.encouragement_level,
            "page_time_seconds": f.page_time_seconds,
            "created_at": f.created_at,
        }
        for f in service.recent_feedback(limit)
    ]
