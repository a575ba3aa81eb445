from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Annotated, Optional

from studypace.api.deps import SessionDep, CurrentUser, http_error
from studypace.schemas.sprints import SprintCreate, SprintComplete
from studypace.services.sprints import SprintService

router = APIRouter()


def get_sprint_service(db: SessionDep, user: CurrentUser) -> SprintService:
    return SprintService(db, user_id=user.id)


def sprint_payload(sprint) -> dict:
    return {
        "id": sprint.id,
        "document_id": sprint.document_id,
        "start_page": sprint.start_page,
        "end_page": sprint.end_page,
        "estimated_seconds": sprint.estimated_seconds,
        "completed": sprint.completed,
        "pages_completed": sprint.pages_completed,
        "completion_quality": sprint.completion_quality,
        "xp_awarded": sprint.xp_awarded,
        "created_at": sprint.created_at,
        "completed_at": sprint.completed_at,
    }


@router.get("/suggest", name="suggest_sprint")
async def suggest_sprint(
        service: Annotated[SprintService, Depends(get_sprint_service)],
        document_id: int,
        preferred_session_seconds: Optional[int] = Query(None, ge=60)
):
    """Next page range sized to fit one study block. A finished document yields an empty sprint."""
    try:
        suggestion = service.suggest(document_id, preferred_session_seconds)
    except ValueError as e:
        raise http_error(e)

    return {
        "document_id": document_id,
        "start_page": suggestion.start_page,
        "end_page": suggestion.end_page,
        "pages": suggestion.pages,
        "estimated_seconds": suggestion.estimated_seconds,
        "document_complete": suggestion.document_complete,
    }


@router.get("/", name="list_sprints")
async def list_sprints(
        service: Annotated[SprintService, Depends(get_sprint_service)],
        document_id: Optional[int] = None,
        limit: int = Query(20, ge=1, le=100)
):
    return [sprint_payload(s) for s in service.list_sprints(document_id, limit)]


@router.post("/", status_code=201, name="create_sprint")
async def create_sprint(
        request: SprintCreate,
        service: Annotated[SprintService, Depends(get_sprint_service)],
        db: SessionDep
):
    try:
        sprint = service.create_sprint(request.document_id, request.preferred_session_seconds)
        db.commit()
        db.refresh(sprint)
        return sprint_payload(sprint)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{sprint_id}/complete", name="complete_sprint")
async def complete_sprint(
        sprint_id: int,
        request: SprintComplete,
        service: Annotated[SprintService, Depends(get_sprint_service)],
        db: SessionDep
):
    try:
        result = service.complete_sprint(sprint_id, request.pages_completed, request.completion_quality)
        db.commit()
        db.refresh(result.sprint)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "sprint": sprint_payload(result.sprint),
        "xp_awarded": result.xp_awarded,
        "new_achievements": [
            {"code": ua.achievement.code, "name": ua.achievement.name, "points": ua.achievement.points}
            for ua in result.new_achievements
        ],
    }
