from fastapi import APIRouter

from studypace.api.deps import SessionDep, CurrentUser, http_error
from studypace.core.estimates import format_duration
from studypace.services.estimates import EstimateService

router = APIRouter()


def _estimate_payload(estimate) -> dict:
    return {
        "remaining_seconds": estimate.remaining_seconds,
        "formatted_remaining": estimate.formatted,
        "remaining_pages": estimate.remaining_pages,
        "total_pages": estimate.total_pages,
        "percentage_remaining": estimate.percentage_remaining,
        "completion_date": estimate.completion_date,
        "personalized": estimate.blended,
        "speed_ratio": estimate.speed_ratio,
    }


@router.get("/", name="backlog_estimate")
async def get_backlog_estimate(db: SessionDep, user: CurrentUser):
    """Time needed to finish every unfinished document."""
    backlog = EstimateService(db, user.id).get_backlog_estimate()
    return {
        "documents": [
            {"document_id": document.id, "title": document.title, **_estimate_payload(estimate)}
            for document, estimate in backlog["documents"]
        ],
        "total_remaining_seconds": backlog["total_remaining_seconds"],
        "formatted_total": format_duration(backlog["total_remaining_seconds"]),
        "total_remaining_pages": backlog["total_remaining_pages"],
        "daily_study_seconds": backlog["daily_study_seconds"],
        "completion_date": backlog["completion_date"],
    }


@router.get("/{document_id}", name="document_estimate")
async def get_document_estimate(document_id: int, db: SessionDep, user: CurrentUser):
    try:
        estimate = EstimateService(db, user.id).get_remaining_estimate(document_id)
    except ValueError as e:
        raise http_error(e)
    return {"document_id": document_id, **_estimate_payload(estimate)}
