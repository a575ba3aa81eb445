import logging
from fastapi import APIRouter, Depends, HTTPException
from typing import Annotated

from studypace.api.deps import SessionDep, CurrentUser, http_error
from studypace.schemas.documents import DocumentCreate, PageAnalysisUpdate
from studypace.services.documents import DocumentService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_document_service(db: SessionDep, user: CurrentUser) -> DocumentService:
    return DocumentService(db, user_id=user.id)


def _document_payload(document) -> dict:
    return {
        "id": document.id,
        "title": document.title,
        "file_name": document.file_name,
        "total_pages": document.total_pages,
        "created_at": document.created_at,
    }


@router.post("/", status_code=201, name="create_document")
async def create_document(
        request: DocumentCreate,
        service: Annotated[DocumentService, Depends(get_document_service)],
        db: SessionDep
):
    """Register a document uploaded through the upload service."""
    try:
        document = service.create_document(request.title, request.total_pages, request.file_name)
        db.commit()
        db.refresh(document)
        return _document_payload(document)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create document: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/", name="list_documents")
async def list_documents(service: Annotated[DocumentService, Depends(get_document_service)]):
    return [_document_payload(d) for d in service.list_documents()]


@router.put("/{document_id}/pages/{page_number}/analysis", name="page_analysis")
async def update_page_analysis(
        document_id: int,
        page_number: int,
        request: PageAnalysisUpdate,
        service: Annotated[DocumentService, Depends(get_document_service)],
        db: SessionDep
):
    """
    Store the per-page estimate and difficulty produced by document analysis.
    These feed the remaining-time estimate and the pace classifier.
    """
    try:
        page = service.record_page_analysis(
            document_id,
            page_number,
            estimated_time_seconds=request.estimated_time_seconds,
            difficulty_rating=request.difficulty_rating
        )
        db.commit()
        db.refresh(page)
        return {
            "document_id": document_id,
            "page_number": page.page_number,
            "estimated_time_seconds": page.estimated_time_seconds,
            "difficulty_rating": page.difficulty_rating,
            "is_completed": page.is_completed,
        }
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
