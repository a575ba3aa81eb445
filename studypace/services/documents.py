import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from studypace.config import settings
from studypace.database import insert_if_absent
from studypace.models import Document, PageRecord
from studypace.core.errors import NotFoundError, InvalidInputError, require_non_negative, require_rating
from studypace.services.user_stats import UserStatsService


class DocumentService:
    """Document metadata and the upstream per-page analysis."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)

    def get_document(self, document_id: int) -> Document:
        document = self.db.query(Document).filter(
            Document.id == document_id,
            Document.user_id == self.user_id
        ).first()
        if not document:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    def list_documents(self) -> List[Document]:
        return self.db.query(Document).filter(
            Document.user_id == self.user_id
        ).order_by(Document.created_at.desc(), Document.id.desc()).all()

    def create_document(self, title: str, total_pages: int, file_name: Optional[str] = None) -> Document:
        """
        Register an uploaded document.
        NOTE: Caller must run db.commit() to persist changes.
        """
        require_non_negative(total_pages=total_pages)
        document = Document(
            user_id=self.user_id,
            title=title,
            file_name=file_name,
            total_pages=total_pages
        )
        self.db.add(document)
        self.db.flush()

        UserStatsService(self.db, self.user_id).recount_documents()
        self.logger.info(f"User {self.user_id} added document {document.id} ({total_pages} pages)")
        return document

    def validate_page(self, document: Document, page_number: int) -> None:
        if document.total_pages == 0:
            raise InvalidInputError(f"Document {document.id} has no pages (got page {page_number})")
        if page_number < 1 or page_number > document.total_pages:
            raise InvalidInputError(
                f"page_number must be between 1 and {document.total_pages} (got {page_number})"
            )

    def get_or_create_page(self, document_id: int, page_number: int) -> PageRecord:
        """Page rows are created lazily, once per (user, document, page)."""
        insert_if_absent(
            self.db, PageRecord, ["user_id", "document_id", "page_number"],
            user_id=self.user_id,
            document_id=document_id,
            page_number=page_number,
            time_spent_seconds=0,
            is_completed=False,
            estimated_time_seconds=settings.default_page_seconds,
        )
        return self.db.query(PageRecord).filter(
            PageRecord.user_id == self.user_id,
            PageRecord.document_id == document_id,
            PageRecord.page_number == page_number
        ).populate_existing().one()

    def record_page_analysis(self,
                             document_id: int,
                             page_number: int,
                             estimated_time_seconds: Optional[float] = None,
                             difficulty_rating: Optional[int] = None) -> PageRecord:
        """
        Store what the document analysis produced for a page.
        NOTE: Caller must run db.commit() to persist changes.
        """
        require_rating("difficulty_rating", difficulty_rating, allow_none=True)
        if estimated_time_seconds is not None:
            require_non_negative(estimated_time_seconds=estimated_time_seconds)

        document = self.get_document(document_id)
        self.validate_page(document, page_number)

        page = self.get_or_create_page(document_id, page_number)
        if estimated_time_seconds is not None:
            page.estimated_time_seconds = estimated_time_seconds
        if difficulty_rating is not None:
            page.difficulty_rating = difficulty_rating

        self.db.flush()
        return page

    def document_difficulty(self, document_id: int, page_number: Optional[int] = None) -> int:
        """Difficulty of a page if it was rated, else the rounded mean over the document, else 3."""
        query = self.db.query(PageRecord.page_number, PageRecord.difficulty_rating).filter(
            PageRecord.user_id == self.user_id,
            PageRecord.document_id == document_id,
            PageRecord.difficulty_rating.isnot(None)
        )
        ratings = {number: rating for number, rating in query.all()}
        if page_number in ratings:
            return ratings[page_number]
        if ratings:
            return round(sum(ratings.values()) / len(ratings))
        return 3
