import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from studypace.database import utcnow
from studypace.models import PageRecord, UserStats
from studypace.core.errors import require_non_negative
from studypace.core.estimates import format_duration, words_per_minute
from studypace.services.documents import DocumentService
from studypace.services.user_stats import UserStatsService


@dataclass
class PageProgress:
    page: PageRecord
    stats: UserStats
    newly_completed: bool
    seconds: int

    @property
    def formatted_time(self) -> str:
        return format_duration(self.seconds)

    @property
    def words_per_minute(self) -> int:
        return words_per_minute(self.seconds)


class ProgressService:
    """
    Page completion events.
    Refactored to use 'Flush' instead of 'Commit'; routers own the transaction.
    """

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)
        self.documents = DocumentService(db, user_id)

    def record_page_progress(self,
                             document_id: int,
                             page_number: int,
                             seconds: int,
                             now: Optional[datetime] = None) -> PageProgress:
        """
        Add reading time to a page and mark it completed.
        NOTE: Caller must run db.commit() to persist changes.
        """
        require_non_negative(seconds=seconds)
        now = now or utcnow()

        document = self.documents.get_document(document_id)
        self.documents.validate_page(document, page_number)
        page = self.documents.get_or_create_page(document_id, page_number)

        # Time is added in SQL so two concurrent saves both count
        self.db.query(PageRecord).filter(PageRecord.id == page.id).update(
            {
                PageRecord.time_spent_seconds: PageRecord.time_spent_seconds + seconds,
                PageRecord.last_read_at: now,
            },
            synchronize_session=False
        )

        # Only the request that flips the flag counts the page
        flipped = self.db.query(PageRecord).filter(
            PageRecord.id == page.id,
            PageRecord.is_completed == False
        ).update({PageRecord.is_completed: True}, synchronize_session=False)
        newly_completed = flipped == 1

        self.db.refresh(page)

        stats = UserStatsService(self.db, self.user_id).record_page(seconds, newly_completed, now.date())

        self.logger.debug(
            f"User {self.user_id} doc {document_id} page {page_number}: +{seconds}s"
            f"{' (completed)' if newly_completed else ''}"
        )
        return PageProgress(page=page, stats=stats, newly_completed=newly_completed, seconds=seconds)

    def completed_page_average(self, document_id: int) -> Optional[float]:
        """Mean time on already completed pages of a document, None without history."""
        avg = self.db.query(func.avg(PageRecord.time_spent_seconds)).filter(
            PageRecord.user_id == self.user_id,
            PageRecord.document_id == document_id,
            PageRecord.is_completed == True,
            PageRecord.time_spent_seconds > 0
        ).scalar()
        return float(avg) if avg is not None else None

    def document_progress(self, document_id: int) -> dict:
        document = self.documents.get_document(document_id)

        completed_pages, time_spent = self.db.query(
            func.count(PageRecord.id),
            func.coalesce(func.sum(PageRecord.time_spent_seconds), 0)
        ).filter(
            PageRecord.user_id == self.user_id,
            PageRecord.document_id == document_id,
            PageRecord.is_completed == True
        ).one()

        last_read = self.db.query(func.max(PageRecord.last_read_at)).filter(
            PageRecord.user_id == self.user_id,
            PageRecord.document_id == document_id
        ).scalar()

        total = document.total_pages or 0
        return {
            "document_id": document.id,
            "title": document.title,
            "total_pages": total,
            "completed_pages": completed_pages,
            "pages_remaining": max(0, total - completed_pages),
            "progress_percentage": round(completed_pages / total * 100, 1) if total else 0.0,
            "time_spent_seconds": int(time_spent),
            "formatted_time_spent": format_duration(time_spent),
            "average_page_seconds": round(time_spent / completed_pages, 1) if completed_pages else None,
            "last_read_at": last_read,
        }
