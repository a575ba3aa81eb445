import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from studypace.config import settings
from studypace.database import utcnow
from studypace.models import Document, PageRecord, StudySession
from studypace.core import estimates
from studypace.core.estimates import RemainingEstimate
from studypace.services.documents import DocumentService
from studypace.services.user_stats import UserStatsService


class EstimateService:
    """Remaining time for one document or the user's whole backlog."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)

    def daily_study_seconds(self, today: date) -> float:
        """Mean study time per active day over the lookback window."""
        since = datetime.combine(today - timedelta(days=settings.daily_study_lookback_days), time.min)
        rows = self.db.query(StudySession.ended_at, StudySession.total_duration_seconds).filter(
            StudySession.user_id == self.user_id,
            StudySession.ended_at.isnot(None),
            StudySession.ended_at >= since
        ).all()

        by_day = defaultdict(int)
        for ended_at, duration in rows:
            by_day[ended_at.date()] += duration or 0
        return estimates.daily_study_seconds(by_day)

    def _pages(self, document_id: int):
        return self.db.query(PageRecord).filter(
            PageRecord.user_id == self.user_id,
            PageRecord.document_id == document_id
        ).all()

    def get_remaining_estimate(self, document_id: int, today: Optional[date] = None) -> RemainingEstimate:
        today = today or utcnow().date()
        document = DocumentService(self.db, self.user_id).get_document(document_id)
        avg = UserStatsService(self.db, self.user_id).peek().average_reading_speed_seconds

        return estimates.estimate_remaining(
            self._pages(document_id),
            document.total_pages or 0,
            avg,
            daily_seconds=self.daily_study_seconds(today),
            today=today,
        )

    def get_backlog_estimate(self, today: Optional[date] = None) -> dict:
        today = today or utcnow().date()
        avg = UserStatsService(self.db, self.user_id).peek().average_reading_speed_seconds
        daily = self.daily_study_seconds(today)

        documents = self.db.query(Document).filter(
            Document.user_id == self.user_id
        ).order_by(Document.id).all()

        items = []
        total_seconds = 0
        total_pages = 0
        for document in documents:
            estimate = estimates.estimate_remaining(
                self._pages(document.id),
                document.total_pages or 0,
                avg,
                daily_seconds=daily,
                today=today,
            )
            if estimate.remaining_pages == 0:
                continue
            total_seconds += estimate.remaining_seconds
            total_pages += estimate.remaining_pages
            items.append((document, estimate))

        return {
            "documents": items,
            "total_remaining_seconds": total_seconds,
            "total_remaining_pages": total_pages,
            "daily_study_seconds": round(daily),
            "completion_date": estimates.completion_date(total_seconds, daily, today) if items else None,
        }
