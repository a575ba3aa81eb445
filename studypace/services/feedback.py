import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from studypace.models import ReadingFeedback, StudySession
from studypace.core import pace
from studypace.core.errors import NotFoundError
from studypace.core.pace import PaceResult
from studypace.services.documents import DocumentService
from studypace.services.progress import ProgressService
from studypace.services.user_stats import UserStatsService


class FeedbackService:
    """Real-time pace feedback. Read-only on stats; every result is logged as a ReadingFeedback row."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)

    def get_feedback(self,
                     page_time_s: float,
                     document_id: Optional[int] = None,
                     activity_level: float = 1.0,
                     page_number: Optional[int] = None,
                     session_id: Optional[int] = None) -> Tuple[PaceResult, ReadingFeedback]:
        """
        Classify the time spent on the current page.
        Falls back to default constants when there is no history.
        NOTE: Caller must run db.commit() to persist changes.
        """
        difficulty = 3
        history_avg = None

        if document_id is not None:
            documents = DocumentService(self.db, self.user_id)
            documents.get_document(document_id)
            difficulty = documents.document_difficulty(document_id, page_number)
            history_avg = ProgressService(self.db, self.user_id).completed_page_average(document_id)

        if session_id is not None:
            owned = self.db.query(StudySession.id).filter(
                StudySession.id == session_id,
                StudySession.user_id == self.user_id
            ).first()
            if not owned:
                raise NotFoundError(f"Session {session_id} not found")

        personal_avg = UserStatsService(self.db, self.user_id).peek().average_reading_speed_seconds

        result = pace.classify(
            page_time_s,
            personal_avg,
            document_difficulty=difficulty,
            activity_level=activity_level,
            history_avg=history_avg,
        )

        record = ReadingFeedback(
            user_id=self.user_id,
            document_id=document_id,
            session_id=session_id,
            page_number=page_number,
            feedback_type=result.type.value,
            message=result.message,
            encouragement_level=result.encouragement_level,
            page_time_seconds=page_time_s,
            expected_time_seconds=result.difficulty_adjusted_average,
            activity_level=activity_level,
        )
        self.db.add(record)
        self.db.flush()

        return result, record

    def session_encouragement_levels(self, session_id: int) -> List[int]:
        rows = self.db.query(ReadingFeedback.encouragement_level).filter(
            ReadingFeedback.user_id == self.user_id,
            ReadingFeedback.session_id == session_id
        ).all()
        return [level for (level,) in rows]

    def recent_feedback(self, limit: int = 20) -> List[ReadingFeedback]:
        return self.db.query(ReadingFeedback).filter(
            ReadingFeedback.user_id == self.user_id
        ).order_by(ReadingFeedback.created_at.desc(), ReadingFeedback.id.desc()).limit(limit).all()
