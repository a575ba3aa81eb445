import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from studypace.database import utcnow
from studypace.models import Sprint, PageRecord, UserAchievement
from studypace.core.errors import NotFoundError, ConflictError, InvalidInputError, require_non_negative, require_rating
from studypace.core.estimates import suggest_sprint, SprintSuggestion
from studypace.core.stats import sprint_xp
from studypace.services.documents import DocumentService
from studypace.services.user_stats import UserStatsService
from studypace.services.achievements import AchievementService


@dataclass
class SprintCompletion:
    sprint: Sprint
    xp_awarded: int
    new_achievements: List[UserAchievement]


class SprintService:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)
        self.documents = DocumentService(db, user_id)

    def completed_pages(self, document_id: int) -> int:
        return self.db.query(func.count(PageRecord.id)).filter(
            PageRecord.user_id == self.user_id,
            PageRecord.document_id == document_id,
            PageRecord.is_completed == True
        ).scalar() or 0

    def suggest(self, document_id: int, preferred_session_seconds: Optional[int] = None) -> SprintSuggestion:
        document = self.documents.get_document(document_id)
        avg = UserStatsService(self.db, self.user_id).peek().average_reading_speed_seconds
        return suggest_sprint(
            document.total_pages or 0,
            self.completed_pages(document_id),
            avg,
            preferred_session_seconds,
        )

    def get_sprint(self, sprint_id: int) -> Sprint:
        sprint = self.db.query(Sprint).filter(
            Sprint.id == sprint_id,
            Sprint.user_id == self.user_id
        ).first()
        if not sprint:
            raise NotFoundError(f"Sprint {sprint_id} not found")
        return sprint

    def list_sprints(self, document_id: Optional[int] = None, limit: int = 20) -> List[Sprint]:
        query = self.db.query(Sprint).filter(Sprint.user_id == self.user_id)
        if document_id is not None:
            query = query.filter(Sprint.document_id == document_id)
        return query.order_by(Sprint.created_at.desc(), Sprint.id.desc()).limit(limit).all()

    def create_sprint(self, document_id: int, preferred_session_seconds: Optional[int] = None) -> Sprint:
        """
        Create a sprint from the current suggestion for the document.
        NOTE: Caller must run db.commit() to persist changes.
        """
        suggestion = self.suggest(document_id, preferred_session_seconds)
        if suggestion.document_complete:
            raise ConflictError(f"Document {document_id} is already complete")

        sprint = Sprint(
            user_id=self.user_id,
            document_id=document_id,
            start_page=suggestion.start_page,
            end_page=suggestion.end_page,
            estimated_seconds=suggestion.estimated_seconds,
        )
        self.db.add(sprint)
        self.db.flush()
        return sprint

    def complete_sprint(self,
                        sprint_id: int,
                        pages_completed: int,
                        completion_quality: int,
                        now: Optional[datetime] = None) -> SprintCompletion:
        """
        Finish a sprint, award XP and re-check achievements.
        NOTE: Caller must run db.commit() to persist changes.
        """
        require_non_negative(pages_completed=pages_completed)
        require_rating("completion_quality", completion_quality)
        now = now or utcnow()

        sprint = self.get_sprint(sprint_id)
        planned = sprint.end_page - sprint.start_page + 1
        if pages_completed > planned:
            raise InvalidInputError(f"pages_completed cannot exceed the sprint size ({planned})")

        # Conditional update: a sprint is completed (and rewarded) once
        updated = self.db.query(Sprint).filter(
            Sprint.id == sprint.id,
            Sprint.completed == False
        ).update({
            Sprint.completed: True,
            Sprint.pages_completed: pages_completed,
            Sprint.completion_quality: completion_quality,
            Sprint.completed_at: now,
        }, synchronize_session=False)
        if updated == 0:
            raise ConflictError(f"Sprint {sprint_id} is already completed")

        stats_service = UserStatsService(self.db, self.user_id)
        streak = stats_service.get_stats().current_streak_days
        xp = sprint_xp(completion_quality, streak)
        stats_service.add_xp(xp)

        sprint.xp_awarded = xp
        self.db.flush()
        self.db.refresh(sprint)

        new_achievements = AchievementService(self.db, self.user_id).check_and_award(now)
        self.logger.info(f"User {self.user_id} completed sprint {sprint.id} (quality {completion_quality}, +{xp} XP)")
        return SprintCompletion(sprint=sprint, xp_awarded=xp, new_achievements=new_achievements)
