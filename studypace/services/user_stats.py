import logging
from datetime import date
from typing import Callable

from sqlalchemy import func
from sqlalchemy.orm import Session

from studypace.database import insert_if_absent
from studypace.models import UserStats, Document
from studypace.core import stats as stat_rules
from studypace.core.stats import StatAggregate


class UserStatsService:
    """
    Read-modify-write access to the UserStats row.

    Every mutation re-reads the stored row (populate_existing, row lock where
    the database supports it), runs one of the pure functions in core.stats
    and writes the result back.
    NOTE: Caller must run db.commit() to persist changes.
    """

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)

    def ensure(self) -> None:
        """Create the row with its defaults if the user has none yet."""
        if insert_if_absent(self.db, UserStats, ["user_id"], user_id=self.user_id):
            self.logger.info(f"Created stats for user {self.user_id}")

    def get_stats(self) -> UserStats:
        self.ensure()
        return self._load()

    def peek(self) -> StatAggregate:
        """Current aggregate without creating a row; defaults if there is none."""
        record = self.db.query(UserStats).filter(UserStats.user_id == self.user_id).first()
        return StatAggregate.from_record(record) if record else StatAggregate()

    def _load(self) -> UserStats:
        return self.db.query(UserStats).filter(
            UserStats.user_id == self.user_id
        ).populate_existing().with_for_update().one()

    def _apply(self, rule: Callable[..., StatAggregate], *args) -> UserStats:
        self.ensure()
        record = self._load()
        updated = rule(StatAggregate.from_record(record), *args)
        updated.apply_to(record)
        self.db.flush()
        return record

    def record_page(self, seconds: int, newly_completed: bool, today: date) -> UserStats:
        return self._apply(stat_rules.record_page, seconds, newly_completed, today)

    def record_session(self, duration_seconds: int, focus_score: float, today: date) -> UserStats:
        return self._apply(stat_rules.record_session, duration_seconds, focus_score, today)

    def add_xp(self, points: int) -> UserStats:
        record = self._apply(stat_rules.add_xp, points)
        self.logger.info(
            f"User {self.user_id} +{points} XP (total {record.total_xp_points}, level {record.current_level})"
        )
        return record

    def recount_documents(self) -> UserStats:
        """total_documents is recomputed from the documents table, not incremented."""
        count = self.db.query(func.count(Document.id)).filter(Document.user_id == self.user_id).scalar()
        return self._apply(stat_rules.with_document_count, count or 0)
