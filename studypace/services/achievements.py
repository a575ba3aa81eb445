import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, case
from sqlalchemy.orm import Session, joinedload

from studypace.config import settings
from studypace.database import insert_if_absent, utcnow
from studypace.models import Achievement, UserAchievement, Sprint, StudySession, UserStats, User
from studypace.core.achievements import (
    DEFAULT_CATALOG,
    DerivedMetrics,
    current_value,
    evaluate,
    progress_percentage,
    RequirementType,
)
from studypace.core.errors import InvalidInputError
from studypace.core.stats import StatAggregate
from studypace.services.user_stats import UserStatsService

LEADERBOARD_METRICS = {
    "xp": UserStats.total_xp_points,
    "streak": UserStats.current_streak_days,
    "pages": UserStats.total_pages_read,
    "time": UserStats.total_time_spent_seconds,
}


class AchievementService:
    """
    Awards catalog achievements.

    An award is an INSERT .. ON CONFLICT DO NOTHING on (user_id, achievement_id);
    only the call that actually created the row adds XP, so redundant or
    concurrent checks can never award twice.
    """

    def __init__(self, db: Session, user_id: Optional[int] = None):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)

    def initialize_catalog(self) -> int:
        """Seed the default catalog. Existing codes are left untouched."""
        created = 0
        for code, name, description, icon, category, requirement_type, value, points in DEFAULT_CATALOG:
            if insert_if_absent(
                self.db, Achievement, ["code"],
                code=code,
                name=name,
                description=description,
                icon=icon,
                category=category,
                requirement_type=requirement_type,
                requirement_value=value,
                points=points,
                is_active=True,
            ):
                created += 1
        if created:
            self.logger.info(f"Seeded {created} achievements")
        return created

    def catalog(self) -> List[Achievement]:
        return self.db.query(Achievement).filter(
            Achievement.is_active == True
        ).order_by(Achievement.category, Achievement.requirement_value, Achievement.id).all()

    def earned(self) -> List[UserAchievement]:
        return self.db.query(UserAchievement).options(
            joinedload(UserAchievement.achievement)
        ).filter(
            UserAchievement.user_id == self.user_id
        ).order_by(UserAchievement.earned_at.desc(), UserAchievement.id.desc()).all()

    def derived_metrics(self) -> DerivedMetrics:
        completed_sprints, perfect_sprints = self.db.query(
            func.count(Sprint.id),
            func.count(case((Sprint.completion_quality == 5, 1)))
        ).filter(
            Sprint.user_id == self.user_id,
            Sprint.completed == True
        ).one()

        high, ultra = self.db.query(
            func.count(case((StudySession.focus_score >= settings.high_focus_threshold, 1))),
            func.count(case((StudySession.focus_score >= settings.ultra_focus_threshold, 1)))
        ).filter(
            StudySession.user_id == self.user_id,
            StudySession.ended_at.isnot(None)
        ).one()

        return DerivedMetrics(
            completed_sprints=completed_sprints,
            perfect_sprints=perfect_sprints,
            high_focus_sessions=high,
            ultra_focus_sessions=ultra,
        )

    def check_and_award(self, now: Optional[datetime] = None) -> List[UserAchievement]:
        """
        Evaluate the catalog against the user's current numbers and award what's new.
        Safe to call after every page, session or sprint.
        NOTE: Caller must run db.commit() to persist changes.
        """
        now = now or utcnow()
        stats_service = UserStatsService(self.db, self.user_id)
        stats = StatAggregate.from_record(stats_service.get_stats())

        catalog = self.catalog()
        by_code = {a.code: a for a in catalog}
        already = {ua.achievement.code for ua in self.earned()}

        awarded_ids = []
        for award in evaluate(stats, self.derived_metrics(), catalog, already):
            achievement = by_code[award.code]
            created = insert_if_absent(
                self.db, UserAchievement, ["user_id", "achievement_id"],
                user_id=self.user_id,
                achievement_id=achievement.id,
                earned_at=now,
                progress_value=award.progress_value,
            )
            if not created:
                # Another request got there first
                self.logger.debug(f"Achievement '{award.code}' already earned by user {self.user_id}")
                continue

            self.logger.info(f"User {self.user_id} earned '{award.code}' (+{award.points} XP)")
            if award.points > 0:
                stats_service.add_xp(award.points)
            awarded_ids.append(achievement.id)

        if not awarded_ids:
            return []

        return self.db.query(UserAchievement).options(
            joinedload(UserAchievement.achievement)
        ).filter(
            UserAchievement.user_id == self.user_id,
            UserAchievement.achievement_id.in_(awarded_ids)
        ).order_by(UserAchievement.id).all()

    def overview(self) -> List[dict]:
        """Every catalog entry with the user's earned state or progress towards it."""
        stats = UserStatsService(self.db, self.user_id).peek()
        metrics = self.derived_metrics()
        earned = {ua.achievement_id: ua for ua in self.earned()}

        items = []
        for achievement in self.catalog():
            ua = earned.get(achievement.id)
            requirement = RequirementType.parse(achievement.requirement_type)
            value = current_value(requirement, stats, metrics) if requirement else 0
            items.append({
                "code": achievement.code,
                "name": achievement.name,
                "description": achievement.description,
                "icon": achievement.icon,
                "category": achievement.category,
                "requirement_type": achievement.requirement_type,
                "requirement_value": achievement.requirement_value,
                "points": achievement.points,
                "earned": ua is not None,
                "earned_at": ua.earned_at if ua else None,
                "current_value": value,
                "progress_percentage": 100.0 if ua else progress_percentage(
                    achievement.requirement_type, value, achievement.requirement_value
                ),
            })
        return items

    def recent(self, limit: int = 5) -> List[UserAchievement]:
        return self.earned()[:limit]

    def leaderboard(self, metric: str = "xp", limit: int = 10) -> List[dict]:
        column = LEADERBOARD_METRICS.get(metric)
        if column is None:
            raise InvalidInputError(
                f"Unknown leaderboard metric '{metric}' (expected one of {', '.join(LEADERBOARD_METRICS)})"
            )

        rows = self.db.query(User.username, UserStats).join(
            UserStats, UserStats.user_id == User.id
        ).filter(
            User.is_active == True
        ).order_by(column.desc(), UserStats.user_id).limit(limit).all()

        return [
            {
                "rank": rank,
                "username": username,
                "value": getattr(stats, column.key),
                "level": stats.current_level,
                "total_xp_points": stats.total_xp_points,
                "is_current_user": stats.user_id == self.user_id,
            }
            for rank, (username, stats) in enumerate(rows, start=1)
        ]
