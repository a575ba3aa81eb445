import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, case, and_
from sqlalchemy.orm import Session

from studypace.database import dialect_insert, utcnow
from studypace.models import DailyAnalytics, StudySession, Document, PageRecord
from studypace.core.analytics import (
    TIME_OF_DAY_BUCKETS,
    time_of_day_bucket,
    session_minutes,
    analyze_study_patterns,
    period_days,
    performance_trends,
    velocity_trends,
    efficiency_trends,
    velocity_prediction,
    productivity_score,
    weekly_summary,
)
from studypace.core.focus import NEUTRAL_FOCUS
from studypace.services.achievements import AchievementService
from studypace.services.user_stats import UserStatsService

PATTERN_SESSION_LIMIT = 100
DASHBOARD_RECENT_SESSIONS = 10
DASHBOARD_RECENT_ACHIEVEMENTS = 5
PRIORITY_DOCUMENTS = 3


class AnalyticsService:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)

    def fold(self, day: date, session: StudySession, now: Optional[datetime] = None) -> None:
        """
        Add one finished session to the (user, day) rollup.

        Single INSERT .. ON CONFLICT DO UPDATE: the first session of the day
        creates the row, later ones add to it. Every SET expression reads the
        pre-update row, so the focus mean uses the old count.
        Must run exactly once per session; SessionService guarantees that.
        NOTE: Caller must run db.commit() to persist changes.
        """
        now = now or utcnow()
        focus = session.focus_score if session.focus_score is not None else NEUTRAL_FOCUS
        bucket = f"{time_of_day_bucket(session.started_at.hour)}_minutes"

        values = {
            "user_id": self.user_id,
            "date": day,
            "total_pages_read": session.pages_covered or 0,
            "total_time_seconds": session.total_duration_seconds or 0,
            "study_sessions_count": 1,
            "focus_score_average": focus,
            "created_at": now,
            "updated_at": now,
        }
        for name in TIME_OF_DAY_BUCKETS:
            values[f"{name}_minutes"] = 0.0
        values[bucket] = session_minutes(session.total_duration_seconds)

        stmt = dialect_insert(self.db, DailyAnalytics).values(**values)
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "date"],
            set_={
                "total_pages_read": DailyAnalytics.total_pages_read + excluded.total_pages_read,
                "total_time_seconds": DailyAnalytics.total_time_seconds + excluded.total_time_seconds,
                "study_sessions_count": DailyAnalytics.study_sessions_count + 1,
                "focus_score_average": (
                    DailyAnalytics.focus_score_average * DailyAnalytics.study_sessions_count
                    + excluded.focus_score_average
                ) / (DailyAnalytics.study_sessions_count + 1),
                bucket: getattr(DailyAnalytics, bucket) + getattr(excluded, bucket),
                "updated_at": now,
            },
        )
        self.db.execute(stmt)
        self.logger.debug(f"Folded session {session.id} into {day} for user {self.user_id}")

    def get_day(self, day: date) -> Optional[DailyAnalytics]:
        return self.db.query(DailyAnalytics).filter(
            DailyAnalytics.user_id == self.user_id,
            DailyAnalytics.date == day
        ).populate_existing().first()

    def daily(self, days: int = 30, today: Optional[date] = None) -> List[DailyAnalytics]:
        today = today or utcnow().date()
        since = today - timedelta(days=days - 1)
        return self.db.query(DailyAnalytics).filter(
            DailyAnalytics.user_id == self.user_id,
            DailyAnalytics.date >= since,
            DailyAnalytics.date <= today
        ).order_by(DailyAnalytics.date).all()

    def study_patterns(self) -> dict:
        sessions = self.db.query(StudySession).filter(
            StudySession.user_id == self.user_id,
            StudySession.ended_at.isnot(None)
        ).order_by(StudySession.started_at.desc()).limit(PATTERN_SESSION_LIMIT).all()
        return analyze_study_patterns(sessions)

    def _finished_sessions_since(self, since: date) -> List[StudySession]:
        return self.db.query(StudySession).filter(
            StudySession.user_id == self.user_id,
            StudySession.ended_at.isnot(None),
            StudySession.started_at >= datetime.combine(since, datetime.min.time())
        ).order_by(StudySession.started_at, StudySession.id).all()

    def trends(self, period: str = "30d", metric: str = "speed", today: Optional[date] = None) -> dict:
        """Trend line for one metric over the daily rollups of a 7d/30d/90d window."""
        days = period_days(period)
        today = today or utcnow().date()

        rows = self.daily(days, today)
        trend = performance_trends(rows, metric)
        sessions = self._finished_sessions_since(today - timedelta(days=days - 1))

        return {
            "trends": trend,
            "period": period,
            "metric": metric,
            "summary": {
                "total_study_days": len(rows),
                "total_sessions": len(sessions),
                "average_daily_pages": trend["average_daily_pages"],
                "improvement_percentage": trend["improvement_percentage"],
                "consistency_score": trend["consistency_score"],
            },
        }

    def velocity(self, period: str = "30d", today: Optional[date] = None) -> dict:
        """Pages per hour by day, per-session efficiency and where the pace is heading."""
        days = period_days(period)
        today = today or utcnow().date()

        sessions = self._finished_sessions_since(today - timedelta(days=days - 1))
        by_day = velocity_trends(sessions)
        prediction = velocity_prediction(by_day)

        average = round(sum(d["pages_per_hour"] for d in by_day) / len(by_day), 1) if by_day else 0.0
        return {
            "velocity_trends": by_day,
            "efficiency_trends": efficiency_trends(sessions),
            "predictions": prediction,
            "period": period,
            "summary": {
                "average_pages_per_hour": average,
                "trend_direction": prediction["trend_direction"],
                "improvement_rate": prediction["improvement_rate"],
            },
        }

    def _document_progress(self, since: datetime) -> List[dict]:
        rows = self.db.query(
            Document.id,
            Document.title,
            Document.total_pages,
            func.count(case((PageRecord.is_completed == True, 1))),
            func.max(PageRecord.last_read_at),
        ).outerjoin(
            PageRecord,
            and_(PageRecord.document_id == Document.id, PageRecord.user_id == self.user_id)
        ).filter(
            Document.user_id == self.user_id
        ).group_by(Document.id, Document.title, Document.total_pages).order_by(Document.id).all()

        return [
            {
                "id": doc_id,
                "title": title,
                "total_pages": total_pages or 0,
                "completed_pages": completed,
                "completion_percentage": round(completed / total_pages * 100) if total_pages else 0,
                "recently_read": last_read is not None and last_read >= since,
            }
            for doc_id, title, total_pages, completed, last_read in rows
        ]

    def dashboard(self, now: Optional[datetime] = None) -> dict:
        """
        One payload for the home screen: totals, performance, the last week,
        recent sessions and achievements, and the 30 day reading velocity.
        Reading it creates nothing.
        """
        now = now or utcnow()
        today = now.date()

        stats = UserStatsService(self.db, self.user_id).peek()
        documents = self._document_progress(now - timedelta(days=7))
        total_pages = sum(d["total_pages"] for d in documents)
        completed_pages = sum(d["completed_pages"] for d in documents)

        recent_sessions = self.db.query(StudySession).filter(
            StudySession.user_id == self.user_id
        ).order_by(StudySession.started_at.desc(), StudySession.id.desc()).limit(DASHBOARD_RECENT_SESSIONS).all()
        week = weekly_summary(
            self._finished_sessions_since(today - timedelta(days=6)), stats.focus_score_average, today
        )

        priority = [
            {key: d[key] for key in ("id", "title", "completion_percentage")}
            for d in documents
            if d["recently_read"] and d["completed_pages"] < d["total_pages"]
        ][:PRIORITY_DOCUMENTS]

        achievements = AchievementService(self.db, self.user_id).recent(DASHBOARD_RECENT_ACHIEVEMENTS)

        return {
            "overview": {
                "total_documents": len(documents),
                "total_pages": total_pages,
                "completed_pages": completed_pages,
                "completion_percentage": round(completed_pages / total_pages * 100) if total_pages else 0,
                "total_time_spent_seconds": stats.total_time_spent_seconds,
                "current_streak_days": stats.current_streak_days,
                "current_level": stats.current_level,
                "total_xp_points": stats.total_xp_points,
            },
            "performance": {
                "average_reading_speed_seconds": stats.average_reading_speed_seconds,
                "focus_score_average": stats.focus_score_average,
                "productivity_score": productivity_score(
                    stats.average_reading_speed_seconds,
                    stats.focus_score_average,
                    stats.current_streak_days,
                ),
                "reading_consistency": week["reading_consistency"],
                "improvement_trend": week["focus_trend"],
            },
            "weekly_summary": week,
            "priority_documents": priority,
            "recent_activity": [
                {
                    "id": s.id,
                    "document_title": s.document.title if s.document else None,
                    "duration_minutes": round((s.total_duration_seconds or 0) / 60),
                    "pages_covered": s.pages_covered,
                    "focus_score": s.focus_score,
                    "is_active": s.is_active,
                    "date": s.started_at,
                }
                for s in recent_sessions
            ],
            "achievements": [
                {
                    "code": ua.achievement.code,
                    "name": ua.achievement.name,
                    "icon": ua.achievement.icon,
                    "points": ua.achievement.points,
                    "earned_at": ua.earned_at,
                }
                for ua in achievements
            ],
            "reading_velocity": [
                {
                    "date": row.date,
                    "total_pages_read": row.total_pages_read,
                    "total_time_seconds": row.total_time_seconds,
                    "average_page_time": row.average_page_time,
                }
                for row in self.daily(30, today)
            ],
        }
