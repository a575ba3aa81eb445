import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studypace.database import utcnow
from studypace.models import StudySession, UserAchievement
from studypace.models.study_session import CompletionStatus, SessionType
from studypace.core import focus
from studypace.core.analytics import summarize_sessions
from studypace.core.errors import NotFoundError, ConflictError, InvalidInputError, require_non_negative, require_rating
from studypace.services.analytics import AnalyticsService
from studypace.services.achievements import AchievementService
from studypace.services.documents import DocumentService
from studypace.services.feedback import FeedbackService
from studypace.services.user_stats import UserStatsService

PAUSE_REASONS = ("break", "interruption", "bathroom", "snack", "other")
ACTIVITY_COUNTERS = (
    "pages_covered", "tab_switches", "app_minimized_count",
    "inactivity_periods", "focus_events", "break_time_seconds",
)


@dataclass
class SessionEnd:
    session: StudySession
    performance: focus.SessionPerformance
    new_achievements: List[UserAchievement] = field(default_factory=list)
    summary: dict = field(default_factory=dict)
    next_recommendations: List[dict] = field(default_factory=list)
    insights: List[focus.SessionInsight] = field(default_factory=list)


def _elapsed_seconds(started_at: datetime, now: datetime) -> int:
    return max(0, int((now - started_at).total_seconds()))


class StudySessionService:
    """
    Session lifecycle: start -> activity pings (pause/resume) -> end.

    Ending is a conditional UPDATE on ended_at IS NULL, so only one caller
    can finalize a session; that caller alone folds it into stats, daily
    analytics and achievements.
    """

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.logger = logging.getLogger(__name__)

    def _lookup(self, session_id: int):
        return self.db.query(StudySession).filter(
            StudySession.id == session_id,
            StudySession.user_id == self.user_id
        )

    def get_session(self, session_id: int) -> StudySession:
        session = self._lookup(session_id).first()
        if not session:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def _get_active(self, session_id: int) -> StudySession:
        # Reload so an end committed elsewhere is visible
        session = self._lookup(session_id).populate_existing().first()
        if not session:
            raise NotFoundError(f"Session {session_id} not found")
        if session.ended_at is not None:
            raise ConflictError(f"Session {session_id} has already ended")
        return session

    def _update_if_active(self, session: StudySession, values: dict) -> StudySession:
        """Write values only while ended_at is still NULL; a finalized session never changes."""
        updated = self.db.query(StudySession).filter(
            StudySession.id == session.id,
            StudySession.ended_at.is_(None)
        ).update(values, synchronize_session=False)
        if updated == 0:
            self.db.expire(session)
            raise ConflictError(f"Session {session.id} has already ended")

        self.db.refresh(session)
        return session

    def active_session(self) -> Optional[StudySession]:
        return self.db.query(StudySession).filter(
            StudySession.user_id == self.user_id,
            StudySession.ended_at.is_(None)
        ).first()

    def start_session(self,
                      document_id: Optional[int] = None,
                      session_type: str = SessionType.READING.value,
                      energy_level: int = 3,
                      session_goal: Optional[str] = None,
                      target_pages: Optional[int] = None,
                      target_duration_minutes: Optional[int] = None,
                      now: Optional[datetime] = None) -> StudySession:
        """
        Open a session. A user has at most one open session.
        NOTE: Caller must run db.commit() to persist changes.
        """
        try:
            SessionType(session_type)
        except ValueError:
            raise InvalidInputError(f"Invalid session_type '{session_type}'")
        require_rating("energy_level", energy_level)

        if document_id is not None:
            DocumentService(self.db, self.user_id).get_document(document_id)

        active = self.active_session()
        if active:
            raise ConflictError(f"Session {active.id} is still active; end it before starting another")

        session = StudySession(
            user_id=self.user_id,
            document_id=document_id,
            session_type=session_type,
            energy_level=energy_level,
            session_goal=session_goal,
            target_pages=target_pages,
            target_duration_minutes=target_duration_minutes,
            started_at=now or utcnow(),
        )
        self.db.add(session)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost the race against a concurrent start; the partial unique index caught it
            raise ConflictError("Another session was started at the same time")

        self.logger.info(f"User {self.user_id} started session {session.id} ({session_type})")
        return session

    def update_activity(self,
                        session_id: int,
                        pages_covered: Optional[int] = None,
                        tab_switches: Optional[int] = None,
                        app_minimized_count: Optional[int] = None,
                        inactivity_periods: Optional[int] = None,
                        focus_events: Optional[int] = None,
                        break_time_seconds: Optional[int] = None,
                        now: Optional[datetime] = None) -> StudySession:
        """
        Store the client's running counters (absolute values, not deltas)
        and rescore focus.
        NOTE: Caller must run db.commit() to persist changes.
        """
        counters = {
            "pages_covered": pages_covered,
            "tab_switches": tab_switches,
            "app_minimized_count": app_minimized_count,
            "inactivity_periods": inactivity_periods,
            "focus_events": focus_events,
            "break_time_seconds": break_time_seconds,
        }
        supplied = {name: value for name, value in counters.items() if value is not None}
        require_non_negative(**supplied)

        session = self._get_active(session_id)
        now = now or utcnow()

        current = self._counters(session)
        current.update(supplied)

        duration = _elapsed_seconds(session.started_at, now)
        values = dict(supplied)
        values["total_duration_seconds"] = duration
        values["active_reading_seconds"] = max(0, duration - (current["break_time_seconds"] or 0))
        values["focus_score"] = round(self._score(current, duration), 2)

        return self._update_if_active(session, values)

    @staticmethod
    def _counters(session: StudySession) -> dict:
        return {name: getattr(session, name) for name in ACTIVITY_COUNTERS}

    def _score(self, counters: dict, duration: int) -> float:
        return focus.score(
            duration,
            counters["tab_switches"] or 0,
            counters["app_minimized_count"] or 0,
            counters["inactivity_periods"] or 0,
            counters["focus_events"] or 0,
        )

    def pause_session(self, session_id: int, reason: str = "break", now: Optional[datetime] = None) -> StudySession:
        """NOTE: Caller must run db.commit() to persist changes."""
        if reason not in PAUSE_REASONS:
            raise InvalidInputError(f"Invalid pause reason '{reason}' (expected one of {', '.join(PAUSE_REASONS)})")

        session = self._get_active(session_id)
        if session.open_break is not None:
            raise ConflictError(f"Session {session_id} is already paused")

        now = now or utcnow()
        pause_data = dict(session.pause_data or {})
        breaks = list(pause_data.get("breaks", []))
        breaks.append({"started_at": now.isoformat(), "reason": reason, "ended_at": None})
        pause_data["breaks"] = breaks

        return self._update_if_active(session, {
            "pause_data": pause_data,
            "total_duration_seconds": _elapsed_seconds(session.started_at, now),
        })

    def resume_session(self,
                       session_id: int,
                       energy_level: Optional[int] = None,
                       now: Optional[datetime] = None) -> StudySession:
        """NOTE: Caller must run db.commit() to persist changes."""
        require_rating("energy_level", energy_level, allow_none=True)

        session = self._get_active(session_id)
        if session.open_break is None:
            raise ConflictError(f"Session {session_id} is not paused")

        now = now or utcnow()
        values = self._closed_break(session, now)
        if energy_level is not None:
            values["energy_level"] = energy_level
        values["total_duration_seconds"] = _elapsed_seconds(session.started_at, now)

        return self._update_if_active(session, values)

    def _closed_break(self, session: StudySession, now: datetime) -> dict:
        """pause_data and break_time_seconds with the open break ended at now."""
        pause_data = dict(session.pause_data or {})
        breaks = [dict(b) for b in pause_data.get("breaks", [])]
        last = breaks[-1]
        started = datetime.fromisoformat(last["started_at"])
        seconds = _elapsed_seconds(started, now)

        last["ended_at"] = now.isoformat()
        last["duration_seconds"] = seconds
        pause_data["breaks"] = breaks
        return {
            "pause_data": pause_data,
            "break_time_seconds": (session.break_time_seconds or 0) + seconds,
        }

    def end_session(self,
                    session_id: int,
                    completion_status: str = CompletionStatus.COMPLETED.value,
                    pages_covered: Optional[int] = None,
                    comprehension_rating: Optional[int] = None,
                    difficulty_rating: Optional[int] = None,
                    notes: Optional[str] = None,
                    now: Optional[datetime] = None) -> SessionEnd:
        """
        Finalize a session and fold it into stats, daily analytics and achievements.
        NOTE: Caller must run db.commit() to persist changes.
        """
        require_rating("comprehension_rating", comprehension_rating, allow_none=True)
        require_rating("difficulty_rating", difficulty_rating, allow_none=True)
        if pages_covered is not None:
            require_non_negative(pages_covered=pages_covered)

        try:
            status = CompletionStatus(completion_status).value
        except ValueError:
            self.logger.warning(
                f"Unknown completion_status '{completion_status}' for session {session_id}, recording as completed"
            )
            status = CompletionStatus.COMPLETED.value

        session = self._get_active(session_id)
        now = now or utcnow()

        values = {}
        if session.open_break is not None:
            values.update(self._closed_break(session, now))
        counters = self._counters(session)
        if pages_covered is not None:
            counters["pages_covered"] = pages_covered
            values["pages_covered"] = pages_covered

        break_seconds = values.get("break_time_seconds", session.break_time_seconds) or 0
        duration = _elapsed_seconds(session.started_at, now)
        values["total_duration_seconds"] = duration
        values["active_reading_seconds"] = max(0, duration - break_seconds)
        values["focus_score"] = round(self._score(counters, duration), 2)
        values["longest_focus_streak_seconds"] = focus.focus_streak_seconds(
            values["active_reading_seconds"],
            (counters["tab_switches"] or 0) + (counters["app_minimized_count"] or 0)
        )
        values["completion_status"] = status
        values["comprehension_rating"] = comprehension_rating
        values["difficulty_rating"] = difficulty_rating
        if notes and notes.strip():
            values["notes"] = notes.strip()
        values["ended_at"] = now

        # Only one caller can move ended_at off NULL
        self._update_if_active(session, values)

        today = now.date()
        UserStatsService(self.db, self.user_id).record_session(duration, session.focus_score, today)
        AnalyticsService(self.db, self.user_id).fold(today, session, now)
        new_achievements = AchievementService(self.db, self.user_id).check_and_award(now)

        performance = focus.analyze_performance(session)
        document_title = session.document.title if session.document else None
        encouragement = FeedbackService(self.db, self.user_id).session_encouragement_levels(session.id)

        self.logger.info(
            f"User {self.user_id} ended session {session.id}: {duration}s, "
            f"focus {session.focus_score}, {len(new_achievements)} new achievement(s)"
        )

        return SessionEnd(
            session=session,
            performance=performance,
            new_achievements=new_achievements,
            summary=focus.session_summary(session, performance, len(new_achievements)),
            next_recommendations=focus.next_session_recommendations(session, document_title),
            insights=focus.session_insights(session, encouragement),
        )

    def list_sessions(self,
                      limit: int = 20,
                      offset: int = 0,
                      document_id: Optional[int] = None,
                      status: Optional[str] = None):
        """Page of sessions plus statistics over that page."""
        query = self.db.query(StudySession).filter(StudySession.user_id == self.user_id)
        if document_id is not None:
            query = query.filter(StudySession.document_id == document_id)
        if status == "active":
            query = query.filter(StudySession.ended_at.is_(None))
        elif status == "completed":
            query = query.filter(StudySession.ended_at.isnot(None))

        total = query.count()
        sessions = query.order_by(
            StudySession.started_at.desc(), StudySession.id.desc()
        ).offset(offset).limit(limit).all()
        return sessions, total, summarize_sessions(sessions)
