from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, JSON, Index, text
from sqlalchemy.orm import relationship
import enum
from studypace.database import Base, utcnow


class SessionType(str, enum.Enum):
    READING = "reading"
    REVIEW = "review"
    PRACTICE = "practice"
    EXAM_PREP = "exam_prep"


class CompletionStatus(str, enum.Enum):
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    ABANDONED = "abandoned"


class StudySession(Base):
    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True, index=True)

    session_type = Column(String, default=SessionType.READING)
    session_goal = Column(String, nullable=True)
    target_pages = Column(Integer, nullable=True)
    target_duration_minutes = Column(Integer, nullable=True)

    # Lifecycle: ended_at stays NULL while the session is active
    started_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    ended_at = Column(DateTime, nullable=True)

    # Durations (seconds)
    total_duration_seconds = Column(Integer, nullable=False, default=0)
    active_reading_seconds = Column(Integer, nullable=False, default=0)
    break_time_seconds = Column(Integer, nullable=False, default=0)
    longest_focus_streak_seconds = Column(Integer, nullable=False, default=0)

    pages_covered = Column(Integer, nullable=False, default=0)

    # Distraction telemetry
    tab_switches = Column(Integer, nullable=False, default=0)
    app_minimized_count = Column(Integer, nullable=False, default=0)
    inactivity_periods = Column(Integer, nullable=False, default=0)
    focus_events = Column(Integer, nullable=False, default=0)

    focus_score = Column(Float, nullable=True)
    completion_status = Column(String, nullable=True)

    # Self-reported
    energy_level = Column(Integer, nullable=True)
    comprehension_rating = Column(Integer, nullable=True)
    difficulty_rating = Column(Integer, nullable=True)
    notes = Column(String, nullable=True)

    # Pause/resume log: {"breaks": [{"started_at", "reason", "ended_at", "duration_seconds"}]}
    pause_data = Column(JSON, nullable=True)

    # Relationships
    user = relationship("User", back_populates="sessions")
    document = relationship("Document")

    # At most one active session per user
    __table_args__ = (
        Index('uq_active_session_per_user', 'user_id', unique=True,
              sqlite_where=text('ended_at IS NULL'),
              postgresql_where=text('ended_at IS NULL')),
    )

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    @property
    def open_break(self):
        breaks = (self.pause_data or {}).get("breaks", [])
        if breaks and breaks[-1].get("ended_at") is None:
            return breaks[-1]
        return None
