from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Float
from sqlalchemy.orm import relationship
from studypace.database import Base, utcnow


class UserStats(Base):
    """
    One row per user. Created lazily on first activity;
    only written through UserStatsService.
    """
    __tablename__ = "user_stats"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    total_pages_read = Column(Integer, nullable=False, default=0)
    total_time_spent_seconds = Column(Integer, nullable=False, default=0)
    average_reading_speed_seconds = Column(Float, nullable=False, default=120.0)
    total_documents = Column(Integer, nullable=False, default=0)

    current_streak_days = Column(Integer, nullable=False, default=0)
    longest_streak_days = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date, nullable=True)

    focus_score_average = Column(Float, nullable=False, default=0.7)
    total_study_sessions = Column(Integer, nullable=False, default=0)
    average_session_duration_seconds = Column(Integer, nullable=False, default=0)

    # current_level = floor(sqrt(total_xp_points / 100)) + 1
    total_xp_points = Column(Integer, nullable=False, default=0)
    current_level = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="stats")
