from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Float, UniqueConstraint
from studypace.database import Base, utcnow


class DailyAnalytics(Base):
    """Per-day rollup of finished sessions. Updated additively, never rewritten."""
    __tablename__ = "daily_analytics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    total_pages_read = Column(Integer, nullable=False, default=0)
    total_time_seconds = Column(Integer, nullable=False, default=0)
    study_sessions_count = Column(Integer, nullable=False, default=0)
    focus_score_average = Column(Float, nullable=False, default=0.0)

    # Minutes studied, keyed by the start hour of each session
    morning_minutes = Column(Float, nullable=False, default=0.0)
    afternoon_minutes = Column(Float, nullable=False, default=0.0)
    evening_minutes = Column(Float, nullable=False, default=0.0)
    night_minutes = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'date', name='uq_daily_analytics_user_date'),
    )

    @property
    def average_page_time(self) -> float:
        if not self.total_pages_read:
            return 0.0
        return round(self.total_time_seconds / self.total_pages_read, 1)
