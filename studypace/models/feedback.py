from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Text
from studypace.database import Base, utcnow


class ReadingFeedback(Base):
    """One pace classification shown to the reader."""
    __tablename__ = "reading_feedback"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = Column(Integer, ForeignKey("study_sessions.id", ondelete="SET NULL"), nullable=True)
    page_number = Column(Integer, nullable=True)

    feedback_type = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    encouragement_level = Column(Integer, nullable=False)

    page_time_seconds = Column(Float, nullable=False)
    expected_time_seconds = Column(Float, nullable=False)
    activity_level = Column(Float, nullable=False, default=1.0)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
