from sqlalchemy import Column, Integer, ForeignKey, DateTime, Boolean
from sqlalchemy.orm import relationship
from studypace.database import Base, utcnow


class Sprint(Base):
    """A page range sized to fit one study block."""
    __tablename__ = "sprints"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)

    start_page = Column(Integer, nullable=False)
    end_page = Column(Integer, nullable=False)
    estimated_seconds = Column(Integer, nullable=False, default=0)

    completed = Column(Boolean, nullable=False, default=False)
    pages_completed = Column(Integer, nullable=True)
    completion_quality = Column(Integer, nullable=True)
    xp_awarded = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    document = relationship("Document")
