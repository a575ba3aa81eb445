from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from studypace.database import Base, utcnow


class Document(Base):
    """Metadata of an uploaded PDF. The file itself lives with the upload service."""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    file_name = Column(String, nullable=True)
    total_pages = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="documents")
    pages = relationship("PageRecord", back_populates="document", cascade="all, delete-orphan",
                         order_by="PageRecord.page_number")


class PageRecord(Base):
    """
    Per-user state of one page: time spent, completion and the
    upstream analysis (estimated time, difficulty).
    """
    __tablename__ = "page_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    page_number = Column(Integer, nullable=False)

    time_spent_seconds = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)

    # Produced by document analysis
    estimated_time_seconds = Column(Float, nullable=True, default=120.0)
    difficulty_rating = Column(Integer, nullable=True)

    last_read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    document = relationship("Document", back_populates="pages")

    # Page rows are created lazily and never recreated
    __table_args__ = (
        UniqueConstraint('user_id', 'document_id', 'page_number', name='uq_page_record'),
    )
