from sqlalchemy import Boolean, Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from studypace.database import Base, utcnow


class User(Base):
    """
    Local mirror of an account owned by the auth service.
    Only what the engine needs to attribute data to a reader.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=utcnow)

    # Relationships

    # When a user is deleted, delete their reading history too
    documents = relationship("Document", back_populates="user", cascade="all, delete-orphan")
    sessions = relationship("StudySession", back_populates="user", cascade="all, delete-orphan")
    stats = relationship("UserStats", back_populates="user", uselist=False, cascade="all, delete-orphan")
    achievements = relationship("UserAchievement", back_populates="user", cascade="all, delete-orphan")
