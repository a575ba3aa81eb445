from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, UniqueConstraint, Text
from sqlalchemy.orm import relationship
from studypace.database import Base, utcnow


class Achievement(Base):
    """Catalog entry. Reference data, seeded at startup."""
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)

    # Kept as a plain string so the catalog can carry types this build doesn't know
    requirement_type = Column(String, nullable=False)
    requirement_value = Column(Float, nullable=False)
    points = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)


class UserAchievement(Base):
    __tablename__ = "user_achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    achievement_id = Column(Integer, ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False)

    earned_at = Column(DateTime, default=utcnow, nullable=False)
    progress_value = Column(Float, nullable=True)

    user = relationship("User", back_populates="achievements")
    achievement = relationship("Achievement")

    # The row existing is the only "already earned" signal
    __table_args__ = (
        UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievement'),
    )
