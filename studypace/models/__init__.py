# Import all models here so SQLAlchemy can set up relationships
from studypace.models.user import User
from studypace.models.document import Document, PageRecord
from studypace.models.study_session import StudySession
from studypace.models.user_stats import UserStats
from studypace.models.analytics import DailyAnalytics
from studypace.models.achievement import Achievement, UserAchievement
from studypace.models.sprint import Sprint
from studypace.models.feedback import ReadingFeedback

# This ensures all models are loaded before relationships are configured
__all__ = [
    'User',
    'Document', 'PageRecord',
    'StudySession',
    'UserStats',
    'DailyAnalytics',
    'Achievement', 'UserAchievement',
    'Sprint',
    'ReadingFeedback',
]
