"""
Achievement rules.

evaluate() is pure: it takes the user's aggregate, a few counts derived from
sessions/sprints, the catalog and the codes already earned, and returns the
catalog entries that are newly satisfied. Persisting the award (and making it
happen at most once) is AchievementService's job.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from studypace.core.stats import StatAggregate

logger = logging.getLogger(__name__)


class RequirementType(str, enum.Enum):
    DOCUMENTS_UPLOADED = "documents_uploaded"
    PAGES_READ = "pages_read"
    STREAK_DAYS = "streak_days"
    TOTAL_TIME_HOURS = "total_time_hours"
    SPRINTS_COMPLETED = "sprints_completed"
    PERFECT_FOCUS_SPRINTS = "perfect_focus_sprints"
    HIGH_FOCUS_SESSIONS = "high_focus_sessions"
    ULTRA_FOCUS_SESSIONS = "ultra_focus_sessions"
    AVG_PAGE_TIME = "avg_page_time"

    @classmethod
    def parse(cls, value) -> Optional["RequirementType"]:
        try:
            return cls(value)
        except ValueError:
            return None


# Lower is better for these
LOWER_IS_BETTER = {RequirementType.AVG_PAGE_TIME}


@dataclass(frozen=True)
class DerivedMetrics:
    completed_sprints: int = 0
    perfect_sprints: int = 0
    high_focus_sessions: int = 0
    ultra_focus_sessions: int = 0


@dataclass(frozen=True)
class AchievementRule:
    """The parts of a catalog entry the engine needs (an ORM row works too)."""
    code: str
    requirement_type: str
    requirement_value: float
    points: int = 0


@dataclass
class Award:
    code: str
    points: int
    progress_value: float


def current_value(requirement: RequirementType, stats: StatAggregate, metrics: DerivedMetrics) -> float:
    if requirement is RequirementType.DOCUMENTS_UPLOADED:
        return stats.total_documents
    if requirement is RequirementType.PAGES_READ:
        return stats.total_pages_read
    if requirement is RequirementType.STREAK_DAYS:
        return stats.current_streak_days
    if requirement is RequirementType.TOTAL_TIME_HOURS:
        return stats.total_time_hours
    if requirement is RequirementType.SPRINTS_COMPLETED:
        return metrics.completed_sprints
    if requirement is RequirementType.PERFECT_FOCUS_SPRINTS:
        return metrics.perfect_sprints
    if requirement is RequirementType.HIGH_FOCUS_SESSIONS:
        return metrics.high_focus_sessions
    if requirement is RequirementType.ULTRA_FOCUS_SESSIONS:
        return metrics.ultra_focus_sessions
    # AVG_PAGE_TIME only counts once something has been read
    if stats.total_pages_read == 0:
        return 0
    return stats.average_reading_speed_seconds


def is_satisfied(requirement: RequirementType, value: float, target: float) -> bool:
    if requirement in LOWER_IS_BETTER:
        return 0 < value <= target
    return value >= target


def evaluate(stats: StatAggregate,
             metrics: DerivedMetrics,
             catalog: Iterable,
             already_earned: set) -> List[Award]:
    """
    Catalog entries whose requirement is met and whose code is not in
    already_earned. Unknown requirement types are skipped.
    """
    awards = []
    for rule in catalog:
        if rule.code in already_earned:
            continue

        requirement = RequirementType.parse(rule.requirement_type)
        if requirement is None:
            logger.warning(f"Skipping achievement '{rule.code}': unknown requirement type '{rule.requirement_type}'")
            continue

        value = current_value(requirement, stats, metrics)
        if is_satisfied(requirement, value, rule.requirement_value):
            awards.append(Award(code=rule.code, points=rule.points or 0, progress_value=value))

    return awards


def progress_percentage(requirement_type: str, value: float, target: float) -> float:
    """How close the user is to an unearned achievement, 0-100."""
    requirement = RequirementType.parse(requirement_type)
    if requirement is None or target <= 0:
        return 0.0
    if requirement in LOWER_IS_BETTER:
        if value <= 0:
            return 0.0
        return round(min(100.0, target / value * 100), 1)
    return round(min(100.0, value / target * 100), 1)


# code, name, description, icon, category, requirement_type, requirement_value, points
DEFAULT_CATALOG = [
    ("first_pdf", "First Steps", "Upload your first PDF", "📚", "reading", "documents_uploaded", 1, 50),
    ("first_page", "Page Turner", "Read your first page", "📖", "reading", "pages_read", 1, 25),
    ("pages_10", "Getting Started", "Read 10 pages", "📄", "reading", "pages_read", 10, 100),
    ("pages_50", "Bookworm", "Read 50 pages", "🐛", "reading", "pages_read", 50, 250),
    ("pages_100", "Century Reader", "Read 100 pages", "💯", "reading", "pages_read", 100, 500),
    ("pages_500", "Page Master", "Read 500 pages", "🏆", "reading", "pages_read", 500, 1000),
    ("speed_reader", "Speed Reader", "Average under 60 seconds per page", "⚡", "speed", "avg_page_time", 60, 200),
    ("lightning_fast", "Lightning Fast", "Average under 30 seconds per page", "🌩️", "speed", "avg_page_time", 30, 500),
    ("streak_3", "Consistent", "Study 3 days in a row", "🔥", "streak", "streak_days", 3, 150),
    ("streak_7", "Week Warrior", "Study 7 days in a row", "🗓️", "streak", "streak_days", 7, 300),
    ("streak_30", "Unstoppable", "Study 30 days in a row", "🚀", "streak", "streak_days", 30, 1000),
    ("hour_1", "Focused Hour", "Study for 1 hour total", "⏰", "time", "total_time_hours", 1, 75),
    ("hour_10", "Dedicated Learner", "Study for 10 hours total", "📚", "time", "total_time_hours", 10, 200),
    ("hour_50", "Scholar", "Study for 50 hours total", "🎓", "time", "total_time_hours", 50, 750),
    ("sprint_1", "Sprint Starter", "Complete your first sprint", "🏃", "sprint", "sprints_completed", 1, 100),
    ("sprint_10", "Sprint Champion", "Complete 10 sprints", "🏅", "sprint", "sprints_completed", 10, 300),
    ("perfect_sprint", "Perfect Focus", "Complete a sprint with perfect focus", "🎯", "sprint", "perfect_focus_sprints", 1, 400),
    ("focused_reader", "Focused Reader", "Complete 5 sessions with 90%+ focus", "🧘", "focus", "high_focus_sessions", 5, 350),
    ("zen_master", "Zen Master", "Complete 10 sessions with 95%+ focus", "☯️", "focus", "ultra_focus_sessions", 10, 750),
]
