"""
Pure functions over a user's rolling statistics.

The persisted row (models.UserStats) is converted to a StatAggregate, run
through one of the functions below and written back by UserStatsService.
None of these functions touch the database.
"""
import math
from dataclasses import dataclass, fields, replace
from datetime import date, timedelta
from typing import Optional

from studypace.config import settings

XP_PER_LEVEL_UNIT = 100

STAT_FIELDS = (
    "total_pages_read",
    "total_time_spent_seconds",
    "average_reading_speed_seconds",
    "total_documents",
    "current_streak_days",
    "longest_streak_days",
    "last_activity_date",
    "focus_score_average",
    "total_study_sessions",
    "average_session_duration_seconds",
    "total_xp_points",
    "current_level",
)


def level_for_xp(xp: int) -> int:
    """Level = floor(sqrt(xp / 100)) + 1. Level 1 covers 0-99 XP, level 2 100-399, level 3 400-899..."""
    return math.floor(math.sqrt(max(0, xp) / XP_PER_LEVEL_UNIT)) + 1


def effective_speed(average_reading_speed_seconds: Optional[float]) -> float:
    """Average seconds per page, never zero: unset or non-positive falls back to the default."""
    if not average_reading_speed_seconds or average_reading_speed_seconds <= 0:
        return settings.default_page_seconds
    return float(average_reading_speed_seconds)


@dataclass(frozen=True)
class StatAggregate:
    total_pages_read: int = 0
    total_time_spent_seconds: int = 0
    average_reading_speed_seconds: float = 120.0
    total_documents: int = 0
    current_streak_days: int = 0
    longest_streak_days: int = 0
    last_activity_date: Optional[date] = None
    focus_score_average: float = 0.7
    total_study_sessions: int = 0
    average_session_duration_seconds: int = 0
    total_xp_points: int = 0
    current_level: int = 1

    @classmethod
    def from_record(cls, record) -> "StatAggregate":
        """Build from any object exposing the stat attributes (ORM row, namespace...)."""
        values = {}
        for f in fields(cls):
            value = getattr(record, f.name, None)
            if value is not None:
                values[f.name] = value
        return cls(**values)

    def apply_to(self, record) -> None:
        for name in STAT_FIELDS:
            setattr(record, name, getattr(self, name))

    @property
    def total_time_hours(self) -> int:
        return self.total_time_spent_seconds // 3600


def advance_streak(stats: StatAggregate, today: date) -> StatAggregate:
    """
    Consecutive calendar days with activity.
    Same day keeps the streak, the day after extends it, anything else restarts at 1.
    """
    last = stats.last_activity_date
    if last == today:
        streak = max(1, stats.current_streak_days)
    elif last is not None and last == today - timedelta(days=1):
        streak = stats.current_streak_days + 1
    else:
        streak = 1

    return replace(
        stats,
        current_streak_days=streak,
        longest_streak_days=max(stats.longest_streak_days, streak),
        last_activity_date=today,
    )


def record_page(stats: StatAggregate, seconds: int, newly_completed: bool, today: date) -> StatAggregate:
    """
    Fold one page reading into the aggregate.
    Time always counts; the page count only moves when the page flips to completed.
    """
    total_pages = stats.total_pages_read + (1 if newly_completed else 0)
    total_time = stats.total_time_spent_seconds + seconds

    if total_pages > 0:
        avg_speed = total_time / total_pages
    else:
        avg_speed = effective_speed(stats.average_reading_speed_seconds)

    # A run of zero-second pages would otherwise drive the average to 0
    avg_speed = effective_speed(avg_speed)

    updated = replace(
        stats,
        total_pages_read=total_pages,
        total_time_spent_seconds=total_time,
        average_reading_speed_seconds=avg_speed,
    )
    return advance_streak(updated, today)


def record_session(stats: StatAggregate, duration_seconds: int, focus_score: float, today: date) -> StatAggregate:
    """Fold a finished study session: session count, mean duration and mean focus."""
    n = stats.total_study_sessions
    new_n = n + 1

    avg_duration = round((stats.average_session_duration_seconds * n + duration_seconds) / new_n)
    focus_avg = (stats.focus_score_average * n + focus_score) / new_n

    updated = replace(
        stats,
        total_study_sessions=new_n,
        average_session_duration_seconds=avg_duration,
        focus_score_average=round(focus_avg, 4),
    )
    return advance_streak(updated, today)


def add_xp(stats: StatAggregate, points: int) -> StatAggregate:
    """Add XP and keep current_level in sync with the level formula."""
    xp = stats.total_xp_points + points
    return replace(stats, total_xp_points=xp, current_level=level_for_xp(xp))


def with_document_count(stats: StatAggregate, total_documents: int) -> StatAggregate:
    return replace(stats, total_documents=total_documents)


def sprint_xp(completion_quality: int, streak_days: int) -> int:
    """XP for a finished sprint: 10 base, 15 at quality 4, 25 at quality 5, plus a streak bonus."""
    if completion_quality >= 5:
        xp = 25
    elif completion_quality >= 4:
        xp = 15
    else:
        xp = 10

    if streak_days >= 30:
        xp += 10
    elif streak_days >= 7:
        xp += 5
    return xp
