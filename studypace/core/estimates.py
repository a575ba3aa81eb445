"""
Remaining-time estimates and sprint sizing.

The per-page estimate comes from the upstream document analysis
(estimated_time_seconds, difficulty_rating). When the reader has already
finished some pages of the document, the estimate is corrected by how fast
they actually were, within a sanity window so one broken session can't skew it.
"""
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from studypace.config import settings
from studypace.core.errors import require_non_negative
from studypace.core.stats import effective_speed


@dataclass
class RemainingEstimate:
    remaining_seconds: int
    remaining_pages: int
    total_pages: int
    completion_date: Optional[date] = None
    blended: bool = False
    speed_ratio: Optional[float] = None

    @property
    def percentage_remaining(self) -> float:
        if self.total_pages == 0:
            return 0.0
        return round(self.remaining_pages / self.total_pages * 100, 1)

    @property
    def formatted(self) -> str:
        return format_duration(self.remaining_seconds)


@dataclass
class SprintSuggestion:
    start_page: int
    end_page: int
    pages: int
    estimated_seconds: int
    document_complete: bool = False


def difficulty_multiplier(difficulty_rating: Optional[int]) -> float:
    if difficulty_rating is None:
        return 1.0
    return settings.difficulty_multipliers.get(difficulty_rating, 1.0)


def page_estimate(page, user_avg_speed: float) -> float:
    """Expected seconds for one unread page."""
    base = page.estimated_time_seconds or user_avg_speed
    return base * difficulty_multiplier(page.difficulty_rating)


def speed_ratio(pages: Iterable, user_avg_speed: float) -> Optional[float]:
    """
    Observed seconds per completed page vs. the user's overall average.
    None when no completed page carries recorded time.
    """
    completed = [p for p in pages if p.is_completed and (p.time_spent_seconds or 0) > 0]
    if not completed:
        return None
    actual_avg = sum(p.time_spent_seconds for p in completed) / len(completed)
    return actual_avg / user_avg_speed


def blend_factor(ratio: Optional[float]) -> Optional[float]:
    """Multiplier applied to the raw estimate, or None when the ratio is outside the window."""
    if ratio is None:
        return None
    if not settings.speed_ratio_min < ratio < settings.speed_ratio_max:
        return None
    weight = settings.estimate_blend_weight
    return weight * ratio + (1 - weight)


def completion_date(remaining_seconds: float, daily_seconds: Optional[float], today: date) -> date:
    if not daily_seconds or daily_seconds <= 0:
        daily_seconds = settings.default_daily_study_seconds
    days = math.ceil(remaining_seconds / daily_seconds)
    return today + timedelta(days=days)


def estimate_remaining(document_pages: list,
                       total_pages: int,
                       user_avg_speed: Optional[float],
                       daily_seconds: Optional[float] = None,
                       today: Optional[date] = None) -> RemainingEstimate:
    """
    Estimate the time left on a document.

    document_pages are the PageRecord rows the user has for it; page numbers
    with no record count at the user's average speed.
    """
    require_non_negative(total_pages=total_pages)
    today = today or date.today()

    if total_pages == 0:
        return RemainingEstimate(remaining_seconds=0, remaining_pages=0, total_pages=0)

    avg = effective_speed(user_avg_speed)
    by_number = {p.page_number: p for p in document_pages if 1 <= p.page_number <= total_pages}

    remaining = 0.0
    remaining_pages = 0
    for number in range(1, total_pages + 1):
        page = by_number.get(number)
        if page is not None and page.is_completed:
            continue
        remaining_pages += 1
        remaining += avg if page is None else page_estimate(page, avg)

    ratio = speed_ratio(by_number.values(), avg)
    factor = blend_factor(ratio)
    if factor is not None:
        remaining *= factor

    remaining_seconds = round(remaining)
    return RemainingEstimate(
        remaining_seconds=remaining_seconds,
        remaining_pages=remaining_pages,
        total_pages=total_pages,
        completion_date=completion_date(remaining_seconds, daily_seconds, today),
        blended=factor is not None,
        speed_ratio=round(ratio, 4) if ratio is not None else None,
    )


def daily_study_seconds(session_durations_by_day: dict) -> float:
    """Mean study time per active day; the fallback applies when there is no history."""
    active = {day: seconds for day, seconds in session_durations_by_day.items() if seconds > 0}
    if not active:
        return float(settings.default_daily_study_seconds)
    return sum(active.values()) / len(active)


def suggest_sprint(total_pages: int,
                   completed_pages: int,
                   user_avg_speed: Optional[float],
                   preferred_session_seconds: Optional[int] = None) -> SprintSuggestion:
    require_non_negative(total_pages=total_pages, completed_pages=completed_pages)
    preferred = preferred_session_seconds or settings.preferred_session_seconds
    avg = effective_speed(user_avg_speed)

    remaining = max(0, total_pages - completed_pages)
    if remaining == 0:
        return SprintSuggestion(
            start_page=completed_pages + 1,
            end_page=completed_pages,
            pages=0,
            estimated_seconds=0,
            document_complete=True,
        )

    pages = max(1, min(remaining, math.floor(preferred / avg)))
    start = completed_pages + 1
    return SprintSuggestion(
        start_page=start,
        end_page=start + pages - 1,
        pages=pages,
        estimated_seconds=round(pages * avg),
    )


def format_duration(seconds: float) -> str:
    """3900 -> '1h 5m', 720 -> '12m'."""
    total_minutes = int(seconds // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def words_per_minute(seconds_per_page: float) -> int:
    if not seconds_per_page or seconds_per_page <= 0:
        return 0
    return round(settings.words_per_page / (seconds_per_page / 60))
