"""
Real-time reading pace feedback.

classify() compares the time spent on the current page with the reader's
personal average (scaled by document difficulty) and picks one bucket:

    |diff| <= 15         perfect     (5)
    diff  <  -30         fast        (4)
    -30 <= diff < -15    good        (4)
    15  <  diff <= 60    slow        (3)
    diff  >  60          very_slow   (2)

Every real number lands in exactly one bucket.
"""
import enum
from dataclasses import dataclass, field
from typing import List, Optional

from studypace.core.errors import InvalidInputError, require_non_negative, require_rating
from studypace.core.stats import effective_speed

PERFECT_WINDOW = 15
FAST_THRESHOLD = -30
GOOD_THRESHOLD = -15
SLOW_LIMIT = 60

LOW_ACTIVITY = 0.6
POMODORO_ACTIVITY = 0.8
MAX_SUGGESTIONS = 3


class PaceBucket(str, enum.Enum):
    PERFECT = "perfect"
    FAST = "fast"
    GOOD = "good"
    SLOW = "slow"
    VERY_SLOW = "very_slow"


ENCOURAGEMENT = {
    PaceBucket.PERFECT: 5,
    PaceBucket.FAST: 4,
    PaceBucket.GOOD: 4,
    PaceBucket.SLOW: 3,
    PaceBucket.VERY_SLOW: 2,
}

SUGGESTIONS = {
    PaceBucket.PERFECT: [
        "Perfect balance of speed and comprehension!",
        "This is your optimal reading pace - try to maintain it",
    ],
    PaceBucket.FAST: [
        "Excellent speed! Make sure you're retaining the information",
        "Quick self-check: can you summarize what you just read?",
    ],
    PaceBucket.GOOD: [
        "You're reading efficiently - keep this rhythm",
    ],
    PaceBucket.SLOW: [
        "You're being thorough - that's good for comprehension!",
        "Consider setting a soft time goal for each page",
    ],
    PaceBucket.VERY_SLOW: [
        "Try breaking down complex sentences into smaller parts",
        "Consider highlighting key concepts as you read",
    ],
}

POMODORO_SUGGESTION = "Try the Pomodoro technique: 25 minutes focused reading, 5 minute break"
FOCUS_REMINDER = " Try to minimize distractions for better focus."
GETTING_FASTER = " You're getting faster with this material!"


@dataclass
class PaceResult:
    type: PaceBucket
    message: str
    encouragement_level: int
    suggestions: List[str] = field(default_factory=list)
    current_time: float = 0
    personal_average: float = 0
    difficulty_adjusted_average: float = 0
    difference_seconds: float = 0

    @property
    def pace_description(self) -> str:
        if self.difference_seconds < GOOD_THRESHOLD:
            return "faster than usual"
        if self.difference_seconds > 30:
            return "slower than usual"
        return "typical pace"


def bucket_for(diff: float) -> PaceBucket:
    if abs(diff) <= PERFECT_WINDOW:
        return PaceBucket.PERFECT
    if diff < FAST_THRESHOLD:
        return PaceBucket.FAST
    if diff < GOOD_THRESHOLD:
        return PaceBucket.GOOD
    if diff <= SLOW_LIMIT:
        return PaceBucket.SLOW
    return PaceBucket.VERY_SLOW


def _message(bucket: PaceBucket, diff: float) -> str:
    if bucket is PaceBucket.PERFECT:
        return "Perfect pace! You're right on track."
    if bucket is PaceBucket.FAST:
        return f"Great speed! You're {abs(round(diff))}s faster than your average."
    if bucket is PaceBucket.GOOD:
        return "Good pace! You're reading efficiently."
    if bucket is PaceBucket.SLOW:
        return "Take your time to understand. Comprehension matters more than speed."
    return "This seems challenging. Consider taking notes or re-reading if needed."


def classify(current_page_seconds: float,
             personal_avg: Optional[float],
             document_difficulty: int = 3,
             activity_level: float = 1.0,
             history_avg: Optional[float] = None) -> PaceResult:
    """
    Classify the pace of the page being read.

    history_avg is the reader's mean time on already-read pages of the same
    document; when the current page is well under it the message says so.
    """
    require_non_negative(current_page_seconds=current_page_seconds)
    require_rating("document_difficulty", document_difficulty)
    if activity_level is None or not 0 <= activity_level <= 1:
        raise InvalidInputError(f"activity_level must be between 0 and 1 (got {activity_level})")

    average = effective_speed(personal_avg)
    adjusted_avg = average * (document_difficulty / 3)
    diff = current_page_seconds - adjusted_avg

    bucket = bucket_for(diff)
    message = _message(bucket, diff)
    encouragement = ENCOURAGEMENT[bucket]

    if activity_level < LOW_ACTIVITY:
        message += FOCUS_REMINDER
        encouragement = max(1, encouragement - 1)

    if history_avg and current_page_seconds < history_avg * 0.8:
        message += GETTING_FASTER

    suggestions = list(SUGGESTIONS[bucket])
    if bucket is PaceBucket.VERY_SLOW and activity_level < POMODORO_ACTIVITY:
        suggestions.append(POMODORO_SUGGESTION)

    return PaceResult(
        type=bucket,
        message=message,
        encouragement_level=encouragement,
        suggestions=suggestions[:MAX_SUGGESTIONS],
        current_time=current_page_seconds,
        personal_average=average,
        difficulty_adjusted_average=round(adjusted_avg, 2),
        difference_seconds=round(diff, 2),
    )


def focus_indicator(activity_level: float) -> str:
    if activity_level >= POMODORO_ACTIVITY:
        return "high"
    if activity_level >= LOW_ACTIVITY:
        return "medium"
    return "low"
