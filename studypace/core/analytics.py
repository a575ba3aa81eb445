"""
Day rollups, trends and study-pattern analysis over finished sessions.
"""
import calendar
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, List, Optional

from studypace.config import settings
from studypace.core.errors import InvalidInputError
from studypace.core.focus import NEUTRAL_FOCUS

TIME_OF_DAY_BUCKETS = ("morning", "afternoon", "evening", "night")

# Sessions an hour of day needs before it can be reported as a peak
PEAK_HOUR_MIN_SESSIONS = 3
MAX_PEAK_HOURS = 3

TREND_PERIODS = {"7d": 7, "30d": 30, "90d": 90}
TREND_METRICS = {
    "speed": "Avg. seconds per page",
    "pages": "Pages read",
    "focus": "Focus score %",
    "time": "Minutes studied",
}

# Days compared at each end of a series
TREND_WINDOW = 7
# Percent change in pages per hour that counts as a direction
VELOCITY_CHANGE_THRESHOLD = 5


def time_of_day_bucket(hour: int) -> str:
    """morning [6,12), afternoon [12,18), evening [18,22), night otherwise."""
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


def session_minutes(duration_seconds: Optional[int]) -> float:
    return (duration_seconds or 0) / 60


def running_mean(old_avg: float, old_count: int, value: float) -> float:
    return (old_avg * old_count + value) / (old_count + 1)


def _focus(session) -> float:
    return NEUTRAL_FOCUS if session.focus_score is None else session.focus_score


def _pages_per_minute(session) -> float:
    minutes = session_minutes(session.total_duration_seconds)
    return (session.pages_covered or 0) / (minutes or 1)


def summarize_sessions(sessions: List) -> dict:
    """History statistics shown above the session list."""
    if not sessions:
        return {
            "total_sessions": 0,
            "completed_sessions": 0,
            "total_time_minutes": 0,
            "total_pages": 0,
            "average_session_duration": 0,
            "average_focus_score": 0,
            "most_productive_time": None,
            "session_completion_rate": 0,
        }

    finished = [s for s in sessions if s.ended_at is not None]
    total_time = sum(s.total_duration_seconds or 0 for s in finished)
    total_pages = sum(s.pages_covered or 0 for s in finished)
    avg_focus = sum(_focus(s) for s in finished) / len(finished) if finished else NEUTRAL_FOCUS

    pages_by_hour = defaultdict(list)
    for session in finished:
        pages_by_hour[session.started_at.hour].append(session.pages_covered or 0)

    most_productive = None
    best = 0
    for hour in sorted(pages_by_hour):
        productivity = sum(pages_by_hour[hour]) / len(pages_by_hour[hour])
        if productivity > best:
            best = productivity
            most_productive = f"{hour}:00"

    return {
        "total_sessions": len(sessions),
        "completed_sessions": len(finished),
        "total_time_minutes": round(total_time / 60),
        "total_pages": total_pages,
        "average_session_duration": round(total_time / len(finished) / 60) if finished else 0,
        "average_focus_score": round(avg_focus * 100),
        "most_productive_time": most_productive,
        "session_completion_rate": round(len(finished) / len(sessions) * 100),
    }


def analyze_study_patterns(sessions: Iterable) -> dict:
    """Peak hours, a good session length and the most productive weekdays."""
    sessions = list(sessions)
    if not sessions:
        return {
            "peak_hours": [],
            "best_session_length": 30,
            "optimal_break_frequency": 25,
            "productivity_by_day": [],
            "recommendations": ["Collect more study data to generate personalized patterns"],
            "analysis_summary": None,
        }

    hourly = defaultdict(lambda: {"sessions": 0, "efficiency": 0.0, "focus": 0.0})
    daily = defaultdict(lambda: {"sessions": 0, "minutes": 0.0, "pages": 0})

    for session in sessions:
        hour = hourly[session.started_at.hour]
        hour["sessions"] += 1
        hour["efficiency"] += _pages_per_minute(session)
        hour["focus"] += _focus(session)

        day = daily[session.started_at.weekday()]
        day["sessions"] += 1
        day["minutes"] += session_minutes(session.total_duration_seconds)
        day["pages"] += session.pages_covered or 0

    peak_hours = [
        {
            "hour": hour,
            "avg_efficiency": round(data["efficiency"] / data["sessions"], 2),
            "avg_focus": round(data["focus"] / data["sessions"], 2),
            "session_count": data["sessions"],
        }
        for hour, data in hourly.items()
        if data["sessions"] >= PEAK_HOUR_MIN_SESSIONS
    ]
    peak_hours.sort(key=lambda h: h["avg_efficiency"] * h["avg_focus"], reverse=True)
    peak_hours = peak_hours[:MAX_PEAK_HOURS]

    lengths = [session_minutes(s.total_duration_seconds) for s in sessions]
    avg_length = sum(lengths) / len(lengths)

    good = [s for s in sessions if _focus(s) >= 0.8 and _pages_per_minute(s) >= 0.5]
    if good:
        optimal_length = sum(session_minutes(s.total_duration_seconds) for s in good) / len(good)
    else:
        optimal_length = avg_length

    by_day = [
        {
            "day": calendar.day_name[weekday],
            "avg_duration": round(data["minutes"] / data["sessions"], 1),
            "avg_pages": round(data["pages"] / data["sessions"], 1),
            "session_count": data["sessions"],
        }
        for weekday, data in daily.items()
    ]
    by_day.sort(key=lambda d: d["avg_pages"], reverse=True)

    recommendations = []
    if peak_hours:
        recommendations.append(
            f"Your peak performance hour is {peak_hours[0]['hour']}:00. Schedule important study sessions then."
        )
    if optimal_length > 0:
        recommendations.append(
            f"Your optimal session length is {round(optimal_length)} minutes for best focus and efficiency."
        )
    if by_day:
        recommendations.append(
            f"{by_day[0]['day']}s are your most productive day - plan challenging material then."
        )

    return {
        "peak_hours": peak_hours,
        "best_session_length": round(optimal_length),
        "optimal_break_frequency": round(optimal_length * 0.8),
        "productivity_by_day": by_day,
        "recommendations": recommendations,
        "analysis_summary": {
            "total_sessions_analyzed": len(sessions),
            "avg_session_minutes": round(avg_length),
            "peak_focus_score": max(s.focus_score or 0 for s in sessions),
            "most_productive_hour": peak_hours[0]["hour"] if peak_hours else None,
        },
    }


def period_days(period: str) -> int:
    try:
        return TREND_PERIODS[period]
    except KeyError:
        raise InvalidInputError(f"Invalid period '{period}' (expected one of {', '.join(TREND_PERIODS)})")


def _mean(values: List[float]) -> float:
    return sum(values) / len(values)


def trend_value(day, metric: str) -> float:
    """The value one daily rollup contributes to a trend line."""
    if metric == "speed":
        return day.average_page_time or settings.default_page_seconds
    if metric == "pages":
        return day.total_pages_read or 0
    if metric == "focus":
        return round((day.focus_score_average or NEUTRAL_FOCUS) * 100)
    if metric == "time":
        return round((day.total_time_seconds or 0) / 60)
    raise InvalidInputError(f"Invalid metric '{metric}' (expected one of {', '.join(TREND_METRICS)})")


def improvement_percentage(values: List[float], lower_is_better: bool = False) -> int:
    """First week of the series against its last week, as a percentage of the first."""
    if not values:
        return 0
    first = _mean(values[:TREND_WINDOW])
    last = _mean(values[-TREND_WINDOW:])
    if first <= 0:
        return 0
    change = first - last if lower_is_better else last - first
    return round(change / first * 100)


def consistency_score(days: List) -> int:
    """Share of the rollup days on which pages were actually read."""
    if not days:
        return 0
    active = sum(1 for day in days if (day.total_pages_read or 0) > 0)
    return round(active / len(days) * 100)


def performance_trends(days: Iterable, metric: str = "speed") -> dict:
    """
    Trend line for one metric over daily rollups (oldest first).

    speed is seconds per page, so a falling line is an improvement;
    for pages, focus and time a rising line is.
    """
    if metric not in TREND_METRICS:
        raise InvalidInputError(f"Invalid metric '{metric}' (expected one of {', '.join(TREND_METRICS)})")

    days = list(days)
    if not days:
        return {
            "data": [],
            "improvement_percentage": 0,
            "average_daily_pages": 0,
            "consistency_score": 0,
            "total_active_days": 0,
        }

    values = [trend_value(day, metric) for day in days]
    return {
        "data": [
            {"date": day.date, "value": value, "label": TREND_METRICS[metric]}
            for day, value in zip(days, values)
        ],
        "improvement_percentage": improvement_percentage(values, lower_is_better=metric == "speed"),
        "average_daily_pages": round(_mean([day.total_pages_read or 0 for day in days])),
        "consistency_score": consistency_score(days),
        "total_active_days": sum(1 for day in days if (day.total_pages_read or 0) > 0),
    }


def velocity_trends(sessions: Iterable) -> List[dict]:
    """Pages per hour for each day with finished sessions, oldest first."""
    by_day = {}
    for session in sessions:
        day = by_day.setdefault(session.started_at.date(), {"total_pages": 0, "total_time_hours": 0.0})
        day["total_pages"] += session.pages_covered or 0
        day["total_time_hours"] += (session.total_duration_seconds or 0) / 3600

    return [
        {
            "date": day,
            "total_pages": data["total_pages"],
            "total_time_hours": round(data["total_time_hours"], 2),
            "pages_per_hour": round(data["total_pages"] / data["total_time_hours"], 1) if data["total_time_hours"] else 0.0,
        }
        for day, data in sorted(by_day.items())
    ]


def efficiency_trends(sessions: Iterable) -> List[dict]:
    """Per session: pages per hour weighted by focus."""
    trends = []
    for session in sessions:
        hours = (session.total_duration_seconds or 1) / 3600
        focus = _focus(session)
        trends.append({
            "date": session.started_at.date(),
            "efficiency_score": round((session.pages_covered or 0) / hours * focus, 2),
            "focus_score": focus,
            "pages_covered": session.pages_covered or 0,
            "duration_hours": round((session.total_duration_seconds or 0) / 3600, 2),
        })
    return trends


def velocity_prediction(trends: List[dict]) -> dict:
    """Last week of reading days against the week before it."""
    if len(trends) < 3:
        return {"trend_direction": "insufficient_data", "improvement_rate": 0.0, "predicted_velocity": 0.0}

    recent = _mean([day["pages_per_hour"] for day in trends[-TREND_WINDOW:]])
    earlier_days = trends[-2 * TREND_WINDOW:-TREND_WINDOW]
    earlier = _mean([day["pages_per_hour"] for day in earlier_days]) if earlier_days else recent

    rate = (recent - earlier) / earlier * 100 if earlier > 0 else 0.0
    if rate > VELOCITY_CHANGE_THRESHOLD:
        direction = "improving"
    elif rate < -VELOCITY_CHANGE_THRESHOLD:
        direction = "declining"
    else:
        direction = "stable"

    return {
        "trend_direction": direction,
        "improvement_rate": round(rate, 1),
        "predicted_velocity": round(recent, 1),
    }


def productivity_score(average_reading_speed_seconds: Optional[float],
                       focus_score_average: Optional[float],
                       current_streak_days: int) -> int:
    """0-100 blend of reading speed (60 s/page scores 100), focus and streak."""
    if average_reading_speed_seconds:
        speed = max(0.0, 100 - (average_reading_speed_seconds - 60))
    else:
        speed = 50.0
    focus = (focus_score_average or NEUTRAL_FOCUS) * 100
    streak = min(100, (current_streak_days or 0) * 10)
    return round((speed + focus + streak) / 3)


def weekly_summary(sessions: Iterable, overall_focus: Optional[float], today: date) -> dict:
    """Finished sessions started in the 7 days up to today."""
    since = today - timedelta(days=6)
    week = [s for s in sessions if s.ended_at is not None and since <= s.started_at.date() <= today]

    total_time = sum(s.total_duration_seconds or 0 for s in week)
    days_studied = len({s.started_at.date() for s in week})

    overall = NEUTRAL_FOCUS if overall_focus is None else overall_focus
    recent_focus = _mean([_focus(s) for s in week]) if week else NEUTRAL_FOCUS
    if recent_focus > overall:
        focus_trend = "improving"
    elif recent_focus < overall:
        focus_trend = "declining"
    else:
        focus_trend = "stable"

    return {
        "pages_read": sum(s.pages_covered or 0 for s in week),
        "time_spent_minutes": round(total_time / 60),
        "sessions_completed": len(week),
        "average_session_minutes": round(total_time / len(week) / 60) if week else 0,
        "days_studied": days_studied,
        "reading_consistency": round(days_studied / 7 * 100),
        "focus_trend": focus_trend,
    }
