"""
Focus scoring and session-level performance summaries.

score() is called on every activity ping, not only at session end, so the
client can render live feedback. Everything here is pure: session arguments
are any object exposing the StudySession attributes.
"""
from dataclasses import dataclass, asdict
from typing import List, Optional

from studypace.core.errors import require_non_negative

FOCUS_FLOOR = 0.1
FOCUS_CEILING = 1.0

# (per-event weight, cap)
TAB_SWITCH_PENALTY = (0.05, 0.30)
MINIMIZED_PENALTY = (0.08, 0.20)
INACTIVITY_PENALTY = (0.06, 0.25)
FOCUS_EVENT_BONUS = (0.01, 0.10)

# Used when a session has no recorded focus score yet
NEUTRAL_FOCUS = 0.7


def score(duration_s: float,
          tab_switches: int = 0,
          minimized_count: int = 0,
          inactivity_periods: int = 0,
          focus_events: int = 0) -> float:
    """
    Bounded focus score in [0.1, 1.0].

    Each distraction signal is capped so no single metric can zero the score,
    and the engagement bonus is capped below every penalty cap.
    """
    require_non_negative(duration_s=duration_s,
                         tab_switches=tab_switches,
                         minimized_count=minimized_count,
                         inactivity_periods=inactivity_periods,
                         focus_events=focus_events)

    if duration_s == 0:
        return FOCUS_CEILING

    value = 1.0
    value -= min(TAB_SWITCH_PENALTY[1], tab_switches * TAB_SWITCH_PENALTY[0])
    value -= min(MINIMIZED_PENALTY[1], minimized_count * MINIMIZED_PENALTY[0])
    value -= min(INACTIVITY_PENALTY[1], inactivity_periods * INACTIVITY_PENALTY[0])
    value += min(FOCUS_EVENT_BONUS[1], focus_events * FOCUS_EVENT_BONUS[0])

    return max(FOCUS_FLOOR, min(FOCUS_CEILING, value))


def _focus_of(session) -> float:
    value = getattr(session, "focus_score", None)
    return NEUTRAL_FOCUS if value is None else value


def live_feedback(session, focus_score: float) -> dict:
    """Feedback rendered while the session is running."""
    duration_minutes = round((session.total_duration_seconds or 0) / 60)
    pages = session.pages_covered or 0
    pages_per_minute = pages / (duration_minutes or 1)

    if focus_score >= 0.9:
        feedback_type, message = "excellent", "Excellent focus! You're in the zone!"
    elif focus_score >= 0.7:
        feedback_type, message = "good", "Good concentration. Keep it up!"
    elif focus_score >= 0.5:
        feedback_type, message = "fair", "Some distractions detected. Try to refocus."
    else:
        feedback_type, message = "poor", "Many distractions. Consider taking a break or changing environment."

    if pages_per_minute > 1.5:
        message += " Great reading pace!"
    elif pages_per_minute < 0.5 and pages > 0:
        message += " Taking time to understand is good."

    return {
        "type": feedback_type,
        "message": message,
        "focus_score": round(focus_score * 100),
        "duration_minutes": duration_minutes,
        "pages_per_minute": round(pages_per_minute, 1),
    }


def activity_recommendations(session) -> List[dict]:
    recommendations = []
    duration_minutes = (session.total_duration_seconds or 0) / 60

    if duration_minutes >= 45 and not (session.break_time_seconds or 0) > 0:
        recommendations.append({
            "type": "break",
            "message": "Consider taking a 10-15 minute break to maintain focus",
            "priority": "high",
        })

    if _focus_of(session) < 0.6:
        recommendations.append({
            "type": "environment",
            "message": "Try changing your study environment or removing distractions",
            "priority": "medium",
        })

    if (session.tab_switches or 0) > 10:
        recommendations.append({
            "type": "distraction",
            "message": "Too many tab switches. Consider using a website blocker",
            "priority": "high",
        })

    return recommendations


def longest_focus_streak(session) -> int:
    """
    Rough longest uninterrupted stretch: active time split evenly
    between tab switches / minimizations.
    """
    active = max(0, (session.total_duration_seconds or 0) - (session.break_time_seconds or 0))
    distractions = (session.tab_switches or 0) + (session.app_minimized_count or 0)
    return focus_streak_seconds(active, distractions)


def focus_streak_seconds(active_seconds: int, distractions: int) -> int:
    if distractions == 0:
        return active_seconds
    return round(active_seconds / (distractions + 1))


def optimal_break_minutes(session) -> int:
    duration_minutes = (session.total_duration_seconds or 0) / 60
    focus = _focus_of(session)

    if duration_minutes < 30:
        return 5
    if duration_minutes < 60:
        return 10 if focus > 0.7 else 15
    return 15 if focus > 0.7 else 20


OPTIMAL_SESSION_MINUTES = 45


def remaining_optimal_minutes(session) -> int:
    """Minutes left before the session hits the 45 minute sweet spot, never under 10."""
    elapsed = (session.total_duration_seconds or 0) / 60
    return round(max(10, OPTIMAL_SESSION_MINUTES - elapsed))


BREAK_SUGGESTIONS = {
    "break": [
        "Take a short walk to refresh your mind",
        "Drink some water and stretch your body",
        "Look away from the screen and focus on distant objects",
    ],
    "interruption": [
        "Jot down where you left off before handling the interruption",
        "Set a specific time to return to studying",
        "Do a quick review when you resume",
    ],
    "snack": [
        "Choose brain-healthy snacks like nuts or fruit",
        "Stay hydrated",
        "Keep it brief to maintain momentum",
    ],
    "other": [
        "Take a few deep breaths to center yourself",
        "Quickly review what you just learned",
        "Set a timer for your break duration",
    ],
}


def break_suggestions(reason: str) -> List[str]:
    return BREAK_SUGGESTIONS.get(reason, BREAK_SUGGESTIONS["break"])


def refocus_tips(energy_level: Optional[int], session) -> List[str]:
    tips = [
        "Review your session goals before continuing",
        "Quickly summarize what you learned so far",
    ]
    if energy_level and energy_level <= 2:
        tips.append("Consider a light energizing snack")
        tips.append("Do some light stretching or movement")
    if _focus_of(session) < 0.6:
        tips.append("Eliminate any remaining distractions")
        tips.append("Set shorter focus intervals (15-20 minutes)")
    return tips


SESSION_TIPS = {
    "reading": [
        "Put your phone in airplane mode or another room",
        "Ensure good lighting to reduce eye strain",
        "Try instrumental music or white noise if it helps focus",
    ],
    "review": [
        "Have a notepad ready for key concepts",
        "Quiz yourself as you go through the material",
        "Use active recall techniques",
    ],
    "practice": [
        "Work through problems step-by-step",
        "Don't check answers until completing each section",
        "Keep track of problem types you find challenging",
    ],
    "exam_prep": [
        "Simulate exam conditions",
        "Practice with time constraints",
        "Focus on weak areas identified in previous sessions",
    ],
}


def session_tips(session_type: str, energy_level: int) -> List[str]:
    tips = list(SESSION_TIPS.get(session_type, SESSION_TIPS["reading"]))
    if energy_level <= 2:
        tips.append("Consider a light snack or caffeine if needed")
        tips.append("Take a 5-minute walk before starting")
    elif energy_level >= 4:
        tips.append("Use this high energy for challenging material")
        tips.append("Consider longer study blocks while energy is high")
    return tips[:4]


@dataclass
class SessionPerformance:
    duration_minutes: int
    pages_covered: int
    focus_score_percentage: int
    efficiency_pages_per_minute: float
    average_time_per_page_seconds: int
    performance_level: str
    break_time_percentage: int
    detailed_metrics: Optional[dict] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["detailed_metrics"] is None:
            data.pop("detailed_metrics")
        return data


def performance_level(focus_score: float, efficiency: float) -> str:
    if focus_score >= 0.8 and efficiency >= 1.0:
        return "excellent"
    if focus_score >= 0.6 and efficiency >= 0.5:
        return "good"
    if focus_score >= 0.4 or efficiency >= 0.3:
        return "fair"
    return "needs_improvement"


def analyze_performance(session, detailed: bool = False) -> SessionPerformance:
    duration = session.total_duration_seconds or 0
    pages = session.pages_covered or 0
    focus = _focus_of(session)

    duration_minutes = round(duration / 60)
    efficiency = pages / (duration_minutes or 1)

    performance = SessionPerformance(
        duration_minutes=duration_minutes,
        pages_covered=pages,
        focus_score_percentage=round(focus * 100),
        efficiency_pages_per_minute=round(efficiency, 1),
        average_time_per_page_seconds=round(duration / pages) if pages > 0 else 0,
        performance_level=performance_level(focus, efficiency),
        break_time_percentage=round((session.break_time_seconds or 0) / duration * 100) if duration > 0 else 0,
    )

    if detailed:
        performance.detailed_metrics = {
            "tab_switches": session.tab_switches or 0,
            "app_minimized_count": session.app_minimized_count or 0,
            "inactivity_periods": session.inactivity_periods or 0,
            "focus_events": session.focus_events or 0,
            "longest_focus_streak_minutes": round((session.longest_focus_streak_seconds or 0) / 60),
            "comprehension_rating": session.comprehension_rating,
            "difficulty_rating": session.difficulty_rating,
            "energy_level": session.energy_level,
        }

    return performance


def session_summary(session, performance: SessionPerformance, achievements_earned: int) -> dict:
    insights = []
    if performance.focus_score_percentage >= 80:
        insights.append("Excellent concentration throughout the session")
    if performance.efficiency_pages_per_minute >= 1.0:
        insights.append("Great reading pace and efficiency")
    if (session.break_time_seconds or 0) > 0:
        insights.append("Good use of breaks to maintain energy")
    if achievements_earned > 0:
        plural = "s" if achievements_earned > 1 else ""
        insights.append(f"Earned {achievements_earned} new achievement{plural}!")

    return {
        "duration": f"{performance.duration_minutes} minutes",
        "productivity": f"{performance.pages_covered} pages covered",
        "focus": f"{performance.focus_score_percentage}% focus score",
        "performance_level": performance.performance_level,
        "achievements_earned": achievements_earned,
        "key_insights": insights,
    }


def next_session_recommendations(session, document_title: Optional[str] = None) -> List[dict]:
    duration = session.total_duration_seconds or 0
    title = f'"{document_title}"' if document_title else "your document"

    recommendations = [{
        "type": "continuation",
        "title": "Continue Reading",
        "description": f"Pick up where you left off in {title}",
        "estimated_duration": "30-45 minutes",
    }]

    if duration >= 1200:
        recommendations.append({
            "type": "review",
            "title": "Quick Review",
            "description": "Review the pages you just completed to reinforce learning",
            "estimated_duration": "15-20 minutes",
        })

    if duration >= 3600:
        recommendations.insert(0, {
            "type": "break",
            "title": "Take a Break",
            "description": "You've been studying for a while. Take a longer break before your next session.",
            "estimated_duration": "30-60 minutes",
        })

    return recommendations


@dataclass
class SessionInsight:
    type: str
    message: str
    recommendation: str


def session_insights(session, encouragement_levels: Optional[List[int]] = None) -> List[SessionInsight]:
    insights = []
    focus = _focus_of(session)
    duration_minutes = (session.total_duration_seconds or 0) / 60

    if focus >= 0.9:
        insights.append(SessionInsight(
            "focus",
            "Outstanding focus! You maintained excellent concentration.",
            "This level of focus is perfect for tackling challenging material.",
        ))
    elif focus < 0.5:
        insights.append(SessionInsight(
            "focus",
            "Focus was below optimal. Consider environmental changes.",
            "Try using website blockers or studying in a quieter location.",
        ))

    if 45 <= duration_minutes <= 60:
        insights.append(SessionInsight(
            "duration",
            "Perfect session length for optimal learning and retention.",
            "This duration appears to work well for you - stick with it!",
        ))
    elif duration_minutes > 90:
        insights.append(SessionInsight(
            "duration",
            "Very long session. Consider breaking into smaller chunks.",
            "Try 45-60 minute sessions with breaks for better retention.",
        ))

    if duration_minutes > 0 and (session.pages_covered or 0) / duration_minutes > 1.5:
        insights.append(SessionInsight(
            "speed",
            "Fast reading pace! Make sure comprehension is maintained.",
            "Consider occasional self-checks to ensure understanding.",
        ))

    if encouragement_levels:
        encouraging = sum(1 for level in encouragement_levels if level >= 4)
        if encouraging / len(encouragement_levels) >= 0.7:
            insights.append(SessionInsight(
                "consistency",
                "Consistent good performance throughout the session.",
                "Your reading rhythm is well-established!",
            ))

    return insights
