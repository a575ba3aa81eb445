import pytest
from types import SimpleNamespace

from studypace.core import focus
from studypace.core.errors import InvalidInputError


def make_session(**overrides):
    values = dict(
        total_duration_seconds=0,
        break_time_seconds=0,
        pages_covered=0,
        tab_switches=0,
        app_minimized_count=0,
        inactivity_periods=0,
        focus_events=0,
        focus_score=None,
        longest_focus_streak_seconds=0,
        comprehension_rating=None,
        difficulty_rating=None,
        energy_level=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.mark.parametrize("counters", [
    (0, 0, 0, 0),
    (50, 50, 50, 0),
    (0, 0, 0, 500),
])
def test_zero_duration_is_full_focus(counters):
    """No time elapsed means no evidence of distraction yet"""
    assert focus.score(0, *counters) == 1.0


@pytest.mark.parametrize("duration", [1, 60, 3600])
@pytest.mark.parametrize("tabs", [0, 1, 6, 1000])
@pytest.mark.parametrize("minimized", [0, 2, 100])
@pytest.mark.parametrize("inactive", [0, 3, 100])
@pytest.mark.parametrize("focus_events", [0, 5, 1000])
def test_score_is_bounded(duration, tabs, minimized, inactive, focus_events):
    value = focus.score(duration, tabs, minimized, inactive, focus_events)
    assert 0.1 <= value <= 1.0


def test_penalties_and_bonus():
    assert focus.score(600, tab_switches=2) == pytest.approx(0.9)
    assert focus.score(600, minimized_count=1) == pytest.approx(0.92)
    assert focus.score(600, inactivity_periods=2) == pytest.approx(0.88)
    assert focus.score(600, tab_switches=2, focus_events=5) == pytest.approx(0.95)


def test_each_signal_is_capped():
    assert focus.score(600, tab_switches=100) == pytest.approx(0.7)
    assert focus.score(600, minimized_count=100) == pytest.approx(0.8)
    assert focus.score(600, inactivity_periods=100) == pytest.approx(0.75)

    # Everything maxed: 1 - 0.30 - 0.20 - 0.25
    assert focus.score(600, 100, 100, 100) == pytest.approx(0.25)
    # The bonus can't make up for heavy distraction
    assert focus.score(600, 100, 100, 100, 100) == pytest.approx(0.35)


def test_bonus_never_exceeds_ceiling():
    assert focus.score(600, focus_events=80) == 1.0


def test_negative_counters_are_rejected():
    with pytest.raises(InvalidInputError):
        focus.score(-1)
    with pytest.raises(InvalidInputError):
        focus.score(60, tab_switches=-2)


def test_live_feedback_levels():
    session = make_session(total_duration_seconds=600, pages_covered=20)

    feedback = focus.live_feedback(session, 0.95)
    assert feedback["type"] == "excellent"
    assert feedback["focus_score"] == 95
    assert feedback["duration_minutes"] == 10
    assert feedback["pages_per_minute"] == 2.0
    assert feedback["message"].endswith("Great reading pace!")

    assert focus.live_feedback(session, 0.75)["type"] == "good"
    assert focus.live_feedback(session, 0.5)["type"] == "fair"
    assert focus.live_feedback(session, 0.3)["type"] == "poor"


def test_live_feedback_slow_reader_remark():
    session = make_session(total_duration_seconds=1200, pages_covered=4)
    feedback = focus.live_feedback(session, 0.8)
    assert "Taking time to understand is good." in feedback["message"]


def test_activity_recommendations():
    calm = make_session(total_duration_seconds=600, focus_score=0.9)
    assert focus.activity_recommendations(calm) == []

    long_and_distracted = make_session(total_duration_seconds=50 * 60, focus_score=0.4, tab_switches=12)
    types = [r["type"] for r in focus.activity_recommendations(long_and_distracted)]
    assert types == ["break", "environment", "distraction"]

    with_break = make_session(total_duration_seconds=50 * 60, break_time_seconds=300, focus_score=0.9)
    assert focus.activity_recommendations(with_break) == []


def test_longest_focus_streak():
    undisturbed = make_session(total_duration_seconds=1200, break_time_seconds=200)
    assert focus.longest_focus_streak(undisturbed) == 1000

    distracted = make_session(total_duration_seconds=1200, break_time_seconds=200, tab_switches=3, app_minimized_count=1)
    assert focus.longest_focus_streak(distracted) == 200


@pytest.mark.parametrize("minutes, score, expected", [
    (20, 0.9, 5),
    (40, 0.8, 10),
    (40, 0.6, 15),
    (70, 0.8, 15),
    (70, 0.5, 20),
])
def test_optimal_break_minutes(minutes, score, expected):
    session = make_session(total_duration_seconds=minutes * 60, focus_score=score)
    assert focus.optimal_break_minutes(session) == expected


def test_remaining_optimal_minutes_has_a_floor():
    assert focus.remaining_optimal_minutes(make_session(total_duration_seconds=15 * 60)) == 30
    assert focus.remaining_optimal_minutes(make_session(total_duration_seconds=60 * 60)) == 10


def test_break_suggestions_fall_back_to_generic_break():
    assert focus.break_suggestions("snack") == focus.BREAK_SUGGESTIONS["snack"]
    assert focus.break_suggestions("bathroom") == focus.BREAK_SUGGESTIONS["break"]


def test_session_tips_depend_on_type_and_energy():
    tips = focus.session_tips("exam_prep", 1)
    assert tips[0] == "Simulate exam conditions"
    assert len(tips) == 4

    assert len(focus.session_tips("reading", 3)) == 3
    assert "Use this high energy for challenging material" in focus.session_tips("review", 5)


def test_refocus_tips():
    assert len(focus.refocus_tips(None, make_session(focus_score=0.9))) == 2
    assert len(focus.refocus_tips(2, make_session(focus_score=0.5))) == 6


@pytest.mark.parametrize("score, efficiency, expected", [
    (0.85, 1.2, "excellent"),
    (0.85, 0.6, "good"),
    (0.45, 0.1, "fair"),
    (0.2, 0.35, "fair"),
    (0.2, 0.1, "needs_improvement"),
])
def test_performance_level(score, efficiency, expected):
    assert focus.performance_level(score, efficiency) == expected


def test_analyze_performance():
    session = make_session(total_duration_seconds=1800, pages_covered=30, focus_score=0.85, break_time_seconds=180)
    performance = focus.analyze_performance(session)

    assert performance.duration_minutes == 30
    assert performance.efficiency_pages_per_minute == 1.0
    assert performance.average_time_per_page_seconds == 60
    assert performance.focus_score_percentage == 85
    assert performance.break_time_percentage == 10
    assert performance.performance_level == "excellent"
    assert "detailed_metrics" not in performance.to_dict()

    detailed = focus.analyze_performance(session, detailed=True).to_dict()
    assert detailed["detailed_metrics"]["tab_switches"] == 0


def test_analyze_performance_empty_session():
    performance = focus.analyze_performance(make_session())
    assert performance.duration_minutes == 0
    assert performance.average_time_per_page_seconds == 0
    assert performance.break_time_percentage == 0


def test_session_summary_insights():
    session = make_session(total_duration_seconds=1800, pages_covered=30, focus_score=0.85, break_time_seconds=60)
    performance = focus.analyze_performance(session)
    summary = focus.session_summary(session, performance, achievements_earned=2)

    assert summary["duration"] == "30 minutes"
    assert summary["achievements_earned"] == 2
    assert "Earned 2 new achievements!" in summary["key_insights"]
    assert "Good use of breaks to maintain energy" in summary["key_insights"]


def test_next_session_recommendations():
    short = focus.next_session_recommendations(make_session(total_duration_seconds=600), "Calculus")
    assert [r["type"] for r in short] == ["continuation"]
    assert '"Calculus"' in short[0]["description"]

    long = focus.next_session_recommendations(make_session(total_duration_seconds=3700))
    assert [r["type"] for r in long] == ["break", "continuation", "review"]


def test_session_insights():
    session = make_session(total_duration_seconds=50 * 60, pages_covered=10, focus_score=0.92)
    insights = focus.session_insights(session, [5, 5, 4, 3])
    assert [i.type for i in insights] == ["focus", "duration", "consistency"]
