import pytest
from datetime import date
from types import SimpleNamespace

from studypace.core import stats
from studypace.core.stats import StatAggregate

TODAY = date(2026, 3, 11)


@pytest.mark.parametrize("xp, level", [(0, 1), (99, 1), (100, 2), (399, 2), (400, 3), (899, 3), (900, 4)])
def test_level_for_xp(xp, level):
    assert stats.level_for_xp(xp) == level


def test_level_is_monotonic():
    levels = [stats.level_for_xp(xp) for xp in range(0, 20000, 7)]
    assert levels == sorted(levels)
    assert levels[0] == 1


def test_add_xp_keeps_level_in_sync():
    updated = stats.add_xp(StatAggregate(), 400)
    assert updated.total_xp_points == 400
    assert updated.current_level == 3

    again = stats.add_xp(updated, 0)
    assert again.current_level == 3


def test_streak_starts_extends_and_resets():
    first = stats.advance_streak(StatAggregate(), TODAY)
    assert first.current_streak_days == 1
    assert first.last_activity_date == TODAY

    same_day = stats.advance_streak(first, TODAY)
    assert same_day.current_streak_days == 1

    next_day = stats.advance_streak(first, date(2026, 3, 12))
    assert next_day.current_streak_days == 2
    assert next_day.longest_streak_days == 2

    after_gap = stats.advance_streak(next_day, date(2026, 3, 20))
    assert after_gap.current_streak_days == 1
    assert after_gap.longest_streak_days == 2


def test_record_page_counts_first_completion_only():
    once = stats.record_page(StatAggregate(), 90, newly_completed=True, today=TODAY)
    assert once.total_pages_read == 1
    assert once.total_time_spent_seconds == 90
    assert once.average_reading_speed_seconds == 90
    assert once.current_streak_days == 1

    reread = stats.record_page(once, 30, newly_completed=False, today=TODAY)
    assert reread.total_pages_read == 1
    assert reread.total_time_spent_seconds == 120
    assert reread.average_reading_speed_seconds == 120


def test_record_page_average_never_zero():
    updated = stats.record_page(StatAggregate(), 0, newly_completed=True, today=TODAY)
    assert updated.total_pages_read == 1
    assert updated.average_reading_speed_seconds == 120


def test_record_session_running_means():
    first = stats.record_session(StatAggregate(), 600, 0.8, TODAY)
    second = stats.record_session(first, 1200, 0.6, TODAY)

    assert second.total_study_sessions == 2
    assert second.average_session_duration_seconds == 900
    assert second.focus_score_average == pytest.approx(0.7)
    # Page totals belong to page events
    assert second.total_pages_read == 0


def test_from_record_fills_missing_values_with_defaults():
    record = SimpleNamespace(total_pages_read=3, average_reading_speed_seconds=None, current_level=None)
    aggregate = StatAggregate.from_record(record)

    assert aggregate.total_pages_read == 3
    assert aggregate.average_reading_speed_seconds == 120.0
    assert aggregate.current_level == 1


def test_total_time_hours_rounds_down():
    assert StatAggregate(total_time_spent_seconds=3599).total_time_hours == 0
    assert StatAggregate(total_time_spent_seconds=7200).total_time_hours == 2


@pytest.mark.parametrize("quality, streak, xp", [
    (3, 0, 10),
    (4, 0, 15),
    (5, 0, 25),
    (3, 7, 15),
    (5, 30, 35),
])
def test_sprint_xp(quality, streak, xp):
    assert stats.sprint_xp(quality, streak) == xp


def test_effective_speed():
    assert stats.effective_speed(None) == 120
    assert stats.effective_speed(-4) == 120
    assert stats.effective_speed(45) == 45
