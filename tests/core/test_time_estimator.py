import pytest
from datetime import date
from types import SimpleNamespace

from studypace.config import settings
from studypace.core import estimates

TODAY = date(2026, 3, 11)


def page(number, completed=False, spent=0, estimated=120.0, difficulty=None):
    return SimpleNamespace(
        page_number=number,
        is_completed=completed,
        time_spent_seconds=spent,
        estimated_time_seconds=estimated,
        difficulty_rating=difficulty,
    )


def test_empty_document():
    estimate = estimates.estimate_remaining([], 0, 120, today=TODAY)
    assert estimate.remaining_seconds == 0
    assert estimate.remaining_pages == 0
    assert estimate.completion_date is None
    assert estimate.percentage_remaining == 0


def test_finished_document_has_nothing_left():
    pages = [page(n, completed=True, spent=100) for n in range(1, 4)]
    estimate = estimates.estimate_remaining(pages, 3, 100, today=TODAY)

    assert estimate.remaining_seconds == 0
    assert estimate.remaining_pages == 0
    assert estimate.completion_date == TODAY


def test_pages_without_records_use_average_speed():
    estimate = estimates.estimate_remaining([], 10, 90, today=TODAY)
    assert estimate.remaining_seconds == 900
    assert estimate.remaining_pages == 10
    assert estimate.percentage_remaining == 100
    assert estimate.completion_date == date(2026, 3, 12)
    assert estimate.blended is False


def test_difficulty_multiplier_applies_to_analysed_pages():
    pages = [page(1, estimated=100, difficulty=5), page(2, estimated=100, difficulty=5)]
    estimate = estimates.estimate_remaining(pages, 3, 120, today=TODAY)
    # 2 * 100 * 1.4 + 120 for the page with no record
    assert estimate.remaining_seconds == 400


def test_observed_pace_is_blended_in():
    pages = [page(1, completed=True, spent=240)]
    estimate = estimates.estimate_remaining(pages, 3, 120, today=TODAY)

    assert estimate.speed_ratio == 2
    assert estimate.blended is True
    # 240 * (0.7 * 2 + 0.3)
    assert estimate.remaining_seconds == 408


@pytest.mark.parametrize("spent", [6, 1200])
def test_ratio_outside_window_is_ignored(spent):
    pages = [page(1, completed=True, spent=spent)]
    estimate = estimates.estimate_remaining(pages, 3, 120, today=TODAY)

    assert estimate.blended is False
    assert estimate.remaining_seconds == 240


def test_completed_pages_without_time_do_not_blend():
    pages = [page(1, completed=True, spent=0)]
    estimate = estimates.estimate_remaining(pages, 3, 120, today=TODAY)
    assert estimate.speed_ratio is None
    assert estimate.remaining_seconds == 240


def test_blend_weight_is_configurable(monkeypatch):
    monkeypatch.setattr(settings, "estimate_blend_weight", 0.5)
    assert estimates.blend_factor(2.0) == pytest.approx(1.5)


def test_unset_average_falls_back_to_default():
    assert estimates.estimate_remaining([], 2, None, today=TODAY).remaining_seconds == 240
    assert estimates.estimate_remaining([], 2, 0, today=TODAY).remaining_seconds == 240


def test_completion_date_rounds_up_days():
    assert estimates.completion_date(7300, 3600, TODAY) == date(2026, 3, 14)
    assert estimates.completion_date(3600, None, TODAY) == date(2026, 3, 12)
    assert estimates.completion_date(0, 1800, TODAY) == TODAY


def test_daily_study_seconds():
    assert estimates.daily_study_seconds({}) == 3600
    assert estimates.daily_study_seconds({date(2026, 3, 9): 1800, date(2026, 3, 10): 3600}) == 2700
    assert estimates.daily_study_seconds({date(2026, 3, 9): 0, date(2026, 3, 10): 1200}) == 1200


def test_suggest_sprint():
    sprint = estimates.suggest_sprint(100, 40, 90, 1800)
    assert sprint.start_page == 41
    assert sprint.end_page == 60
    assert sprint.pages == 20
    assert sprint.estimated_seconds == 1800
    assert sprint.document_complete is False


def test_suggest_sprint_is_capped_by_remaining_pages():
    sprint = estimates.suggest_sprint(100, 95, 60, 1800)
    assert (sprint.start_page, sprint.end_page, sprint.pages) == (96, 100, 5)


def test_suggest_sprint_always_has_one_page():
    sprint = estimates.suggest_sprint(100, 0, 4000, 1800)
    assert sprint.pages == 1
    assert sprint.end_page == 1


def test_suggest_sprint_for_finished_document():
    sprint = estimates.suggest_sprint(100, 100, 90)
    assert sprint.document_complete is True
    assert sprint.pages == 0
    assert sprint.estimated_seconds == 0
    assert sprint.start_page == 101
    assert sprint.end_page == 100


@pytest.mark.parametrize("seconds, text", [(3900, "1h 5m"), (720, "12m"), (59, "0m"), (0, "0m"), (7200, "2h 0m")])
def test_format_duration(seconds, text):
    assert estimates.format_duration(seconds) == text


def test_words_per_minute():
    assert estimates.words_per_minute(60) == 250
    assert estimates.words_per_minute(120) == 125
    assert estimates.words_per_minute(0) == 0
