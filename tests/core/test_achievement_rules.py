import logging

from studypace.core import achievements
from studypace.core.achievements import AchievementRule, DerivedMetrics, RequirementType
from studypace.core.stats import StatAggregate

CATALOG = [AchievementRule(*entry[:1], *entry[5:]) for entry in achievements.DEFAULT_CATALOG]


def codes(awards):
    return {award.code for award in awards}


def test_default_catalog_is_well_formed():
    all_codes = [entry[0] for entry in achievements.DEFAULT_CATALOG]
    assert len(all_codes) == len(set(all_codes))
    for rule in CATALOG:
        assert RequirementType.parse(rule.requirement_type) is not None


def test_first_page_award():
    stats = StatAggregate(total_pages_read=1, average_reading_speed_seconds=90)
    awards = achievements.evaluate(stats, DerivedMetrics(), CATALOG, set())

    assert codes(awards) == {"first_page"}
    assert awards[0].points == 25
    assert awards[0].progress_value == 1


def test_already_earned_codes_are_not_awarded_again():
    stats = StatAggregate(total_pages_read=12, average_reading_speed_seconds=90)
    first = achievements.evaluate(stats, DerivedMetrics(), CATALOG, set())
    assert codes(first) == {"first_page", "pages_10"}

    second = achievements.evaluate(stats, DerivedMetrics(), CATALOG, codes(first))
    assert second == []


def test_average_page_time_is_lower_is_better():
    stats = StatAggregate(total_pages_read=10, average_reading_speed_seconds=50)
    awarded = codes(achievements.evaluate(stats, DerivedMetrics(), CATALOG, set()))
    assert "speed_reader" in awarded
    assert "lightning_fast" not in awarded


def test_average_page_time_needs_pages_read():
    stats = StatAggregate(total_pages_read=0, average_reading_speed_seconds=20)
    assert achievements.evaluate(stats, DerivedMetrics(), CATALOG, set()) == []


def test_hours_are_whole_hours():
    almost = StatAggregate(total_time_spent_seconds=3599)
    assert "hour_1" not in codes(achievements.evaluate(almost, DerivedMetrics(), CATALOG, set()))

    hour = StatAggregate(total_time_spent_seconds=3600)
    assert "hour_1" in codes(achievements.evaluate(hour, DerivedMetrics(), CATALOG, set()))


def test_derived_metrics_drive_sprint_and_focus_awards():
    metrics = DerivedMetrics(completed_sprints=10, perfect_sprints=1, high_focus_sessions=5, ultra_focus_sessions=3)
    awarded = codes(achievements.evaluate(StatAggregate(), metrics, CATALOG, set()))
    assert awarded == {"sprint_1", "sprint_10", "perfect_sprint", "focused_reader"}


def test_streak_and_documents():
    stats = StatAggregate(total_documents=1, current_streak_days=7)
    awarded = codes(achievements.evaluate(stats, DerivedMetrics(), CATALOG, set()))
    assert awarded == {"first_pdf", "streak_3", "streak_7"}


def test_unknown_requirement_type_is_skipped(caplog):
    catalog = [
        AchievementRule("mystery", "pages_highlighted", 1, 10),
        AchievementRule("first_page", "pages_read", 1, 25),
    ]
    stats = StatAggregate(total_pages_read=5)

    with caplog.at_level(logging.WARNING):
        awards = achievements.evaluate(stats, DerivedMetrics(), catalog, set())

    assert codes(awards) == {"first_page"}
    assert "mystery" in caplog.text


def test_progress_percentage():
    assert achievements.progress_percentage("pages_read", 25, 50) == 50
    assert achievements.progress_percentage("pages_read", 80, 50) == 100
    assert achievements.progress_percentage("avg_page_time", 120, 60) == 50
    assert achievements.progress_percentage("avg_page_time", 0, 60) == 0
    assert achievements.progress_percentage("pages_highlighted", 5, 10) == 0
