import pytest

from studypace.core.errors import ConflictError, InvalidInputError, NotFoundError
from studypace.models import PageRecord
from studypace.services.sprints import SprintService
from studypace.services.user_stats import UserStatsService


@pytest.fixture
def forty_pages_read(db, normal_user, document):
    """40 pages done at an average of 90 seconds each"""
    stats = UserStatsService(db, normal_user.id).get_stats()
    stats.average_reading_speed_seconds = 90
    for number in range(1, 41):
        db.add(PageRecord(user_id=normal_user.id, document_id=document.id, page_number=number,
                          time_spent_seconds=90, is_completed=True))
    db.commit()


def test_suggest_next_pages(db, normal_user, document, forty_pages_read):
    suggestion = SprintService(db, normal_user.id).suggest(document.id)

    assert suggestion.start_page == 41
    assert suggestion.end_page == 60
    assert suggestion.pages == 20
    assert suggestion.estimated_seconds == 1800


def test_suggest_honours_preferred_length(db, normal_user, document, forty_pages_read):
    suggestion = SprintService(db, normal_user.id).suggest(document.id, preferred_session_seconds=900)
    assert (suggestion.start_page, suggestion.end_page) == (41, 50)


def test_create_sprint(db, normal_user, document, forty_pages_read):
    sprint = SprintService(db, normal_user.id).create_sprint(document.id)
    db.commit()

    assert (sprint.start_page, sprint.end_page) == (41, 60)
    assert sprint.estimated_seconds == 1800
    assert sprint.completed is False


def test_complete_sprint_awards_xp_and_achievements(db, normal_user, document, forty_pages_read, catalog, now):
    service = SprintService(db, normal_user.id)
    sprint = service.create_sprint(document.id)

    result = service.complete_sprint(sprint.id, pages_completed=20, completion_quality=5, now=now)
    db.commit()

    assert result.xp_awarded == 25
    assert result.sprint.completed is True
    assert result.sprint.completed_at == now
    assert result.sprint.xp_awarded == 25
    assert {ua.achievement.code for ua in result.new_achievements} == {"sprint_1", "perfect_sprint"}

    stats = UserStatsService(db, normal_user.id).get_stats()
    assert stats.total_xp_points == 25 + 100 + 400
    assert stats.current_level == 3


def test_sprint_is_completed_once(db, normal_user, document, forty_pages_read, now):
    service = SprintService(db, normal_user.id)
    sprint = service.create_sprint(document.id)
    service.complete_sprint(sprint.id, pages_completed=10, completion_quality=3, now=now)

    with pytest.raises(ConflictError):
        service.complete_sprint(sprint.id, pages_completed=20, completion_quality=5, now=now)

    assert UserStatsService(db, normal_user.id).get_stats().total_xp_points == 10


def test_complete_sprint_validates_input(db, normal_user, document, forty_pages_read, now):
    service = SprintService(db, normal_user.id)
    sprint = service.create_sprint(document.id)

    with pytest.raises(InvalidInputError):
        service.complete_sprint(sprint.id, pages_completed=21, completion_quality=4, now=now)
    with pytest.raises(InvalidInputError):
        service.complete_sprint(sprint.id, pages_completed=5, completion_quality=6, now=now)


def test_finished_document_has_no_sprint(db, normal_user, document):
    for number in range(1, 101):
        db.add(PageRecord(user_id=normal_user.id, document_id=document.id, page_number=number,
                          time_spent_seconds=60, is_completed=True))
    db.commit()

    service = SprintService(db, normal_user.id)
    assert service.suggest(document.id).document_complete is True
    with pytest.raises(ConflictError):
        service.create_sprint(document.id)


def test_sprints_are_private(db, normal_user, other_user, document, forty_pages_read, now):
    sprint = SprintService(db, normal_user.id).create_sprint(document.id)
    db.commit()

    with pytest.raises(NotFoundError):
        SprintService(db, other_user.id).complete_sprint(sprint.id, pages_completed=1, completion_quality=3, now=now)
    with pytest.raises(NotFoundError):
        SprintService(db, other_user.id).suggest(document.id)
