import pytest

from studypace.config import settings
from studypace.core.errors import InvalidInputError, NotFoundError
from studypace.models import PageRecord
from studypace.services.documents import DocumentService
from studypace.services.progress import ProgressService


def test_first_completion_counts_the_page(db, normal_user, document, now):
    progress = ProgressService(db, normal_user.id).record_page_progress(document.id, 1, 90, now=now)
    db.commit()

    assert progress.newly_completed is True
    assert progress.page.is_completed is True
    assert progress.page.time_spent_seconds == 90
    assert progress.page.last_read_at == now
    assert progress.stats.total_pages_read == 1
    assert progress.stats.total_time_spent_seconds == 90
    assert progress.stats.average_reading_speed_seconds == 90
    assert progress.stats.current_streak_days == 1
    assert progress.stats.last_activity_date == now.date()
    assert progress.formatted_time == "1m"


def test_rereading_adds_time_but_not_pages(db, normal_user, document, now):
    service = ProgressService(db, normal_user.id)
    service.record_page_progress(document.id, 1, 90, now=now)
    progress = service.record_page_progress(document.id, 1, 30, now=now)
    db.commit()

    assert progress.newly_completed is False
    assert progress.page.time_spent_seconds == 120
    assert progress.stats.total_pages_read == 1
    assert progress.stats.total_time_spent_seconds == 120
    assert db.query(PageRecord).count() == 1


def test_page_must_be_in_range(db, normal_user, document, now):
    service = ProgressService(db, normal_user.id)
    with pytest.raises(InvalidInputError):
        service.record_page_progress(document.id, 0, 30, now=now)
    with pytest.raises(InvalidInputError):
        service.record_page_progress(document.id, 101, 30, now=now)


def test_document_without_pages_rejects_every_page(db, normal_user, now):
    empty = DocumentService(db, normal_user.id).create_document("Cover Sheet", 0)
    service = ProgressService(db, normal_user.id)
    for page_number in (1, 5):
        with pytest.raises(InvalidInputError):
            service.record_page_progress(empty.id, page_number, 30, now=now)
    assert db.query(PageRecord).count() == 0


def test_lazy_page_uses_the_configured_default(db, normal_user, document, now, monkeypatch):
    monkeypatch.setattr(settings, "default_page_seconds", 95.0)
    progress = ProgressService(db, normal_user.id).record_page_progress(document.id, 7, 60, now=now)
    assert progress.page.estimated_time_seconds == 95.0


def test_negative_time_is_rejected(db, normal_user, document, now):
    with pytest.raises(InvalidInputError):
        ProgressService(db, normal_user.id).record_page_progress(document.id, 1, -5, now=now)


def test_other_users_document_is_not_found(db, other_user, document, now):
    with pytest.raises(NotFoundError):
        ProgressService(db, other_user.id).record_page_progress(document.id, 1, 30, now=now)


def test_analysis_is_kept_when_the_page_is_read(db, normal_user, document, now):
    DocumentService(db, normal_user.id).record_page_analysis(document.id, 3, estimated_time_seconds=200, difficulty_rating=4)
    progress = ProgressService(db, normal_user.id).record_page_progress(document.id, 3, 150, now=now)

    assert progress.newly_completed is True
    assert progress.page.estimated_time_seconds == 200
    assert progress.page.difficulty_rating == 4


def test_document_progress(db, normal_user, document, now):
    service = ProgressService(db, normal_user.id)
    service.record_page_progress(document.id, 1, 60, now=now)
    service.record_page_progress(document.id, 2, 120, now=now)
    db.commit()

    progress = service.document_progress(document.id)
    assert progress["completed_pages"] == 2
    assert progress["pages_remaining"] == 98
    assert progress["progress_percentage"] == 2.0
    assert progress["time_spent_seconds"] == 180
    assert progress["average_page_seconds"] == 90
    assert progress["last_read_at"] == now

    assert service.completed_page_average(document.id) == 90


def test_completed_page_average_without_history(db, normal_user, document):
    assert ProgressService(db, normal_user.id).completed_page_average(document.id) is None


def test_page_analysis_validates_difficulty(db, normal_user, document):
    with pytest.raises(InvalidInputError):
        DocumentService(db, normal_user.id).record_page_analysis(document.id, 1, difficulty_rating=7)


def test_document_difficulty(db, normal_user, document):
    documents = DocumentService(db, normal_user.id)
    assert documents.document_difficulty(document.id) == 3

    documents.record_page_analysis(document.id, 1, difficulty_rating=4)
    documents.record_page_analysis(document.id, 2, difficulty_rating=4)
    documents.record_page_analysis(document.id, 3, difficulty_rating=1)

    assert documents.document_difficulty(document.id, page_number=3) == 1
    assert documents.document_difficulty(document.id, page_number=50) == 3
