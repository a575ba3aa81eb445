from studypace.models import PageRecord


def test_achievement_overview(auth_client):
    response = auth_client.get("/api/achievements/")
    assert response.status_code == 200
    data = response.json()
    assert data["earned_count"] == 0
    assert data["total_count"] == 19
    assert data["total_xp_points"] == 0
    assert data["current_level"] == 1


def test_achievements_after_reading(auth_client, document):
    auth_client.post("/api/progress/pages/complete", json={
        "document_id": document.id, "page_number": 1, "time_spent_seconds": 90,
    })
    check = auth_client.post("/api/achievements/check")
    assert [a["code"] for a in check.json()["new_achievements"]] == ["first_page"]

    overview = auth_client.get("/api/achievements/").json()
    assert overview["earned_count"] == 1
    assert overview["total_xp_points"] == 25

    recent = auth_client.get("/api/achievements/recent").json()
    assert recent[0]["code"] == "first_page"


def test_leaderboard(auth_client, normal_user):
    auth_client.post("/api/achievements/check")
    response = auth_client.get("/api/achievements/leaderboard", params={"metric": "pages"})
    assert response.status_code == 200
    assert response.json()["metric"] == "pages"

    assert auth_client.get("/api/achievements/leaderboard", params={"metric": "karma"}).status_code == 422


def test_sprint_flow(auth_client, document):
    suggestion = auth_client.get("/api/sprints/suggest", params={"document_id": document.id})
    assert suggestion.status_code == 200
    # 1800s block at the default 120s per page
    assert suggestion.json()["start_page"] == 1
    assert suggestion.json()["end_page"] == 15

    created = auth_client.post("/api/sprints/", json={"document_id": document.id})
    assert created.status_code == 201
    sprint_id = created.json()["id"]

    completed = auth_client.patch(f"/api/sprints/{sprint_id}/complete", json={
        "pages_completed": 15, "completion_quality": 4,
    })
    assert completed.status_code == 200
    data = completed.json()
    assert data["xp_awarded"] == 15
    assert data["sprint"]["completed"] is True
    assert [a["code"] for a in data["new_achievements"]] == ["sprint_1"]

    again = auth_client.patch(f"/api/sprints/{sprint_id}/complete", json={
        "pages_completed": 15, "completion_quality": 4,
    })
    assert again.status_code == 409

    listing = auth_client.get("/api/sprints/", params={"document_id": document.id}).json()
    assert len(listing) == 1
    assert listing[0]["completed"] is True

    stats = auth_client.get("/api/stats/me").json()
    assert stats["total_xp_points"] == 115
    assert stats["current_level"] == 2


def test_sprint_validation(auth_client, document):
    sprint_id = auth_client.post("/api/sprints/", json={"document_id": document.id}).json()["id"]

    too_many = auth_client.patch(f"/api/sprints/{sprint_id}/complete", json={
        "pages_completed": 16, "completion_quality": 4,
    })
    assert too_many.status_code == 400

    bad_quality = auth_client.patch(f"/api/sprints/{sprint_id}/complete", json={
        "pages_completed": 5, "completion_quality": 0,
    })
    assert bad_quality.status_code == 422
    assert auth_client.get("/api/sprints/suggest", params={"document_id": 9999}).status_code == 404


def test_finished_document_sprint(auth_client, document, db, normal_user):
    for number in range(1, 101):
        db.add(PageRecord(user_id=normal_user.id, document_id=document.id, page_number=number,
                          time_spent_seconds=60, is_completed=True))
    db.commit()

    suggestion = auth_client.get("/api/sprints/suggest", params={"document_id": document.id}).json()
    assert suggestion["document_complete"] is True
    assert suggestion["pages"] == 0

    assert auth_client.post("/api/sprints/", json={"document_id": document.id}).status_code == 409


def test_document_estimate(auth_client, document):
    response = auth_client.get(f"/api/estimates/{document.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["remaining_seconds"] == 12000
    assert data["remaining_pages"] == 100
    assert data["percentage_remaining"] == 100
    assert data["personalized"] is False
    assert data["formatted_remaining"] == "3h 20m"

    assert auth_client.get("/api/estimates/9999").status_code == 404


def test_backlog_estimate(auth_client, document):
    auth_client.post("/api/documents/", json={"title": "Short Story", "total_pages": 10})

    data = auth_client.get("/api/estimates/").json()
    assert [d["title"] for d in data["documents"]] == ["Linear Algebra Notes", "Short Story"]
    assert data["total_remaining_pages"] == 110
    assert data["total_remaining_seconds"] == 13200
    assert data["formatted_total"] == "3h 40m"
    assert data["daily_study_seconds"] == 3600
