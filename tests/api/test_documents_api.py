from studypace.models import Document, PageRecord


def test_create_and_list_documents(auth_client, db):
    response = auth_client.post("/api/documents/", json={"title": "Thermodynamics", "total_pages": 240})

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Thermodynamics"
    assert data["id"] is not None

    listing = auth_client.get("/api/documents/")
    assert listing.status_code == 200
    assert [d["title"] for d in listing.json()] == ["Thermodynamics"]

    # Verify DB
    assert db.query(Document).count() == 1


def test_create_document_validation(auth_client):
    assert auth_client.post("/api/documents/", json={"title": "", "total_pages": 10}).status_code == 422
    assert auth_client.post("/api/documents/", json={"title": "Bad", "total_pages": -1}).status_code == 422


def test_first_document_earns_achievement(auth_client):
    auth_client.post("/api/documents/", json={"title": "Thermodynamics", "total_pages": 240})

    check = auth_client.post("/api/achievements/check")
    assert check.status_code == 200
    assert [a["code"] for a in check.json()["new_achievements"]] == ["first_pdf"]
    assert check.json()["xp_gained"] == 50

    again = auth_client.post("/api/achievements/check")
    assert again.json() == {"new_achievements": [], "xp_gained": 0}


def test_page_analysis(auth_client, document, db):
    url = f"/api/documents/{document.id}/pages/4/analysis"
    response = auth_client.put(url, json={"estimated_time_seconds": 150, "difficulty_rating": 5})

    assert response.status_code == 200
    assert response.json()["difficulty_rating"] == 5
    assert response.json()["is_completed"] is False

    page = db.query(PageRecord).filter(PageRecord.page_number == 4).one()
    assert page.estimated_time_seconds == 150


def test_page_analysis_validation(auth_client, document):
    url = f"/api/documents/{document.id}/pages/4/analysis"
    assert auth_client.put(url, json={"difficulty_rating": 6}).status_code == 422

    out_of_range = auth_client.put(f"/api/documents/{document.id}/pages/500/analysis", json={"difficulty_rating": 2})
    assert out_of_range.status_code == 400


def test_documents_are_private(auth_client, db, other_user):
    foreign = Document(user_id=other_user.id, title="Someone Else's Notes", total_pages=10)
    db.add(foreign)
    db.commit()

    assert auth_client.get("/api/documents/").json() == []
    response = auth_client.put(f"/api/documents/{foreign.id}/pages/1/analysis", json={"difficulty_rating": 2})
    assert response.status_code == 404
