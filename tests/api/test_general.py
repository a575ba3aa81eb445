import logging

from jose import jwt

from studypace.config import settings
from studypace.logging import LogConfig


def make_token(username):
    return jwt.encode({"sub": username}, settings.secret_key, algorithm=settings.algorithm)


def test_health_check(client):
    """Ensure the app is running and health endpoint returns 200"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "studypace"}


def test_unauthorized_access(client):
    """Ensure API endpoints reject unauthenticated users"""
    response = client.get("/api/documents/")
    assert response.status_code == 401
    assert response.json() == {"detail": "Not authenticated"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_bearer_token_resolves_user(client, normal_user):
    """A token signed with the shared key is enough to reach the API"""
    response = client.get("/api/stats/me", headers={"Authorization": f"Bearer {make_token('testuser')}"})
    assert response.status_code == 200


def test_invalid_tokens_are_rejected(client, normal_user, db):
    forged = jwt.encode({"sub": "testuser"}, "not-the-key", algorithm=settings.algorithm)
    response = client.get("/api/stats/me", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401

    unknown = client.get("/api/stats/me", headers={"Authorization": f"Bearer {make_token('ghost')}"})
    assert unknown.status_code == 401

    normal_user.is_active = False
    db.commit()
    inactive = client.get("/api/stats/me", headers={"Authorization": f"Bearer {make_token('testuser')}"})
    assert inactive.status_code == 401


def test_catalog_is_seeded_at_startup(auth_client):
    response = auth_client.get("/api/achievements/")
    assert response.status_code == 200
    assert response.json()["total_count"] == 19


def test_log_setup_writes_to_the_log_dir(tmp_path):
    logger = LogConfig(log_dir=str(tmp_path / "logs")).setup_logging("debug")
    try:
        assert logger.name == "studypace"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2

        logger.info("hello")
        assert (tmp_path / "logs" / "studypace.log").exists()
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
