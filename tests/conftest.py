"""Test configuration and fixtures."""

import pytest

from community_vote import create_app
from community_vote.config import Config
from community_vote.extensions import db
from community_vote.models.user import User
from community_vote.services.token_service import ResidentTokenService

from tests.helpers import ADMIN_EMAIL, ADMIN_PASSWORD, RESIDENT_SECRET


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    RESIDENT_TOKEN_SECRET = RESIDENT_SECRET
    PUBLIC_ORIGIN = "https://vote.example.org"
    LIVE_STREAM_HEARTBEAT_SECONDS = 1


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def tokens():
    return ResidentTokenService(RESIDENT_SECRET)


@pytest.fixture
def admin(app):
    user = User(email=ADMIN_EMAIL, role=User.ROLE_ADMIN)
    user.set_password(ADMIN_PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_headers(client, admin):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['access_token']}"}

