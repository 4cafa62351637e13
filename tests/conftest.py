from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from firebase_admin import firestore

from fakes import FakeFirestore, FakeIdentityProvider, fake_transactional
from main import app
from models.session import SessionContext
from routes.metrics_routes import metrics_cache
from services.firebase_client import get_db, USERS, REWARDS
from services.identity_provider import get_identity_provider
from services.login_throttle import login_throttle


@pytest.fixture
def fake_db(monkeypatch):
    monkeypatch.setattr(firestore, "transactional", fake_transactional)
    return FakeFirestore()


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def seed_user(fake_db):
    """Crea un perfil en la base falsa y devuelve su SessionContext."""
    def _seed(uid="user-1", role="user", points=0, username=None):
        profile = {
            "id": uid,
            "username": username or uid,
            "email": f"{uid}@wasteward.id",
            "role": role,
            "points": points,
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        fake_db.seed(USERS, uid, profile)
        return SessionContext(**profile, session_id=f"session-{uid}")

    return _seed


@pytest.fixture
def seed_reward(fake_db):
    def _seed(reward_id="reward-1", points_required=20, name="Tote bag"):
        fake_db.seed(REWARDS, reward_id, {
            "id": reward_id,
            "name": name,
            "description": "Tas belanja kain",
            "points_required": points_required,
            "category": "item",
            "image_url": None,
        })
        return reward_id

    return _seed


@pytest.fixture
def client(fake_db, identity):
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_identity_provider] = lambda: identity
    login_throttle.clear()
    metrics_cache.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client, fake_db):
    """Registra e inicia sesión por la API; opcionalmente cambia rol o puntos."""
    def _make(username="warga", password="rahasia123", role="user", points=None):
        email = f"{username}@wasteward.id"
        r = client.post("/auth/register", json={"username": username, "email": email, "password": password})
        assert r.status_code == 201, r.text

        r = client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        body = r.json()
        uid = body["user"]["id"]

        profile = fake_db.data(USERS, uid)
        profile["role"] = role
        if points is not None:
            profile["points"] = points
        fake_db.seed(USERS, uid, profile)

        token = body["access_token"]
        return {
            "id": uid,
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make

