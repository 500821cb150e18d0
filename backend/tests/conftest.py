"""
Pytest fixtures for POS backend tests.

Each test gets a fresh app: in-memory SQLite for the session table and an
in-memory key-value backend behind the data store (seeded with the demo
catalog and the admin/cashier accounts on first use).
"""

import pytest
from pos import create_app
from pos.extensions import db
from pos.services.store_service import DataStore, MemoryKeyValueBackend


@pytest.fixture(scope='function')
def backend():
    return MemoryKeyValueBackend()


@pytest.fixture(scope='function')
def app(backend):
    """Create application for testing."""
    app = create_app(
        {
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'SQLALCHEMY_TRACK_MODIFICATIONS': False,
            'POS_TIMEZONE': 'UTC',
            'POS_SEED_DEMO_DATA': True,
        },
        backend=backend,
    )

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def store(backend):
    """DataStore over the same backend the app uses, already seeded."""
    store = DataStore(backend)
    store.initialize()
    return store


def _login(client, username: str, password: str = "password") -> dict:
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture(scope='function')
def admin_headers(client):
    return _login(client, "admin")


@pytest.fixture(scope='function')
def cashier_headers(client):
    return _login(client, "cashier")
