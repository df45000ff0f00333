import os
import sys
from pathlib import Path

# Storage picks its engine from APP_ENV at import time
os.environ["APP_ENV"] = "test"

import pytest  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.user import User, UserRole  # noqa: E402

PASSWORD = "CorrectHorse9!"


@pytest.fixture
def app():
    storage.reset()
    app = create_app("test")
    yield app
    storage.close()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app_ctx):
    """Persist a user with a known password."""

    def _make(email="user@example.com", password=PASSWORD, role=UserRole.USER.value, **fields):
        user = User(email=email, role=role, **fields)
        user.password = password
        user.save()
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role=UserRole.ADMIN.value)


@pytest.fixture
def password():
    return PASSWORD
