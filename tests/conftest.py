from datetime import timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.user import User, Role
from security.password import hash_password
from services import offered_service_service as catalog
from services.requester import ADMIN, CLIENT, PROVIDER, RequesterContext
from utils.time import utcnow

PASSWORD = "Passw0rdOk"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_user(app):
    def _make(username, *role_names):
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(PASSWORD),
        )
        user.roles = Role.query.filter(Role.name.in_(role_names or (CLIENT,))).all()
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("root", ADMIN)


@pytest.fixture
def provider(make_user):
    return make_user("studio", PROVIDER)


@pytest.fixture
def alice(make_user):
    return make_user("alice", CLIENT)


@pytest.fixture
def bob(make_user):
    return make_user("bob", CLIENT)


@pytest.fixture
def carol(make_user):
    return make_user("carol", CLIENT)


def as_requester(user):
    return RequesterContext.from_user(user)


@pytest.fixture
def day():
    """Midnight two days from now; slots are placed at fixed hours on it."""
    return (utcnow() + timedelta(days=2)).replace(hour=0, minute=0, second=0, microsecond=0)


def at(day, hour, minute=0):
    return day + timedelta(hours=hour, minutes=minute)


@pytest.fixture
def service(provider):
    return catalog.create_offered_service(
        as_requester(provider),
        provider.id,
        "Yoga",
        default_duration_minutes=60,
        price="10.00",
        capacity=2,
    )
