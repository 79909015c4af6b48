import pytest

from cashsync import create_app
from cashsync.config import TestConfig
from cashsync.extensions import db
from cashsync.models import User


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    with app.test_request_context():
        yield app


def make_user(name, email, password="secret"):
    user = User(name=name, email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user.id


@pytest.fixture
def users(ctx):
    return {
        "alice": make_user("Alice", "alice@example.com"),
        "bob": make_user("Bob", "bob@example.com"),
        "carol": make_user("Carol", "carol@example.com"),
    }


@pytest.fixture
def registered(app):
    """Users created outside any request, for tests that go through the client."""
    with app.app_context():
        return {
            "alice": make_user("Alice", "alice@example.com"),
            "bob": make_user("Bob", "bob@example.com"),
        }


def login(client, email, password="secret"):
    return client.post("/auth/login", data={"email": email, "password": password})
