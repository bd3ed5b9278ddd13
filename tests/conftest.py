import mongomock
import pytest

from app import create_app
from config import TestingConfig
from utils.db import mongo
from utils.seed import bootstrap, default_admin_spec

ADMIN_PASSWORD = TestingConfig.DEFAULT_ADMIN_PASSWORD


def make_app(config_class=TestingConfig):
    """Build the app, point the shared PyMongo handle at mongomock and seed it."""
    app = create_app(config_class)

    # init_app only built a lazy client (connect=False); nothing was opened
    database_name = mongo.db.name
    mongo.cx.close()
    mongo.cx = mongomock.MongoClient(tz_aware=True)
    mongo.db = mongo.cx[database_name]

    with app.app_context():
        bootstrap(default_admin_spec(app.config))
    return app


@pytest.fixture
def app():
    app = make_app()
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return mongo.db


def registration_payload(username="jdoe", user_type="student", **overrides):
    payload = {
        "username": username,
        "email": f"{username}@example.com",
        "password": "secret123",
        "firstName": "John",
        "lastName": "Doe",
        "userType": user_type,
    }
    payload.update(overrides)
    return payload


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register through the API and return the new user's id."""
    def _register(username="jdoe", user_type="student", **overrides):
        response = client.post("/api/auth/register",
                               json=registration_payload(username, user_type, **overrides))
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]["user"]["id"]
    return _register


@pytest.fixture
def login(client):
    def _login(identifier, password):
        return client.post("/api/auth/login", json={"login": identifier, "password": password})
    return _login


@pytest.fixture
def admin(db):
    return db.users.find_one({"username": TestingConfig.DEFAULT_ADMIN_USERNAME})


@pytest.fixture
def admin_headers(login):
    response = login(TestingConfig.DEFAULT_ADMIN_USERNAME, ADMIN_PASSWORD)
    assert response.status_code == 200, response.get_json()
    return auth_header(response.get_json()["data"]["token"])
