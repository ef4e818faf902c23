from pathlib import Path
import os
import random
import sys

import pytest
from flask import g

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Safety default for the module-level app created when dicey is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from dicey import create_app
from dicey.extensions import db
from dicey.models import User
from dicey.services.repository import SqlAlchemyRoomRepository
from dicey.services.rooms import RoomService
from memory_repository import InMemoryRoomRepository


@pytest.fixture()
def app(tmp_path: Path):
    db_file = tmp_path / "test.sqlite3"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
            "TIEBREAKER_RNG": random.Random(2024),
        }
    )

    with app.app_context():
        driver = db.engine.url.drivername
        if driver != "sqlite":
            raise RuntimeError(
                f"Test database must be SQLite, got '{driver}'. Refusing to run destructive test setup."
            )
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db_session(app):
    with app.app_context():
        yield db.session


def _make_user(db_session, username):
    user = User(
        username=username,
        display_name=username.title(),
        email=f"{username}@example.com",
        password_hash="hashed-password",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def owner_user(db_session):
    return _make_user(db_session, "owner1")


@pytest.fixture()
def guest_user(db_session):
    return _make_user(db_session, "guest1")


@pytest.fixture()
def third_user(db_session):
    return _make_user(db_session, "guest2")


@pytest.fixture()
def service(db_session):
    return RoomService(SqlAlchemyRoomRepository(), rng=random.Random(7))


@pytest.fixture()
def memory_repository():
    return InMemoryRoomRepository()


@pytest.fixture()
def memory_service(memory_repository):
    return RoomService(memory_repository, rng=random.Random(7))


@pytest.fixture()
def login(client):
    def _login(user):
        # The app context (and g) outlives each request here, so drop the
        # user Flask-Login cached for the previous one.
        g.pop("_login_user", None)
        with client.session_transaction() as session:
            session["_user_id"] = str(user.id)
            session["_fresh"] = True
        return client

    return _login
