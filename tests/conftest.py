import itertools
import os
from typing import Dict, Generator, List

# La configuración se lee al importar los módulos de la app: fijarla antes
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "natours-test-secret-key-0123456789abcdef"
os.environ["ENVIRONMENT"] = "development"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_MAX"] = "10000"

import pytest
from fastapi.testclient import TestClient

from api_gateway.main import create_app
from shared.database.base import Base, SessionLocal, engine
from shared.database.models import Review, Tour, User
from shared.utils.email import get_email_sender
from shared.utils.security import create_access_token

TEST_PASSWORD = "test1234"


class FakeEmailSender:
    """EmailSender en memoria; fail=True simula un transporte caído"""

    def __init__(self) -> None:
        self.outbox: List[Dict[str, str]] = []
        self.fail = False

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise OSError("SMTP no disponible")
        self.outbox.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
def db_session() -> Generator:
    """Esquema nuevo por test sobre SQLite en memoria"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def app(db_session, mailer):
    application = create_app()
    application.dependency_overrides[get_email_sender] = lambda: mailer
    return application


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user_factory(db_session):
    counter = itertools.count(1)

    def make(**overrides) -> User:
        n = next(counter)
        password = overrides.pop("password", TEST_PASSWORD)
        data = {
            "name": f"Test User {n}",
            "email": f"user{n}@natours.io",
            "role": "user",
            "active": True,
        }
        data.update(overrides)
        user = User(**data)
        user.set_password(password, stamp_change=False)
        db_session.add(user)
        db_session.commit()
        return user

    return make


@pytest.fixture
def tour_factory(db_session):
    counter = itertools.count(1)

    def make(guides=None, **overrides) -> Tour:
        n = next(counter)
        data = {
            "name": f"The Test Tour Number {n}",
            "duration": 5,
            "max_group_size": 10,
            "difficulty": "easy",
            "price": 500.0,
            "summary": "A tour created for the test suite",
            "image_cover": f"tour-{n}-cover.jpg",
            "start_dates": [],
        }
        data.update(overrides)
        tour = Tour(**data)
        tour.guides = list(guides or [])
        db_session.add(tour)
        db_session.commit()
        return tour

    return make


@pytest.fixture
def review_factory(db_session):
    def make(tour: Tour, user: User, rating: int = 5, review: str = "Great tour") -> Review:
        obj = Review(tour_id=tour.id, user_id=user.id, rating=rating, review=review)
        db_session.add(obj)
        db_session.commit()
        return obj

    return make


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def admin(user_factory) -> User:
    return user_factory(name="Admin", email="admin@natours.io", role="admin")


@pytest.fixture
def lead_guide(user_factory) -> User:
    return user_factory(name="Lead Guide", email="lead@natours.io", role="lead-guide")


@pytest.fixture
def guide(user_factory) -> User:
    return user_factory(name="Guide", email="guide@natours.io", role="guide")


@pytest.fixture
def regular_user(user_factory) -> User:
    return user_factory(name="Regular User", email="regular@natours.io", role="user")
