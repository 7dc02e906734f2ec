from datetime import datetime, timezone

import pytest

from habit_auth.db.base import Base
from habit_auth.db.session import make_engine, make_sessionmaker
from habit_auth.services import user_service

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def engine():
    engine = make_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = make_sessionmaker(engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def seed_user(db, phone="+15550100", name="Ada"):
    return user_service.create_user(db, name=name, phone=phone)


@pytest.fixture()
def user(db):
    return seed_user(db)
