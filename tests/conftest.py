"""pytest fixtures: in-memory SQLite store, deterministic clock and ids, HTTP client"""

import itertools
import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from message_store.main import app
from message_store.metrics import reset_metrics
from message_store.models import Base
from message_store.repository import MessageRepository
from message_store.schemas import MessagePayload
from message_store.storage import MessageStore, SessionLocal, engine


class FakeClock:
    """Nanosecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ns: int = 1_000) -> None:
        self.now += ns


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    reset_metrics()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db) -> MessageStore:
    return MessageStore(db)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo(store, clock) -> MessageRepository:
    counter = itertools.count(1)
    return MessageRepository(store, clock=clock, id_factory=lambda: f"msg-{next(counter)}")


@pytest.fixture
def payload() -> MessagePayload:
    return MessagePayload(title="T", body="B", attachmentURL="http://x")


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
