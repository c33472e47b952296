import random
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lexilearn.database import init_db
from lexilearn.seed import seed_all
from lexilearn.store import CollectionStore

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class SequenceRandom:
    """Replays a fixed list of draws, cycling when it runs out"""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return CollectionStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def seeded_store(store, rng, clock):
    seed_all(store, rng=rng, clock=clock)
    return store


@pytest.fixture
def locked_names(store, monkeypatch):
    """Names passed to store.locked, in call order"""
    calls = []
    original = store.locked

    def recording(name):
        calls.append(name)
        return original(name)

    monkeypatch.setattr(store, "locked", recording)
    return calls
