"""Shared test fixtures for the CanonCore test suite.

Tests run against a SQLite file database. Every test starts from empty
tables; the schema is created once when the app is imported.
"""

import os
import tempfile

# Force auth off and use the test database before any app imports.
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.gettempdir(), 'canoncore_test.db')}",
)
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from canoncore.database import Base, SessionLocal, engine, get_db, init_db
from canoncore.main import app
from canoncore.services.entity_service import EntityService

init_db()

OWNER = "alice"
OTHER = "bob"


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table before each test, children first."""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """TestClient acting as OWNER through the dev user header."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        c.headers.update({"X-User-Id": OWNER})
        yield c
    app.dependency_overrides.clear()


@dataclass
class SampleTree:
    """Universe U > Collection C > groups G1, G2; content in both groups.

    G1: X, Y (viewable)    G2: Z (viewable)    U: loose (viewable, no group)
    """
    universe: str
    collection: str
    g1: str
    g2: str
    x: str
    y: str
    z: str
    loose: str


@pytest.fixture()
def sample(db) -> SampleTree:
    svc = EntityService(db)
    universe = svc.create_universe(OWNER, "Universe")
    collection = svc.create_collection(OWNER, universe.id, "Collection")
    g1 = svc.create_group(OWNER, collection.id, "G1")
    g2 = svc.create_group(OWNER, collection.id, "G2")
    x = svc.create_content(OWNER, universe.id, "X", group_id=g1.id)
    y = svc.create_content(OWNER, universe.id, "Y", group_id=g1.id)
    z = svc.create_content(OWNER, universe.id, "Z", group_id=g2.id)
    loose = svc.create_content(OWNER, universe.id, "Loose")
    return SampleTree(
        universe=universe.id,
        collection=collection.id,
        g1=g1.id,
        g2=g2.id,
        x=x.id,
        y=y.id,
        z=z.id,
        loose=loose.id,
    )
