"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
The key-value table is emptied after every test: memory and collections
are global lists, so tests must not see each other's writes.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_skyforge.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base, get_db
from app.db.kv_store import SqlKeyValueStore
from app.main import app
from app.models import StoreEntry

SQLITE_URL = "sqlite:///./test_skyforge.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_store():
    yield
    db = TestingSessionLocal()
    try:
        db.query(StoreEntry).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def store(db):
    return SqlKeyValueStore(db)


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
