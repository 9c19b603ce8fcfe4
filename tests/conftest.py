from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

import shiftboard.db as app_db
from shiftboard import models  # noqa: F401
from shiftboard.guard import reset_guard

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("APP_TIMEZONE", "Asia/Ho_Chi_Minh")

ROSTER = [
    {"id": "mgr-1", "name": "Quản lý Lan", "tier": "SM", "role": "manager"},
    {"id": "emp-1", "name": "Minh", "tier": "FT", "role": "staff"},
    {"id": "emp-2", "name": "Hoa", "tier": "CL", "role": "staff"},
    {"id": "emp-3", "name": "Tuấn", "tier": "CAP", "role": "staff"},
]


@pytest.fixture(autouse=True)
def reset_database(tmp_path, monkeypatch):
    db_file = tmp_path / "test_shiftboard.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")

    # Rebuild DB bindings per test so every test gets its own writable SQLite file.
    engine = app_db.configure_engine()
    app_db.Base.metadata.drop_all(bind=engine)
    app_db.Base.metadata.create_all(bind=engine)
    reset_guard()
    yield
    app_db.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db():
    session = app_db.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    from shiftboard.main import app

    return TestClient(app)


@pytest.fixture
def roster(client: TestClient) -> list[dict]:
    put = client.put("/api/employees", json=ROSTER)
    assert put.status_code == 200
    return put.json()
