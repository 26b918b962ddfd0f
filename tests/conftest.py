import json
import os
import sys
import tempfile
import uuid
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

_TEST_DB_PATH = Path(tempfile.gettempdir()) / f"anything-tests-{os.getpid()}.db"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_PATH}"
for _unconfigured in (
    "OPENROUTER_API_KEY",
    "SERPAPI_API_KEY",
    "TAVILY_API_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "STRIPE_CREDITS_WEBHOOK_SECRET",
    "VERCEL_TOKEN",
    "SUPABASE_JWT_SECRET",
):
    os.environ[_unconfigured] = ""
os.environ["LANGFUSE_ENABLED"] = "false"
os.environ["LANGFUSE_REQUIRED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from app.auth.dependencies import AuthContext, get_current_user
from app.db import models  # noqa: F401
from app.db.base import Base, SessionLocal, engine
from app.db.deps import get_session
from app.db.enums import ProjectModeEnum
from app.db.models import Project
from app.main import app


TEST_USER_ID = "test-user"


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    if engine.dialect.name == "sqlite":
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="session", autouse=True)
def create_schema():
    engine.dispose()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if _TEST_DB_PATH.exists():
        _TEST_DB_PATH.unlink()


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def auth_context() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID, email="owner@example.com")


@pytest.fixture()
def override_dependencies(db_session, auth_context):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    def get_user_override():
        return auth_context

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_current_user] = get_user_override
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def api_client(override_dependencies):
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def project(db_session) -> Project:
    row = Project(
        id=uuid.uuid4(),
        user_id=TEST_USER_ID,
        name="Seed Agency",
        description="Web design for local trades",
        mode=ProjectModeEnum.agency,
        mode_data={"agencyType": "web-design"},
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


def parse_sse(body: str) -> list[tuple[str, dict]]:
    events: list[tuple[str, dict]] = []
    for frame in body.strip().split("\n\n"):
        lines = frame.splitlines()
        name = next((line[len("event: ") :] for line in lines if line.startswith("event: ")), None)
        data = next((line[len("data: ") :] for line in lines if line.startswith("data: ")), None)
        if name and data:
            events.append((name, json.loads(data)))
    return events
