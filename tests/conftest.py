from __future__ import annotations

import os
import re
import subprocess
import sys
import tempfile
from pathlib import Path
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Safe defaults so importing the app never touches a real database, SMTP server or disk location.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-entropy-123")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="activity-tracker-uploads-"))

from activity_tracker.core.db import create_db_engine, get_db
from activity_tracker.core.security import hash_password
from activity_tracker.main import app
from activity_tracker.models import Base
from activity_tracker.models.activity import Activity
from activity_tracker.models.role import USER_ROLE
from activity_tracker.models.user import User
from activity_tracker.services.identity import get_or_create_role, issue_access_token

DEFAULT_PASSWORD = "Secret123!"


def _ensure_database_exists(database_url: str) -> None:
    parsed = make_url(database_url)
    if parsed.get_backend_name() != "postgresql":
        return

    database_name = parsed.database
    if not database_name:
        raise RuntimeError("TEST_DATABASE_URL must include a database name")
    if not re.fullmatch(r"[A-Za-z0-9_]+", database_name):
        raise RuntimeError("TEST_DATABASE_URL database name must be alphanumeric with underscores")

    admin_url = parsed.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT", future=True)
    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :database_name"),
                {"database_name": database_name},
            ).scalar()
            if not exists:
                conn.execute(text(f'CREATE DATABASE "{database_name}"'))
    finally:
        admin_engine.dispose()


def _run_migrations(database_url: str) -> None:
    env = os.environ.copy()
    env["DATABASE_URL"] = database_url
    env["PYTHONPATH"] = str(ROOT_DIR)
    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=ROOT_DIR,
        env=env,
        check=True,
        capture_output=True,
        text=True,
    )


def _truncate_tables(db: Session) -> None:
    if db.get_bind().dialect.name == "postgresql":
        db.execute(
            text(
                """
                TRUNCATE TABLE
                  activities,
                  user_roles,
                  users,
                  roles
                RESTART IDENTITY CASCADE
                """
            )
        )
    else:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
    db.commit()


@pytest.fixture(scope="session")
def integration_db_url(tmp_path_factory) -> str:
    url = os.getenv("TEST_DATABASE_URL")
    if url:
        return url
    db_path = tmp_path_factory.mktemp("db") / "activity_tracker_test.db"
    return f"sqlite:///{db_path}"


@pytest.fixture(scope="session")
def integration_engine(integration_db_url: str) -> Generator[Engine, None, None]:
    try:
        _ensure_database_exists(integration_db_url)
        _run_migrations(integration_db_url)
        engine = create_db_engine(integration_db_url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        pytest.skip(f"Integration database unavailable: {exc}")

    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(integration_engine: Engine):
    return sessionmaker(bind=integration_engine, autoflush=False, autocommit=False)


@pytest.fixture()
def clean_database(session_factory):
    with session_factory() as db:
        _truncate_tables(db)

    yield

    with session_factory() as db:
        _truncate_tables(db)


@pytest.fixture()
def db_session(session_factory, clean_database) -> Generator[Session, None, None]:
    with session_factory() as db:
        yield db


@pytest.fixture()
def api_client(session_factory, clean_database) -> Generator[TestClient, None, None]:
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="session")
def default_password_hash() -> str:
    # bcrypt is slow on purpose; hash once per session
    return hash_password(DEFAULT_PASSWORD)


@pytest.fixture()
def make_user(db_session, default_password_hash) -> Callable[..., User]:
    def _make_user(
        username: str,
        *,
        email: str | None = None,
        roles: tuple[str, ...] = (USER_ROLE,),
        **fields,
    ) -> User:
        user = User(
            username=username,
            email=email or f"{username.lower()}@example.com",
            password_hash=default_password_hash,
            **fields,
        )
        for name in roles:
            user.roles.append(get_or_create_role(db_session, name))
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_access_token(user)}"}

    return _auth_headers


@pytest.fixture()
def make_activity(db_session) -> Callable[..., Activity]:
    def _make_activity(
        user: User,
        *,
        distance_m: float = 5000.0,
        duration_s: int = 1800,
        started_at: datetime | None = None,
        **fields,
    ) -> Activity:
        started_at = started_at or datetime.now(timezone.utc) - timedelta(hours=2)
        fields.setdefault("title", "Evening Run")
        fields.setdefault("activity_type", "Running")
        activity = Activity(
            user_id=user.id,
            distance_m=distance_m,
            duration_s=duration_s,
            avg_speed_mps=distance_m / duration_s if duration_s else 0.0,
            started_at=started_at,
            ended_at=started_at + timedelta(seconds=duration_s),
            **fields,
        )
        db_session.add(activity)
        db_session.commit()
        db_session.refresh(activity)
        return activity

    return _make_activity
