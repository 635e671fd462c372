"""Integration test fixtures using testcontainers.

Session-scoped PostgreSQL container migrated with Alembic, and the
push_sender app served over HTTP with a scripted FCM transport.
"""

import os
import threading
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest
from sqlalchemy import Engine, text
from sqlalchemy.orm import Session, sessionmaker
from testcontainers.postgres import PostgresContainer
from werkzeug.serving import make_server

from shared.db.base import create_db_engine, create_session_factory

from fcm_fakes import FakeFcm

pytestmark = pytest.mark.integration

# ---------------------------------------------------------------------------
# Containers (session-scoped)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    with PostgresContainer("postgres:16-alpine", driver="psycopg2") as pg:
        yield pg


@pytest.fixture(scope="session")
def pg_dsn(postgres_container: PostgresContainer) -> str:
    return postgres_container.get_connection_url()


# ---------------------------------------------------------------------------
# Environment variables (session-scoped, autouse)
# Pydantic-settings configs read these automatically.
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session", autouse=True)
def _set_env_vars(pg_dsn: str) -> Generator[None, None, None]:
    from urllib.parse import urlparse

    parsed = urlparse(pg_dsn)
    overrides = {
        "POSTGRES_HOST": parsed.hostname or "localhost",
        "POSTGRES_PORT": str(parsed.port or 5432),
        "POSTGRES_DATABASE": (parsed.path or "/test").lstrip("/"),
        "POSTGRES_USER": parsed.username or "test",
        "POSTGRES_PASSWORD": parsed.password or "test",
        "FCM_SERVER_KEY": "integration-server-key",
        "FCM_ENDPOINT": "https://fcm.test/send",
        "PUSH_SENDER_BACKOFF_BASE_SECONDS": "0.01",
    }

    saved: dict[str, str | None] = {}
    for key, value in overrides.items():
        saved[key] = os.environ.get(key)
        os.environ[key] = value

    yield

    for key, old in saved.items():
        if old is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = old


# ---------------------------------------------------------------------------
# Database (session-scoped)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def db_engine(pg_dsn: str, _set_env_vars: None) -> Generator[Engine, None, None]:
    """Create engine and run Alembic migrations against testcontainer PG."""
    from alembic import command
    from alembic.config import Config as AlembicConfig

    engine = create_db_engine(pg_dsn, pool_pre_ping=True)

    shared_dir = Path(__file__).resolve().parents[2] / "shared"
    alembic_cfg = AlembicConfig(str(shared_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(shared_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", pg_dsn)
    command.upgrade(alembic_cfg, "head")

    yield engine
    engine.dispose()


@pytest.fixture(scope="session")
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(db_engine)


@pytest.fixture(autouse=True)
def _cleanup_db(session_factory: sessionmaker[Session]) -> Generator[None, None, None]:
    """Truncate push tables after each test."""
    yield
    with session_factory() as session:
        session.execute(
            text("TRUNCATE user_preferences, notification_logs, issue_alerts")
        )
        session.commit()


# ---------------------------------------------------------------------------
# Push sender (function-scoped)
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_fcm() -> FakeFcm:
    return FakeFcm()


@pytest.fixture()
def push_sender_url(
    session_factory: sessionmaker[Session], fake_fcm: FakeFcm
) -> Generator[str, None, None]:
    """Start the push_sender app in a background thread, yield base URL."""
    from push_sender.app import create_app
    from push_sender.config import FcmConfig, PushSenderConfig
    from push_sender.pipeline import PushPipeline

    config = PushSenderConfig()
    pipeline = PushPipeline(
        FcmConfig(),
        config,
        session_factory,
        transport=httpx.MockTransport(fake_fcm),
    )
    app = create_app(pipeline, config)
    app.config["TESTING"] = True

    server = make_server("127.0.0.1", 0, app, threaded=True)
    port = server.server_address[1]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield f"http://127.0.0.1:{port}"

    server.shutdown()


@pytest.fixture()
def http_client(push_sender_url: str) -> Generator[httpx.Client, None, None]:
    with httpx.Client(base_url=push_sender_url, timeout=30.0) as client:
        yield client
