"""Test fixtures for push_sender tests."""

import datetime
from collections.abc import Callable, Generator
from unittest.mock import MagicMock

import httpx
import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from shared.db.base import Base
from shared.db.models import UserPreference

from push_sender.config import FcmConfig, PushSenderConfig
from push_sender.pipeline import PushPipeline
from push_sender.retry import ExponentialBackoff

from fcm_fakes import NOON_UTC, FakeFcm


@pytest.fixture(scope="session")
def db_engine() -> Engine:
    """Create a single in-memory SQLite engine for the test session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    """Transactional session that rolls back after each test."""
    connection = db_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection)

    yield session

    session.close()
    if transaction.is_active:
        transaction.rollback()
    connection.close()


@pytest.fixture()
def session_factory(db_session: Session) -> MagicMock:
    """Session factory that always returns the test session.

    Wraps db_session so that ``with session_factory() as session:``
    returns our transactional test session.
    """
    factory = MagicMock(spec=sessionmaker)
    ctx = MagicMock()
    ctx.__enter__ = MagicMock(return_value=db_session)
    ctx.__exit__ = MagicMock(return_value=False)
    factory.return_value = ctx
    return factory


@pytest.fixture()
def fake_fcm() -> FakeFcm:
    return FakeFcm()


@pytest.fixture()
def fcm_transport(fake_fcm: FakeFcm) -> httpx.MockTransport:
    return httpx.MockTransport(fake_fcm)


@pytest.fixture()
def fcm_config() -> FcmConfig:
    return FcmConfig(server_key="test-server-key", endpoint="https://fcm.test/send")


@pytest.fixture()
def sender_config() -> PushSenderConfig:
    return PushSenderConfig(max_retries=3, batch_size=500, max_endpoints=1000)


@pytest.fixture()
def recorded_sleeps() -> list[float]:
    return []


@pytest.fixture()
def backoff(recorded_sleeps: list[float]) -> ExponentialBackoff:
    """Backoff that records its delays instead of sleeping."""

    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return ExponentialBackoff(base=2.0, sleep=_sleep)


@pytest.fixture()
def clock() -> Callable[[], datetime.datetime]:
    return lambda: NOON_UTC


@pytest.fixture()
def pipeline(
    fcm_config: FcmConfig,
    sender_config: PushSenderConfig,
    session_factory: MagicMock,
    backoff: ExponentialBackoff,
    fcm_transport: httpx.MockTransport,
    clock: Callable[[], datetime.datetime],
) -> PushPipeline:
    return PushPipeline(
        fcm_config,
        sender_config,
        session_factory,
        backoff=backoff,
        transport=fcm_transport,
        clock=clock,
    )


@pytest.fixture()
def stored_preference(db_session: Session) -> UserPreference:
    """An enabled user with three registered endpoints and no quiet hours."""
    preference = UserPreference(
        user_id="user-1",
        push_enabled=True,
        timezone="UTC",
        device_endpoints=["tok-a", "tok-b", "tok-c"],
    )
    db_session.add(preference)
    db_session.flush()
    return preference
