"""Database foundation: declarative base class, engine and session factories."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


def create_db_engine(dsn: str, **kwargs: object) -> Engine:
    """Create a SQLAlchemy engine from a DSN string.

    The push sender passes ``pool_pre_ping=True`` so a request arriving
    after a database restart does not fail on a dead pooled connection.
    """
    return create_engine(dsn, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a sessionmaker bound to the given engine.

    ``expire_on_commit=False`` keeps loaded preference rows readable after
    the short-lived session that fetched them has committed and closed.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)
