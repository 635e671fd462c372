"""Database layer: models, repositories, engine/session utilities."""

from shared.db.base import Base, create_db_engine, create_session_factory
from shared.db.models import IssueAlert, NotificationLog, UserPreference
from shared.db.repositories import (
    IssueAlertRepository,
    NotificationLogRepository,
    UserPreferenceRepository,
)

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "IssueAlert",
    "NotificationLog",
    "UserPreference",
    "IssueAlertRepository",
    "NotificationLogRepository",
    "UserPreferenceRepository",
]
