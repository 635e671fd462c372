"""Post-delivery side effects: endpoint cleanup, audit log, issue alerts."""

import logging
from collections.abc import Collection, Iterator
from contextlib import contextmanager
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shared.db.repositories import (
    IssueAlertRepository,
    NotificationLogRepository,
    UserPreferenceRepository,
)

from push_sender.errors import StorageWriteFailure

logger = logging.getLogger(__name__)


class CleanupNotifier(Protocol):
    """Hands delivery results to external persistence."""

    def remove_endpoints(
        self, user_id: str, invalid_endpoints: Collection[str]
    ) -> None: ...

    def record_attempt(
        self, user_id: str, succeeded: bool, error_summary: str | None = None
    ) -> None: ...

    def record_alert(
        self,
        user_id: str,
        issue_id: str,
        distance_km: float | None,
        title: str,
        message: str,
    ) -> None: ...


class StorageCleanupNotifier:
    """CleanupNotifier backed by the SQLAlchemy repositories.

    Each operation runs in its own short transaction. Database errors are
    re-raised as StorageWriteFailure; callers decide whether to swallow.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        try:
            with self._session_factory() as session:
                yield session
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageWriteFailure(f"{operation} failed: {exc}") from exc

    def remove_endpoints(
        self, user_id: str, invalid_endpoints: Collection[str]
    ) -> None:
        with self._transaction("remove_endpoints") as session:
            removed = UserPreferenceRepository(session).remove_device_endpoints(
                user_id, invalid_endpoints
            )
        logger.info(
            "Removed invalid device endpoints",
            extra={
                "user_id": user_id,
                "reported": len(invalid_endpoints),
                "removed": removed,
            },
        )

    def record_attempt(
        self, user_id: str, succeeded: bool, error_summary: str | None = None
    ) -> None:
        with self._transaction("record_attempt") as session:
            NotificationLogRepository(session).create(
                user_id, succeeded, error_summary
            )

    def record_alert(
        self,
        user_id: str,
        issue_id: str,
        distance_km: float | None,
        title: str,
        message: str,
    ) -> None:
        with self._transaction("record_alert") as session:
            IssueAlertRepository(session).create(
                user_id=user_id,
                issue_id=issue_id,
                title=title,
                message=message,
                distance_km=distance_km,
            )
