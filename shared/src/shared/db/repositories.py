"""Data access repositories with constructor-injected sessions."""

from collections.abc import Iterable

from sqlalchemy.orm import Session

from shared.db.models import IssueAlert, NotificationLog, UserPreference


class UserPreferenceRepository:
    """Data access for user push preferences and stored device endpoints."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_user_id(self, user_id: str) -> UserPreference | None:
        """Fetch preferences for a user."""
        return self._session.get(UserPreference, user_id)

    def remove_device_endpoints(
        self, user_id: str, endpoints: Iterable[str]
    ) -> int:
        """Drop *endpoints* from the user's stored endpoint list.

        Returns the number of endpoints actually removed (0 when the user
        has no preference row).
        """
        preference = self.get_by_user_id(user_id)
        if preference is None:
            return 0

        stale = set(endpoints)
        kept = [e for e in preference.device_endpoints if e not in stale]
        removed = len(preference.device_endpoints) - len(kept)
        if removed:
            # Reassign so the JSON column is flagged dirty.
            preference.device_endpoints = kept
            self._session.flush()
        return removed


class NotificationLogRepository:
    """Data access for the notification audit log."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(
        self,
        user_id: str,
        succeeded: bool,
        error_summary: str | None = None,
    ) -> NotificationLog:
        entry = NotificationLog(
            user_id=user_id,
            succeeded=succeeded,
            error_summary=error_summary,
        )
        self._session.add(entry)
        self._session.flush()
        return entry


class IssueAlertRepository:
    """Data access for delivered issue alerts."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(
        self,
        user_id: str,
        issue_id: str,
        title: str,
        message: str,
        distance_km: float | None = None,
    ) -> IssueAlert:
        alert = IssueAlert(
            user_id=user_id,
            issue_id=issue_id,
            distance_km=distance_km,
            title=title,
            message=message,
        )
        self._session.add(alert)
        self._session.flush()
        return alert
