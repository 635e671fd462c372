"""SQLAlchemy ORM models for push preferences and delivery bookkeeping."""

import datetime
import uuid

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    String,
    Text,
    Time,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from shared.db.base import Base
from shared.db.types import JSONBCompatible


class UserPreference(Base):
    """Per-user push settings plus the user's registered device endpoints."""

    __tablename__ = "user_preferences"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    push_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    quiet_hours_start: Mapped[datetime.time | None] = mapped_column(
        Time, nullable=True
    )
    quiet_hours_end: Mapped[datetime.time | None] = mapped_column(
        Time, nullable=True
    )
    timezone: Mapped[str] = mapped_column(
        String(64), nullable=False, default="UTC"
    )
    device_endpoints: Mapped[list] = mapped_column(
        JSONBCompatible, nullable=False, default=list
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class NotificationLog(Base):
    """Audit row written once per send request."""

    __tablename__ = "notification_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    succeeded: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class IssueAlert(Base):
    """A nearby-issue alert that reached at least one of the user's devices."""

    __tablename__ = "issue_alerts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    issue_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
