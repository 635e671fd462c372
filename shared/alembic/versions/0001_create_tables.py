"""Create user_preferences, notification_logs, issue_alerts tables.

Revision ID: 0001
Revises: -
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_preferences",
        sa.Column("user_id", sa.String(128), primary_key=True),
        sa.Column(
            "push_enabled",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column("quiet_hours_start", sa.Time, nullable=True),
        sa.Column("quiet_hours_end", sa.Time, nullable=True),
        sa.Column(
            "timezone", sa.String(64), nullable=False, server_default="UTC"
        ),
        sa.Column(
            "device_endpoints",
            JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "notification_logs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("succeeded", sa.Boolean, nullable=False),
        sa.Column("error_summary", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_notification_logs_user_id", "notification_logs", ["user_id"]
    )

    op.create_table(
        "issue_alerts",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("issue_id", sa.String(128), nullable=False),
        sa.Column("distance_km", sa.Float, nullable=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_issue_alerts_user_id", "issue_alerts", ["user_id"])
    op.create_index("ix_issue_alerts_issue_id", "issue_alerts", ["issue_id"])


def downgrade() -> None:
    op.drop_index("ix_issue_alerts_issue_id", table_name="issue_alerts")
    op.drop_index("ix_issue_alerts_user_id", table_name="issue_alerts")
    op.drop_table("issue_alerts")
    op.drop_index("ix_notification_logs_user_id", table_name="notification_logs")
    op.drop_table("notification_logs")
    op.drop_table("user_preferences")
