"""create job_alerts and job_alert_matches

Revision ID: 001_job_alerts
Revises:
Create Date: 2026-10-17

Creates the two tables owned by the alert pipeline:
  • job_alerts - saved searches; last_sent_at is the processing watermark
  • job_alert_matches - postings recorded per alert, unique per (alert, job)

users, companies and jobs are owned by other services and must exist.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers
revision = "001_job_alerts"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "job_alerts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("search_query", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("state", sa.String(length=255), nullable=True),
        sa.Column("job_type", postgresql.JSONB(), nullable=True),
        sa.Column("skills", postgresql.JSONB(), nullable=True),
        sa.Column("experience_level", postgresql.JSONB(), nullable=True),
        sa.Column("include_remote", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("frequency", sa.String(length=20), nullable=False, server_default="weekly"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_paused", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_job_alerts_user_id", "job_alerts", ["user_id"])
    op.create_index("ix_job_alerts_user_active", "job_alerts", ["user_id", "is_active"])

    # Due-alert lookup: frequency + state + watermark
    op.create_index(
        "ix_job_alerts_due",
        "job_alerts",
        ["frequency", "is_active", "is_paused", "last_sent_at"],
    )

    op.create_table(
        "job_alert_matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "job_alert_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("job_alerts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "job_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("jobs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("match_score", sa.Float(), nullable=False),
        sa.Column("was_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "matched_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("job_alert_id", "job_id", name="uq_job_alert_match"),
    )
    op.create_index("ix_job_alert_matches_job_alert_id", "job_alert_matches", ["job_alert_id"])
    op.create_index("ix_job_alert_matches_job_id", "job_alert_matches", ["job_id"])
    op.create_index("ix_job_alert_matches_was_sent", "job_alert_matches", ["was_sent"])
    op.create_index(
        "ix_job_alert_matches_alert_sent",
        "job_alert_matches",
        ["job_alert_id", "was_sent"],
    )


def downgrade() -> None:
    op.drop_index("ix_job_alert_matches_alert_sent", table_name="job_alert_matches")
    op.drop_index("ix_job_alert_matches_was_sent", table_name="job_alert_matches")
    op.drop_index("ix_job_alert_matches_job_id", table_name="job_alert_matches")
    op.drop_index("ix_job_alert_matches_job_alert_id", table_name="job_alert_matches")
    op.drop_table("job_alert_matches")
    op.drop_index("ix_job_alerts_due", table_name="job_alerts")
    op.drop_index("ix_job_alerts_user_active", table_name="job_alerts")
    op.drop_index("ix_job_alerts_user_id", table_name="job_alerts")
    op.drop_table("job_alerts")
