"""Booking core tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=True),
        sa.Column("staffing_status", sqlmodel.sql.sqltypes.AutoString(length=30), nullable=False),
        sa.Column("lifecycle_status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"], unique=False)

    op.create_table(
        "assignments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("profile_id", sa.Uuid(), nullable=True),
        sa.Column("seniority", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=True),
        sa.Column("languages", JSON_TYPE, nullable=False),
        sa.Column("expertises", JSON_TYPE, nullable=False),
        sa.Column("base_price", sa.Numeric(precision=10, scale=4), nullable=True),
        sa.Column("candidate_id", sa.Uuid(), nullable=True),
        sa.Column("offered_candidate_id", sa.Uuid(), nullable=True),
        sa.Column("calculated_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("booking_status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assignments_project_id", "assignments", ["project_id"], unique=False)
    op.create_index("ix_assignments_profile_id", "assignments", ["profile_id"], unique=False)
    op.create_index("ix_assignments_candidate_id", "assignments", ["candidate_id"], unique=False)
    op.create_index(
        "ix_assignments_offered_candidate_id", "assignments", ["offered_candidate_id"], unique=False
    )
    # Sweeper scan: searching rows by deadline
    op.create_index(
        "ix_assignments_status_expires",
        "assignments",
        ["booking_status", "expires_at"],
        unique=False,
    )
    op.create_index(
        "ix_assignments_project_status",
        "assignments",
        ["project_id", "booking_status"],
        unique=False,
    )

    op.create_table(
        "assignment_transitions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assignment_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("from_status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("to_status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("reason", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["assignments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_assignment_transitions_assignment_id",
        "assignment_transitions",
        ["assignment_id"],
        unique=False,
    )
    op.create_index(
        "ix_assignment_transitions_project_id", "assignment_transitions", ["project_id"], unique=False
    )

    op.create_table(
        "assignment_declines",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assignment_id", sa.Uuid(), nullable=False),
        sa.Column("candidate_id", sa.Uuid(), nullable=False),
        sa.Column("reason", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["assignments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_assignment_declines_assignment_id", "assignment_declines", ["assignment_id"], unique=False
    )
    op.create_index(
        "ix_assignment_declines_candidate_id", "assignment_declines", ["candidate_id"], unique=False
    )

    op.create_table(
        "booking_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_type", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("assignment_id", sa.Uuid(), nullable=True),
        sa.Column("candidate_id", sa.Uuid(), nullable=True),
        sa.Column("payload", JSON_TYPE, nullable=False),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column("dispatched_at", sa.DateTime(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("last_error", sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_booking_events_project_id", "booking_events", ["project_id"], unique=False)
    op.create_index("ix_booking_events_assignment_id", "booking_events", ["assignment_id"], unique=False)
    op.create_index(
        "ix_booking_events_pending", "booking_events", ["dispatched_at", "occurred_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_booking_events_pending", table_name="booking_events")
    op.drop_index("ix_booking_events_assignment_id", table_name="booking_events")
    op.drop_index("ix_booking_events_project_id", table_name="booking_events")
    op.drop_table("booking_events")

    op.drop_index("ix_assignment_declines_candidate_id", table_name="assignment_declines")
    op.drop_index("ix_assignment_declines_assignment_id", table_name="assignment_declines")
    op.drop_table("assignment_declines")

    op.drop_index("ix_assignment_transitions_project_id", table_name="assignment_transitions")
    op.drop_index("ix_assignment_transitions_assignment_id", table_name="assignment_transitions")
    op.drop_table("assignment_transitions")

    op.drop_index("ix_assignments_project_status", table_name="assignments")
    op.drop_index("ix_assignments_status_expires", table_name="assignments")
    op.drop_index("ix_assignments_offered_candidate_id", table_name="assignments")
    op.drop_index("ix_assignments_candidate_id", table_name="assignments")
    op.drop_index("ix_assignments_profile_id", table_name="assignments")
    op.drop_index("ix_assignments_project_id", table_name="assignments")
    op.drop_table("assignments")

    op.drop_index("ix_projects_owner_id", table_name="projects")
    op.drop_table("projects")
