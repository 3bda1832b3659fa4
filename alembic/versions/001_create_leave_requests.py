"""001 – leave_requests table, status / type enums, indexes.

Revision ID: 001_create_leave_requests
Revises:
Create Date: 2026-03-02 09:00:00.000000+00:00
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_create_leave_requests"
down_revision = None
branch_labels = None
depends_on = None


LEAVE_TYPES = ["annual", "sick", "personal", "other"]
LEAVE_STATUSES = ["pending", "approved", "rejected", "cancelled"]


def upgrade() -> None:
    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("employee_id", sa.String(255), nullable=False),
        sa.Column("employee_name", sa.String(255), nullable=False),
        sa.Column("employee_email", sa.String(255), nullable=False),
        sa.Column(
            "leave_type",
            sa.Enum(*LEAVE_TYPES, name="leave_type", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*LEAVE_STATUSES, name="leave_status", native_enum=False, length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("manager_comment", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_requests_date_range"),
        sa.CheckConstraint("days >= 1", name="ck_leave_requests_days_positive"),
        sa.CheckConstraint(
            "leave_type IN ({})".format(", ".join(f"'{v}'" for v in LEAVE_TYPES)),
            name="ck_leave_requests_leave_type",
        ),
        sa.CheckConstraint(
            "status IN ({})".format(", ".join(f"'{v}'" for v in LEAVE_STATUSES)),
            name="ck_leave_requests_status",
        ),
    )
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"])
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"])
    op.create_index("ix_leave_requests_created_at", "leave_requests", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_leave_requests_created_at", table_name="leave_requests")
    op.drop_index("ix_leave_requests_status", table_name="leave_requests")
    op.drop_index("ix_leave_requests_employee_id", table_name="leave_requests")
    op.drop_table("leave_requests")
