"""Create shift swap tables

Revision ID: 001
Revises:
Create Date: 2025-01-10 09:00:00.000000

Creates the following tables:
- employees: Employee directory (role, department, manager)
- schedule_assignments: One employee working one shift on one day
- swap_requests: Shift swap requests and their approval state
- swap_history: Append-only transition log per swap request
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # ========================================
    # 1. employees table
    # ========================================
    op.create_table(
        "employees",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(254), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="employee"),
        sa.Column("manager_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "role IN ('employee', 'manager', 'hr', 'admin')",
            name="employee_role",
        ),
    )
    op.create_index("ix_employees_department", "employees", ["department"])

    # ========================================
    # 2. schedule_assignments table
    # ========================================
    op.create_table(
        "schedule_assignments",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.String(64), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("shift_id", sa.String(64), nullable=True),
        sa.Column("swap_request_id", sa.String(50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "employee_id", "work_date", name="uq_assignment_employee_day"
        ),
    )
    op.create_index(
        "ix_schedule_assignments_employee_id", "schedule_assignments", ["employee_id"]
    )
    op.create_index(
        "ix_schedule_assignments_swap_request_id",
        "schedule_assignments",
        ["swap_request_id"],
    )

    # ========================================
    # 3. swap_requests table
    # ========================================
    op.create_table(
        "swap_requests",
        # Primary key
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("swap_code", sa.String(20), nullable=False),
        # Parties
        sa.Column("requestor_id", sa.String(64), nullable=False),
        sa.Column("target_id", sa.String(64), nullable=False),
        sa.Column("manager_id", sa.String(64), nullable=True),
        # Shifts
        sa.Column("swap_type", sa.String(30), nullable=False),
        sa.Column("requestor_date", sa.Date(), nullable=False),
        sa.Column("requestor_shift_id", sa.String(64), nullable=True),
        sa.Column("target_date", sa.Date(), nullable=False),
        sa.Column("target_shift_id", sa.String(64), nullable=True),
        # Request details
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("is_emergency", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "requires_cross_approval",
            sa.Boolean(),
            nullable=False,
            server_default="false",
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        # Workflow
        sa.Column(
            "status", sa.String(20), nullable=False, server_default="pending_target"
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        # Stage responses
        sa.Column("target_response", sa.String(10), nullable=True),
        sa.Column("target_reason", sa.Text(), nullable=True),
        sa.Column("target_actor_id", sa.String(64), nullable=True),
        sa.Column("target_responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("manager_response", sa.String(10), nullable=True),
        sa.Column("manager_reason", sa.Text(), nullable=True),
        sa.Column("manager_actor_id", sa.String(64), nullable=True),
        sa.Column("manager_responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hr_response", sa.String(10), nullable=True),
        sa.Column("hr_reason", sa.Text(), nullable=True),
        sa.Column("hr_actor_id", sa.String(64), nullable=True),
        sa.Column("hr_responded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("swap_code"),
        sa.CheckConstraint(
            "status IN ('pending_target', 'pending_manager', 'pending_hr', "
            "'approved', 'completed', 'rejected', 'expired')",
            name="swap_status",
        ),
        sa.CheckConstraint(
            "swap_type IN ('direct_swap', 'one_way_coverage')",
            name="swap_type",
        ),
        sa.CheckConstraint("version >= 0", name="swap_version"),
    )
    op.create_index("ix_swap_requests_requestor_id", "swap_requests", ["requestor_id"])
    op.create_index("ix_swap_requests_target_id", "swap_requests", ["target_id"])
    op.create_index("ix_swap_requests_status", "swap_requests", ["status"])
    op.create_index(
        "idx_swap_requestor_date", "swap_requests", ["requestor_id", "requestor_date"]
    )
    op.create_index("idx_swap_target_date", "swap_requests", ["target_id", "target_date"])
    # Expiry sweep scans pending_target by deadline
    op.create_index(
        "idx_swap_pending_expiry",
        "swap_requests",
        ["expires_at"],
        postgresql_where=sa.text("status = 'pending_target'"),
    )

    # ========================================
    # 4. swap_history table
    # ========================================
    op.create_table(
        "swap_history",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("swap_request_id", sa.String(50), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=False),
        sa.Column("actor_role", sa.String(20), nullable=False),
        sa.Column("previous_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["swap_request_id"], ["swap_requests.id"]),
        sa.UniqueConstraint(
            "swap_request_id", "sequence_number", name="uq_swap_history_sequence"
        ),
        sa.CheckConstraint(
            "action IN ('created', 'accepted', 'rejected', 'approved', "
            "'escalated', 'expired', 'completed')",
            name="swap_history_action",
        ),
    )
    op.create_index(
        "ix_swap_history_swap_request_id", "swap_history", ["swap_request_id"]
    )
    op.create_index("ix_swap_history_created_at", "swap_history", ["created_at"])


def downgrade() -> None:
    op.drop_table("swap_history")
    op.drop_index("idx_swap_pending_expiry", table_name="swap_requests")
    op.drop_table("swap_requests")
    op.drop_table("schedule_assignments")
    op.drop_table("employees")
