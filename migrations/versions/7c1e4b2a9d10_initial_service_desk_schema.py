"""initial_service_desk_schema

Creates the service desk tables:
  - users                   — account references (owner / acting admin)
  - service_requests        — student tickets with status and assignment
  - request_status_history  — append-only audit rows per request

Tables created conditionally (IF NOT EXISTS semantics) to support idempotent
execution against databases that already received these tables via db.create_all()
in a development environment.

Revision ID: 7c1e4b2a9d10
Revises:
Create Date: 2026-10-19 09:12:44.118302
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '7c1e4b2a9d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Users ─────────────────────────────────────────────────────────────
    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False),
            sa.Column("student_number", sa.String(length=50), nullable=True,
                      comment="Matriculation number, students only"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── Service requests ──────────────────────────────────────────────────
    if "service_requests" not in existing:
        op.create_table(
            "service_requests",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("student_id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("description", sa.String(length=1000), nullable=False),
            sa.Column("category", sa.String(length=20), nullable=False,
                      comment="Fee | Hostel | IT | Academic | Other"),
            sa.Column("priority", sa.String(length=20), nullable=False,
                      comment="Low | Medium | High"),
            sa.Column("status", sa.String(length=20), nullable=False,
                      comment="Pending | InProgress | Resolved | Rejected"),
            sa.Column("assigned_department", sa.String(length=100), nullable=False,
                      server_default=""),
            sa.Column("assigned_by_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["assigned_by_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_service_requests_student_id", "service_requests", ["student_id"])
        op.create_index("ix_service_requests_category", "service_requests", ["category"])
        op.create_index("ix_service_requests_priority", "service_requests", ["priority"])
        op.create_index("ix_service_requests_status", "service_requests", ["status"])
        op.create_index("ix_service_requests_assigned_department", "service_requests",
                        ["assigned_department"])
        op.create_index("ix_service_requests_created", "service_requests", ["created_at"])
        op.create_index("ix_service_requests_student_created", "service_requests",
                        ["student_id", "created_at"])

    # ── Status history ────────────────────────────────────────────────────
    if "request_status_history" not in existing:
        op.create_table(
            "request_status_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("request_id", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("updated_by_id", sa.Integer(), nullable=True),
            sa.Column("comment", sa.String(length=500), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["request_id"], ["service_requests.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["updated_by_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_request_status_history_request_id", "request_status_history",
                        ["request_id"])


def downgrade():
    op.drop_table("request_status_history")
    op.drop_table("service_requests")
    op.drop_table("users")
