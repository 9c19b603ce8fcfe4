"""actual worked hours per employee and day

Revision ID: 0002_time_logs
Revises: 0001_initial
Create Date: 2026-02-09
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_time_logs"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "time_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.String(length=120), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("actual_start", sa.String(length=5), nullable=True),
        sa.Column("actual_end", sa.String(length=5), nullable=True),
        sa.Column("position", sa.String(length=120), nullable=False),
        sa.Column("position_note", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_hours >= 0", name="ck_time_logs_total_hours"),
    )
    op.create_index("ix_time_logs_employee_id", "time_logs", ["employee_id"], unique=False)
    op.create_index("ix_time_logs_date", "time_logs", ["date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_time_logs_date", table_name="time_logs")
    op.drop_index("ix_time_logs_employee_id", table_name="time_logs")
    op.drop_table("time_logs")
