"""shift preferences, shifts, revenue estimates and the employee directory

Revision ID: 0001_initial
Revises:
Create Date: 2026-02-02
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.String(length=120), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("tier", sa.String(length=3), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("tier IN ('SM', 'SUP', 'CAP', 'FT', 'CL')", name="ck_employees_tier"),
        sa.CheckConstraint("role IN ('manager', 'staff')", name="ck_employees_role"),
    )

    op.create_table(
        "shift_preferences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.String(length=120), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("is_off", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("decision_note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("employee_id", "date", name="uq_shift_preferences_employee_date"),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_shift_preferences_status"),
    )
    op.create_index("ix_shift_preferences_employee_id", "shift_preferences", ["employee_id"], unique=False)
    op.create_index("ix_shift_preferences_date", "shift_preferences", ["date"], unique=False)
    op.create_index("ix_shift_preferences_status", "shift_preferences", ["status"], unique=False)

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.String(length=120), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start", sa.String(length=5), nullable=False),
        sa.Column("end", sa.String(length=5), nullable=False),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("shift_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("position", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("preference_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("shift_type IN ('morning', 'afternoon', 'evening')", name="ck_shifts_type"),
        sa.CheckConstraint("status = 'approved'", name="ck_shifts_status"),
        sa.ForeignKeyConstraint(["preference_id"], ["shift_preferences.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_shifts_employee_id", "shifts", ["employee_id"], unique=False)
    op.create_index("ix_shifts_date", "shifts", ["date"], unique=False)
    op.create_index("ix_shifts_preference_id", "shifts", ["preference_id"], unique=False)

    op.create_table(
        "revenue_estimates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("estimated_revenue", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("estimated_revenue > 0", name="ck_revenue_estimates_positive"),
    )
    op.create_index("ix_revenue_estimates_date", "revenue_estimates", ["date"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_revenue_estimates_date", table_name="revenue_estimates")
    op.drop_table("revenue_estimates")

    op.drop_index("ix_shifts_preference_id", table_name="shifts")
    op.drop_index("ix_shifts_date", table_name="shifts")
    op.drop_index("ix_shifts_employee_id", table_name="shifts")
    op.drop_table("shifts")

    op.drop_index("ix_shift_preferences_status", table_name="shift_preferences")
    op.drop_index("ix_shift_preferences_date", table_name="shift_preferences")
    op.drop_index("ix_shift_preferences_employee_id", table_name="shift_preferences")
    op.drop_table("shift_preferences")

    op.drop_table("employees")
