"""initial_schema

Projects, work items (tasks, RFIs, submittals, milestones), attachments,
floor plans with markers, factory modules and QC records.

Revision ID: b1d4e7a20c31
Revises:
Create Date: 2026-01-12 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "b1d4e7a20c31"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _work_item_columns():
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("created_by", sa.String(length=150), nullable=True),
        *_timestamps(),
    ]


def _recipient_columns():
    return [
        sa.Column("recipient_kind", sa.String(length=10), nullable=True),
        sa.Column("recipient_name", sa.String(length=150), nullable=True),
        sa.Column("recipient_email", sa.String(length=200), nullable=True),
        sa.Column("recipient_owner_id", sa.Integer(), nullable=True),
    ]


def _project_fk():
    return sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE")


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "projects" not in existing_tables:
        op.create_table(
            "projects",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_number", sa.String(length=50), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="Planning"),
            sa.Column("client_name", sa.String(length=200), nullable=True),
            sa.Column("factory", sa.String(length=30), nullable=True),
            sa.Column("building_type", sa.String(length=100), nullable=True),
            sa.Column("module_count", sa.Integer(), nullable=True),
            sa.Column("contract_value", sa.Numeric(14, 2), nullable=True),
            sa.Column("pm_name", sa.String(length=150), nullable=True),
            sa.Column("pm_email", sa.String(length=200), nullable=True),
            sa.Column("color", sa.String(length=10), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("target_offline_date", sa.Date(), nullable=True),
            sa.Column("delivery_date", sa.Date(), nullable=True),
            sa.Column("target_online_date", sa.Date(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_projects_project_number", "projects", ["project_number"], unique=True)
        op.create_index("ix_projects_status", "projects", ["status"])

    if "tasks" not in existing_tables:
        op.create_table(
            "tasks",
            *_work_item_columns(),
            *_recipient_columns(),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("internal_owner_id", sa.Integer(), nullable=True),
            sa.Column("completed_date", sa.Date(), nullable=True),
            _project_fk(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_tasks_project_id", "tasks", ["project_id"])
        op.create_index("ix_tasks_status", "tasks", ["status"])
        op.create_index("ix_tasks_due_date", "tasks", ["due_date"])

    if "rfis" not in existing_tables:
        op.create_table(
            "rfis",
            *_work_item_columns(),
            *_recipient_columns(),
            sa.Column("rfi_number", sa.String(length=80), nullable=False),
            sa.Column("subject", sa.String(length=300), nullable=False),
            sa.Column("question", sa.Text(), nullable=True),
            sa.Column("answer", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("date_sent", sa.Date(), nullable=True),
            sa.Column("answered_date", sa.Date(), nullable=True),
            _project_fk(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_id", "rfi_number", name="uq_rfis_project_number"),
        )
        op.create_index("ix_rfis_project_id", "rfis", ["project_id"])
        op.create_index("ix_rfis_status", "rfis", ["status"])
        op.create_index("ix_rfis_due_date", "rfis", ["due_date"])

    if "submittals" not in existing_tables:
        op.create_table(
            "submittals",
            *_work_item_columns(),
            sa.Column("submittal_number", sa.String(length=80), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("submittal_type", sa.String(length=50), nullable=True),
            sa.Column("spec_section", sa.String(length=50), nullable=True),
            sa.Column("manufacturer", sa.String(length=150), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("date_submitted", sa.Date(), nullable=True),
            sa.Column("approved_date", sa.Date(), nullable=True),
            _project_fk(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_id", "submittal_number", name="uq_submittals_project_number"),
        )
        op.create_index("ix_submittals_project_id", "submittals", ["project_id"])
        op.create_index("ix_submittals_status", "submittals", ["status"])
        op.create_index("ix_submittals_due_date", "submittals", ["due_date"])

    if "milestones" not in existing_tables:
        op.create_table(
            "milestones",
            *_work_item_columns(),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("completed_date", sa.Date(), nullable=True),
            _project_fk(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_milestones_project_id", "milestones", ["project_id"])
        op.create_index("ix_milestones_status", "milestones", ["status"])
        op.create_index("ix_milestones_due_date", "milestones", ["due_date"])

    if "attachments" not in existing_tables:
        op.create_table(
            "attachments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("task_id", sa.Integer(), nullable=True),
            sa.Column("rfi_id", sa.Integer(), nullable=True),
            sa.Column("submittal_id", sa.Integer(), nullable=True),
            sa.Column("file_name", sa.String(length=255), nullable=False),
            sa.Column("file_size", sa.Integer(), nullable=True),
            sa.Column("file_type", sa.String(length=120), nullable=True),
            sa.Column("storage_path", sa.String(length=500), nullable=False),
            sa.Column("public_url", sa.String(length=1000), nullable=True),
            sa.Column("uploaded_by", sa.String(length=150), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            _project_fk(),
            sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["rfi_id"], ["rfis.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["submittal_id"], ["submittals.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("storage_path"),
            sa.CheckConstraint(
                "(CASE WHEN task_id IS NULL THEN 0 ELSE 1 END"
                " + CASE WHEN rfi_id IS NULL THEN 0 ELSE 1 END"
                " + CASE WHEN submittal_id IS NULL THEN 0 ELSE 1 END) <= 1",
                name="ck_attachments_single_owner",
            ),
        )
        for column in ("project_id", "task_id", "rfi_id", "submittal_id"):
            op.create_index(f"ix_attachments_{column}", "attachments", [column])

    if "floor_plans" not in existing_tables:
        op.create_table(
            "floor_plans",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("storage_path", sa.String(length=500), nullable=False),
            sa.Column("public_url", sa.String(length=1000), nullable=True),
            sa.Column("file_type", sa.String(length=120), nullable=True),
            sa.Column("file_size", sa.Integer(), nullable=True),
            sa.Column("page_count", sa.Integer(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("uploaded_by", sa.String(length=150), nullable=True),
            *_timestamps(),
            _project_fk(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_floor_plans_project_id", "floor_plans", ["project_id"])
        op.create_index("ix_floor_plans_is_active", "floor_plans", ["is_active"])

    if "floor_plan_markers" not in existing_tables:
        op.create_table(
            "floor_plan_markers",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("floor_plan_id", sa.Integer(), nullable=False),
            sa.Column("item_type", sa.String(length=20), nullable=False),
            sa.Column("item_id", sa.Integer(), nullable=False),
            sa.Column("x_percent", sa.Float(), nullable=False),
            sa.Column("y_percent", sa.Float(), nullable=False),
            sa.Column("page_number", sa.Integer(), nullable=True),
            sa.Column("label", sa.String(length=100), nullable=True),
            sa.Column("created_by", sa.String(length=150), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["floor_plan_id"], ["floor_plans.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_floor_plan_markers_floor_plan_id", "floor_plan_markers", ["floor_plan_id"])
        op.create_index("ix_floor_plan_markers_item_id", "floor_plan_markers", ["item_id"])

    if "modules" not in existing_tables:
        op.create_table(
            "modules",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("serial_number", sa.String(length=60), nullable=False),
            sa.Column("building_section", sa.String(length=60), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("station", sa.String(length=60), nullable=True),
            sa.Column("scheduled_start", sa.Date(), nullable=True),
            sa.Column("scheduled_end", sa.Date(), nullable=True),
            *_timestamps(),
            _project_fk(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("serial_number"),
        )
        op.create_index("ix_modules_project_id", "modules", ["project_id"])
        op.create_index("ix_modules_status", "modules", ["status"])

    if "qc_records" not in existing_tables:
        op.create_table(
            "qc_records",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("module_id", sa.Integer(), nullable=False),
            sa.Column("inspector", sa.String(length=150), nullable=True),
            sa.Column("station", sa.String(length=60), nullable=True),
            sa.Column("passed", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("defects_found", sa.Integer(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("inspected_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["module_id"], ["modules.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_qc_records_module_id", "qc_records", ["module_id"])


def downgrade():
    for table in (
        "qc_records",
        "modules",
        "floor_plan_markers",
        "floor_plans",
        "attachments",
        "milestones",
        "submittals",
        "rfis",
        "tasks",
        "projects",
    ):
        op.drop_table(table)
