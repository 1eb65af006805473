"""initial hris schema: roles, users, employees, teams, memberships, audit logs

Revision ID: 4c1e9a7d2b10
Revises:
Create Date: 2026-10-19 09:12:41.204517

"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1e9a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE_NAMES = ("admin", "hr", "manager", "employee")
STATUSES = ("active", "on_leave", "terminated")
AUDIT_ACTIONS = ("create", "update", "delete", "import", "export", "login", "logout")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    roles = op.create_table(
        "roles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.Enum(*ROLE_NAMES, name="role_name"), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("role_id", sa.String(36), sa.ForeignKey("roles.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role_id", "users", ["role_id"])

    op.create_table(
        "teams",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("lead_id", sa.String(36), nullable=True),
        sa.Column("parent_team_id", sa.String(36), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_teams_name", "teams", ["name"])
    op.create_index("ix_teams_lead_id", "teams", ["lead_id"])
    op.create_index("ix_teams_parent_team_id", "teams", ["parent_team_id"])

    op.create_table(
        "employees",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("manager_id", sa.String(36), sa.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True),
        sa.Column("team_id", sa.String(36), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("hire_date", sa.Date(), nullable=False),
        sa.Column("salary", sa.Numeric(10, 2), nullable=True),
        sa.Column("status", sa.Enum(*STATUSES, name="employment_status"), nullable=False, server_default="active"),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_employees_department", "employees", ["department"])
    op.create_index("ix_employees_manager_id", "employees", ["manager_id"])
    op.create_index("ix_employees_team_id", "employees", ["team_id"])
    op.create_index("ix_employees_last_first", "employees", ["last_name", "first_name"])

    # teams.lead_id -> employees.id closes the teams/employees cycle
    op.create_foreign_key(
        "fk_teams_lead_id_employees",
        source_table="teams",
        referent_table="employees",
        local_cols=["lead_id"],
        remote_cols=["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "employee_team_memberships",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("employee_id", sa.String(36), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.String(36), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("employee_id", "team_id", name="uq_membership_employee_team"),
    )
    op.create_index("ix_employee_team_memberships_employee_id", "employee_team_memberships", ["employee_id"])
    op.create_index("ix_employee_team_memberships_team_id", "employee_team_memberships", ["team_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.Enum(*AUDIT_ACTIONS, name="audit_action"), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])

    # seed the closed set of roles
    op.bulk_insert(roles, [{"id": str(uuid.uuid4()), "name": name} for name in ROLE_NAMES])


def downgrade():
    op.drop_table("audit_logs")
    op.drop_table("employee_team_memberships")
    op.drop_constraint("fk_teams_lead_id_employees", "teams", type_="foreignkey")
    op.drop_table("employees")
    op.drop_table("teams")
    op.drop_table("users")
    op.drop_table("roles")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in ("audit_action", "employment_status", "role_name"):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
