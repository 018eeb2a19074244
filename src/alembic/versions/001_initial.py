"""Create project, project member and project tryout tables

Revision ID: 001
Revises:
Create Date: 2024-08-01 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("thumbnail_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("tech_stacks", sa.JSON(), nullable=True),
        sa.Column("recruitments", sa.JSON(), nullable=True),
        sa.Column("bookmarkers", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(is_completed AND completed_at IS NOT NULL) "
            "OR (NOT is_completed AND completed_at IS NULL)",
            name="ck_projects_completed_at",
        ),
    )
    op.create_index("ix_projects_user_id", "projects", ["user_id"], unique=False)
    op.create_index("ix_projects_is_completed", "projects", ["is_completed"], unique=False)
    op.create_index("ix_projects_created_at", "projects", ["created_at"], unique=False)

    op.create_table(
        "project_members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tryout_id", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("resume_id", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_thumbnail", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("user_self_description", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("position_name", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("project_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_project_members_user_id", "project_members", ["user_id"], unique=False)
    op.create_index(
        "ix_project_members_project_id", "project_members", ["project_id"], unique=False
    )

    op.create_table(
        "project_tryouts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("resume_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_self_description", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_profile_image_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("position_name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("tryout_status", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("project_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_project_tryouts_user_id", "project_tryouts", ["user_id"], unique=False)
    op.create_index(
        "ix_project_tryouts_tryout_status", "project_tryouts", ["tryout_status"], unique=False
    )
    op.create_index(
        "ix_project_tryouts_project_id", "project_tryouts", ["project_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_project_tryouts_project_id", table_name="project_tryouts")
    op.drop_index("ix_project_tryouts_tryout_status", table_name="project_tryouts")
    op.drop_index("ix_project_tryouts_user_id", table_name="project_tryouts")
    op.drop_table("project_tryouts")
    op.drop_index("ix_project_members_project_id", table_name="project_members")
    op.drop_index("ix_project_members_user_id", table_name="project_members")
    op.drop_table("project_members")
    op.drop_index("ix_projects_created_at", table_name="projects")
    op.drop_index("ix_projects_is_completed", table_name="projects")
    op.drop_index("ix_projects_user_id", table_name="projects")
    op.drop_table("projects")
