"""Create users table

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_digest", sa.String(length=60), nullable=False),
        sa.Column("remember_digest", sa.String(length=60), nullable=True),
        sa.Column("admin", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("activation_digest", sa.String(length=60), nullable=True),
        sa.Column("activated", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.Column("reset_digest", sa.String(length=60), nullable=True),
        sa.Column("reset_sent_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
