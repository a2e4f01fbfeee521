"""Add user table

Revision ID: 20260102_add_user_table
Revises: 20260101_initial_schema
Create Date: 2026-01-02 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20260102_add_user_table"
down_revision = "20260101_initial_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("language", sa.String(5), nullable=False, server_default="zh"),
        sa.Column("session_id", sa.String(100), nullable=False),
    )
    op.create_index("ix_user_session_id", "user", ["session_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_user_session_id", table_name="user")
    op.drop_table("user")
