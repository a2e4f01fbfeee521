"""Initial schema: car catalog, conversations, messages, recommendations, next steps

Revision ID: 20260101_initial_schema
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20260101_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "car",
        *_base_columns(),
        sa.Column("make", sa.String(50), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("year_min", sa.Integer, nullable=True),
        sa.Column("year_max", sa.Integer, nullable=True),
        sa.Column("price_min", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_max", sa.Numeric(10, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="CAD"),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("fuel_type", sa.String(20), nullable=False),
        sa.Column("description_en", sa.Text, nullable=True),
        sa.Column("description_zh", sa.Text, nullable=True),
        sa.Column("pros_en", postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column("pros_zh", postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column("cons_en", postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column("cons_zh", postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column("features", postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("reliability_score", sa.Integer, nullable=True),
        sa.Column("fuel_economy", sa.Numeric(4, 1), nullable=True),
        sa.Column("safety_rating", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "conversation",
        *_base_columns(),
        sa.Column("user_id", sa.String(100), nullable=True),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("language", sa.String(5), nullable=False, server_default="zh"),
        sa.Column("session_id", sa.String(100), nullable=False),
    )

    op.create_table(
        "message",
        *_base_columns(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("conversation.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False),  # 'user' or 'assistant'
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
    )

    op.create_table(
        "recommendation",
        *_base_columns(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("conversation.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "message_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("message.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "car_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("car.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("match_score", sa.Integer, nullable=False),
        sa.Column("reasoning_en", sa.Text, nullable=True),
        sa.Column("reasoning_zh", sa.Text, nullable=True),
        sa.CheckConstraint(
            "match_score >= 0 AND match_score <= 100", name="ck_recommendation_match_score"
        ),
    )

    op.create_table(
        "next_step",
        *_base_columns(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("conversation.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "message_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("message.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title_en", sa.String(200), nullable=False),
        sa.Column("title_zh", sa.String(200), nullable=False),
        sa.Column("description_en", sa.Text, nullable=True),
        sa.Column("description_zh", sa.Text, nullable=True),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("action_type", sa.String(20), nullable=False, server_default="research"),
        sa.Column("url", sa.String(500), nullable=True),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
        sa.Column("is_completed", sa.Boolean, nullable=False, server_default=sa.false()),
    )

    # Create indexes for efficient querying
    op.create_index("ix_car_make", "car", ["make"])
    op.create_index("ix_car_category", "car", ["category"])
    op.create_index("ix_conversation_user_id", "conversation", ["user_id"])
    op.create_index("ix_conversation_session_id", "conversation", ["session_id"])
    op.create_index("ix_message_conversation_created", "message", ["conversation_id", "created_at"])
    op.create_index("ix_recommendation_conversation_id", "recommendation", ["conversation_id"])
    op.create_index("ix_recommendation_message_id", "recommendation", ["message_id"])
    op.create_index("ix_next_step_conversation_id", "next_step", ["conversation_id"])
    op.create_index("ix_next_step_message_id", "next_step", ["message_id"])


def downgrade() -> None:
    op.drop_index("ix_next_step_message_id", table_name="next_step")
    op.drop_index("ix_next_step_conversation_id", table_name="next_step")
    op.drop_index("ix_recommendation_message_id", table_name="recommendation")
    op.drop_index("ix_recommendation_conversation_id", table_name="recommendation")
    op.drop_index("ix_message_conversation_created", table_name="message")
    op.drop_index("ix_conversation_session_id", table_name="conversation")
    op.drop_index("ix_conversation_user_id", table_name="conversation")
    op.drop_index("ix_car_category", table_name="car")
    op.drop_index("ix_car_make", table_name="car")

    op.drop_table("next_step")
    op.drop_table("recommendation")
    op.drop_table("message")
    op.drop_table("conversation")
    op.drop_table("car")
