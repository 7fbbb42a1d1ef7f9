"""m1_governance_core

Revision ID: 5a1c0e7d9b21
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5a1c0e7d9b21"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_subscribed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("subscription_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("idx_users_subscription_expires_at", "users", ["subscription_expires_at"])
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "ip_concurrency",
        sa.Column("ip_address", sa.Text(), primary_key=True),
        sa.Column("current_concurrency", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_concurrency", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("current_concurrency >= 0", name="ck_ip_concurrency_current_non_negative"),
        sa.CheckConstraint(
            "max_concurrency IS NULL OR max_concurrency >= 1",
            name="ck_ip_concurrency_max_positive",
        ),
    )

    op.create_table(
        "points_package",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("name_tag", sa.Text(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("original_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_popular", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("points > 0", name="ck_points_package_points_positive"),
    )

    op.create_table(
        "subscription_plan",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("original_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("bonus_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_popular", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("type IN ('monthly','quarterly','yearly')", name="ck_subscription_plan_type"),
        sa.CheckConstraint("bonus_points >= 0", name="ck_subscription_plan_bonus_non_negative"),
    )

    op.create_table(
        "cdk",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(19), nullable=False),
        sa.Column("package_type", sa.String(32), nullable=False),
        sa.Column("package_id", sa.Integer(), nullable=False),
        sa.Column("is_redeemed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "package_type IN ('points_package','subscription_plan')",
            name="ck_cdk_package_type",
        ),
        sa.UniqueConstraint("code", name="uq_cdk_code"),
    )
    op.create_index("idx_cdk_package", "cdk", ["package_type", "package_id"])
    op.create_index("idx_cdk_is_redeemed", "cdk", ["is_redeemed"])
    op.create_index("idx_cdk_created_at", "cdk", ["created_at"])

    op.create_table(
        "cdk_redemption",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("cdk_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.Text(), nullable=True),
        sa.Column("package_type", sa.String(32), nullable=False),
        sa.Column("package_name", sa.Text(), nullable=False),
        sa.Column(
            "package_data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.ForeignKeyConstraint(["cdk_id"], ["cdk.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("cdk_id", name="uq_cdk_redemption_cdk_id"),
    )
    op.create_index("idx_cdk_redemption_user", "cdk_redemption", ["user_id"])
    op.create_index("idx_cdk_redemption_redeemed_at", "cdk_redemption", ["redeemed_at"])

    op.create_table(
        "user_cdk_daily_limit",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("daily_redemptions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_redemption_reset_date", sa.Date(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("daily_redemptions >= 0", name="ck_user_cdk_daily_limit_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "user_points",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(8), nullable=False),
        sa.Column("source", sa.String(32), nullable=False, server_default=sa.text("'MANUAL'")),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("type IN ('earned','spent')", name="ck_user_points_type"),
        sa.CheckConstraint(
            "(type = 'earned' AND points > 0) OR (type = 'spent' AND points < 0)",
            name="ck_user_points_sign_matches_type",
        ),
        sa.CheckConstraint(
            "type = 'earned' OR expires_at IS NULL",
            name="ck_user_points_spent_never_expires",
        ),
        sa.CheckConstraint(
            "source IN ('DAILY_AWARD','CDK','SUBSCRIPTION_BONUS','GENERATION','MANUAL')",
            name="ck_user_points_source",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("idx_user_points_user_type_expires", "user_points", ["user_id", "type", "expires_at"])
    op.create_index(
        "idx_user_points_user_source_earned_at",
        "user_points",
        ["user_id", "source", "earned_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_user_points_user_source_earned_at", table_name="user_points")
    op.drop_index("idx_user_points_user_type_expires", table_name="user_points")
    op.drop_table("user_points")

    op.drop_table("user_cdk_daily_limit")

    op.drop_index("idx_cdk_redemption_redeemed_at", table_name="cdk_redemption")
    op.drop_index("idx_cdk_redemption_user", table_name="cdk_redemption")
    op.drop_table("cdk_redemption")

    op.drop_index("idx_cdk_created_at", table_name="cdk")
    op.drop_index("idx_cdk_is_redeemed", table_name="cdk")
    op.drop_index("idx_cdk_package", table_name="cdk")
    op.drop_table("cdk")

    op.drop_table("subscription_plan")
    op.drop_table("points_package")
    op.drop_table("ip_concurrency")

    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_subscription_expires_at", table_name="users")
    op.drop_table("users")
