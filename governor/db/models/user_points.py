from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from governor.db.models.base import Base


class UserPoints(Base):
    __tablename__ = "user_points"
    __table_args__ = (
        CheckConstraint("type IN ('earned','spent')", name="ck_user_points_type"),
        CheckConstraint(
            "(type = 'earned' AND points > 0) OR (type = 'spent' AND points < 0)",
            name="ck_user_points_sign_matches_type",
        ),
        CheckConstraint(
            "type = 'earned' OR expires_at IS NULL",
            name="ck_user_points_spent_never_expires",
        ),
        CheckConstraint(
            "source IN ('DAILY_AWARD','CDK','SUBSCRIPTION_BONUS','GENERATION','MANUAL')",
            name="ck_user_points_source",
        ),
        Index("idx_user_points_user_type_expires", "user_id", "type", "expires_at"),
        Index("idx_user_points_user_source_earned_at", "user_id", "source", "earned_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False)
    # Signed: positive for earned entries, negative for spent entries.
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(8), nullable=False)
    source: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default=text("'MANUAL'")
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
