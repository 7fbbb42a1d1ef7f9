from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from governor.db.models.base import Base


class UserCdkDailyLimit(Base):
    __tablename__ = "user_cdk_daily_limit"
    __table_args__ = (
        CheckConstraint(
            "daily_redemptions >= 0",
            name="ck_user_cdk_daily_limit_non_negative",
        ),
    )

    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), primary_key=True)
    # Counts redemption attempts, successful or not, for the UTC day below.
    daily_redemptions: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    last_redemption_reset_date: Mapped[date] = mapped_column(Date, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
