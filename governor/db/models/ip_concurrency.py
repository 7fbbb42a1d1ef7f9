from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from governor.db.models.base import Base


class IpConcurrency(Base):
    __tablename__ = "ip_concurrency"
    __table_args__ = (
        CheckConstraint(
            "current_concurrency >= 0",
            name="ck_ip_concurrency_current_non_negative",
        ),
        CheckConstraint(
            "max_concurrency IS NULL OR max_concurrency >= 1",
            name="ck_ip_concurrency_max_positive",
        ),
    )

    ip_address: Mapped[str] = mapped_column(Text, primary_key=True)
    current_concurrency: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    # NULL means unbounded (admin caller).
    max_concurrency: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
