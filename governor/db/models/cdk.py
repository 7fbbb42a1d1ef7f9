from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BOOLEAN,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from governor.db.models.base import Base


class Cdk(Base):
    __tablename__ = "cdk"
    __table_args__ = (
        CheckConstraint(
            "package_type IN ('points_package','subscription_plan')",
            name="ck_cdk_package_type",
        ),
        UniqueConstraint("code", name="uq_cdk_code"),
        Index("idx_cdk_package", "package_type", "package_id"),
        Index("idx_cdk_is_redeemed", "is_redeemed"),
        Index("idx_cdk_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    code: Mapped[str] = mapped_column(String(19), nullable=False)
    package_type: Mapped[str] = mapped_column(String(32), nullable=False)
    package_id: Mapped[int] = mapped_column(Integer, nullable=False)
    is_redeemed: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, server_default=text("false")
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
