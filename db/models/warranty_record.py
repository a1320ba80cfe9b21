"""
db/models/warranty_record.py

Warranty / maintenance contract attached to an asset.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, SmallInteger, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.asset_record import AssetRecord


class WarrantyRecord(Base, TimestampMixin):
    __tablename__ = "warranty_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    asset_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("asset_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    contract_no: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    provider: Mapped[str | None] = mapped_column(String(100), nullable=True)
    provider_level: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        default=1,
        comment="1 basic, 2 advanced, 3 dedicated",
    )
    warranty_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    asset_life_years: Mapped[int] = mapped_column(Integer, nullable=False)
    acceptance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    asset: Mapped["AssetRecord"] = relationship("AssetRecord", back_populates="warranties")

    __table_args__ = (
        Index("ix_warranty_records_asset_id", "asset_id"),
        Index("ix_warranty_records_end_date", "end_date"),
    )
