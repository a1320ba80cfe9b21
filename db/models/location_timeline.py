"""
db/models/location_timeline.py

Physical location history of an asset (data center / room / cabinet / U position).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from db.models.asset_record import AssetRecord


class LocationTimelineEntry(Base, CreatedAtMixin):
    """
    One validity window of an asset's location.

    Exactly zero or one entry per asset carries is_current = true; the partial
    unique index below makes the database enforce it.
    """

    __tablename__ = "location_timeline"

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
    location_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="data_center/room/cabinet/u_position, empty parts omitted",
    )
    data_center: Mapped[str | None] = mapped_column(String(255), nullable=True)
    room_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cabinet_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    u_position: Mapped[str | None] = mapped_column(String(10), nullable=True)
    environment: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="production, test, development, ...",
    )
    keeper: Mapped[str | None] = mapped_column(String(100), nullable=True)
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    asset: Mapped["AssetRecord"] = relationship("AssetRecord", back_populates="locations")

    __table_args__ = (
        Index("ix_location_timeline_asset_id", "asset_id"),
        Index(
            "uq_location_timeline_current_per_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )
