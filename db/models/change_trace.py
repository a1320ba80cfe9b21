"""
db/models/change_trace.py

Append-only audit trail of asset changes.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, CreatedAtMixin, JSONDocument

if TYPE_CHECKING:
    from db.models.asset_record import AssetRecord


class ChangeType:
    INITIAL = "INITIAL"
    SPACE = "SPACE"
    STATUS = "STATUS"
    WARRANTY = "WARRANTY"
    PROPERTY = "PROPERTY"
    OWNER = "OWNER"


class ChangeTraceEntry(Base, CreatedAtMixin):
    __tablename__ = "change_traces"

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
    change_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="INITIAL, SPACE, STATUS, WARRANTY, PROPERTY, OWNER",
    )
    delta_snapshot: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        comment="Before/after snapshot; shape depends on change_type",
    )
    operated_by: Mapped[str | None] = mapped_column(String(50), nullable=True)
    operated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    asset: Mapped["AssetRecord"] = relationship("AssetRecord", back_populates="change_traces")

    __table_args__ = (
        Index("ix_change_traces_asset_id", "asset_id"),
        Index("ix_change_traces_change_type", "change_type"),
        Index("ix_change_traces_asset_operated_at", "asset_id", "operated_at"),
    )
