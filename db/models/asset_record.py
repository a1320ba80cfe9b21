"""
db/models/asset_record.py

Asset master record, one row per imported IT asset.
Location history, warranty contracts and change traces hang off this record.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.change_trace import ChangeTraceEntry
    from db.models.location_timeline import LocationTimelineEntry
    from db.models.warranty_record import WarrantyRecord


class AssetStatus:
    IN_USE = "IN_USE"
    INVENTORY = "INVENTORY"
    MAINTENANCE = "MAINTENANCE"
    RETIRED = "RETIRED"


class AssetRecord(Base, TimestampMixin):
    """
    One IT asset.

    data_fingerprint is the SHA-256 of the business-key fields of the sheet row
    that created the asset; its uniqueness is what makes re-imports idempotent.
    version is SQLAlchemy's optimistic-lock counter.
    """

    __tablename__ = "asset_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    asset_uuid: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
        comment="Business identifier, AST{yyyymmdd}-{8 hex}",
    )

    asset_no: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        comment="Asset number from the source sheet",
    )

    asset_name: Mapped[str] = mapped_column(String(255), nullable=False)
    serial_no: Mapped[str | None] = mapped_column(String(128), nullable=True)
    model_no: Mapped[str | None] = mapped_column(String(128), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(128), nullable=True)
    department: Mapped[str | None] = mapped_column(String(128), nullable=True)
    owner: Mapped[str | None] = mapped_column(String(100), nullable=True)

    current_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AssetStatus.INVENTORY,
        comment="IN_USE, INVENTORY, MAINTENANCE, RETIRED",
    )

    category_l1_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("category_nodes.id", ondelete="RESTRICT"),
        nullable=False,
    )
    category_l2_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category_nodes.id", ondelete="RESTRICT"),
        nullable=True,
    )
    category_l3_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category_nodes.id", ondelete="RESTRICT"),
        nullable=True,
    )

    data_fingerprint: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
    )

    import_batch: Mapped[str | None] = mapped_column(
        String(40),
        nullable=True,
        comment="Batch id shared by every asset created by one import run",
    )

    row_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Hash of the source sheet row",
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Relationships ──────────────────────────────────────────────────────────

    locations: Mapped[list["LocationTimelineEntry"]] = relationship(
        "LocationTimelineEntry",
        back_populates="asset",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    warranties: Mapped[list["WarrantyRecord"]] = relationship(
        "WarrantyRecord",
        back_populates="asset",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    change_traces: Mapped[list["ChangeTraceEntry"]] = relationship(
        "ChangeTraceEntry",
        back_populates="asset",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChangeTraceEntry.operated_at",
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_asset_records_import_batch", "import_batch"),
        Index("ix_asset_records_current_status", "current_status"),
        Index("ix_asset_records_category_l1_id", "category_l1_id"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<AssetRecord id={self.id} asset_no={self.asset_no!r} "
            f"status={self.current_status!r} batch={self.import_batch!r}>"
        )
