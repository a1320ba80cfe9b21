"""
db/models/category_node.py

Three-level asset category hierarchy. Reference data maintained outside the
import pipeline; the importer only reads it.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class CategoryNode(Base, TimestampMixin):
    __tablename__ = "category_nodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    level: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        comment="1, 2 or 3",
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(4), nullable=True)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category_nodes.id", ondelete="RESTRICT"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint("level BETWEEN 1 AND 3", name="ck_category_nodes_level"),
        Index("ix_category_nodes_level_name", "level", "name"),
        Index("ix_category_nodes_parent_id", "parent_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<CategoryNode id={self.id} level={self.level} "
            f"name={self.name!r} parent_id={self.parent_id}>"
        )
