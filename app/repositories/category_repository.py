"""
app/repositories/category_repository.py

Read-only lookups over the category hierarchy.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.category_node import CategoryNode


class CategoryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, category_id: int) -> CategoryNode | None:
        return self._session.get(CategoryNode, category_id)

    def get_at_level(self, category_id: int, level: int) -> CategoryNode | None:
        """
        Return the node only when it exists at ``level``.
        """

        node = self.get(category_id)
        if node is None or node.level != level:
            return None
        return node

    def find_by_name(self, *, level: int, name: str) -> list[CategoryNode]:
        stmt = (
            select(CategoryNode)
            .where(CategoryNode.level == level, CategoryNode.name == name.strip())
            .order_by(CategoryNode.id)
        )
        return list(self._session.execute(stmt).scalars().all())
