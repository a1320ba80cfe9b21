"""
app/validators/category_validator.py

Category path resolution and hierarchy validation for imported assets.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.asset_row import CategoryPath
from app.repositories.category_repository import CategoryRepository


@dataclass(frozen=True)
class CategoryResolution:
    """
    Outcome of mapping sheet labels onto a category path.
    """

    path: CategoryPath | None
    reason: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.path is not None


class CategoryValidator:
    """
    Validates that level 1/2/3 category ids form a connected parent chain.
    """

    def __init__(self, repository: CategoryRepository) -> None:
        self._repository = repository

    def validate(
        self,
        level1_id: int | None,
        level2_id: int | None = None,
        level3_id: int | None = None,
    ) -> bool:
        return self.rejection_reason(level1_id, level2_id, level3_id) is None

    def rejection_reason(
        self,
        level1_id: int | None,
        level2_id: int | None = None,
        level3_id: int | None = None,
    ) -> str | None:
        """
        Return why the path is invalid, or None when it is valid.
        """

        if level1_id is None:
            return "Level 1 category is required."
        if self._repository.get_at_level(level1_id, 1) is None:
            return f"Level 1 category {level1_id} does not exist."

        if level2_id is None:
            return None
        level2 = self._repository.get_at_level(level2_id, 2)
        if level2 is None:
            return f"Level 2 category {level2_id} does not exist."
        if level2.parent_id != level1_id:
            return f"Level 2 category {level2_id} is not a child of level 1 category {level1_id}."

        if level3_id is None:
            return None
        level3 = self._repository.get_at_level(level3_id, 3)
        if level3 is None:
            return f"Level 3 category {level3_id} does not exist."
        if level3.parent_id != level2_id:
            return f"Level 3 category {level3_id} is not a child of level 2 category {level2_id}."
        return None

    def resolve(
        self,
        level1_label: str | int | None,
        level2_label: str | int | None = None,
        level3_label: str | int | None = None,
    ) -> CategoryResolution:
        """
        Map sheet labels (ids or names) to ids, then validate the resulting path.

        Name lookups prefer the candidate whose parent is the level resolved
        just above it. A level 3 label without a level 2 label is ignored.
        """

        level1_id, reason = self._resolve_level(level1_label, level=1, parent_id=None)
        if reason:
            return CategoryResolution(path=None, reason=reason)
        level2_id, reason = self._resolve_level(level2_label, level=2, parent_id=level1_id)
        if reason:
            return CategoryResolution(path=None, reason=reason)
        level3_id = None
        if level2_id is not None:
            level3_id, reason = self._resolve_level(level3_label, level=3, parent_id=level2_id)
            if reason:
                return CategoryResolution(path=None, reason=reason)

        reason = self.rejection_reason(level1_id, level2_id, level3_id)
        if reason or level1_id is None:
            return CategoryResolution(path=None, reason=reason)
        return CategoryResolution(
            path=CategoryPath(level1_id=level1_id, level2_id=level2_id, level3_id=level3_id)
        )

    def _resolve_level(
        self,
        label: str | int | None,
        *,
        level: int,
        parent_id: int | None,
    ) -> tuple[int | None, str | None]:
        if label is None:
            return None, None
        if isinstance(label, int) and not isinstance(label, bool):
            return label, None

        text = str(label).strip()
        if not text:
            return None, None
        if text.isdecimal():
            return int(text), None

        candidates = self._repository.find_by_name(level=level, name=text)
        if not candidates:
            return None, f"Level {level} category '{text}' not found."
        for candidate in candidates:
            if candidate.parent_id == parent_id:
                return candidate.id, None
        return candidates[0].id, None
