"""
app/domain/asset_row.py

Typed row schema produced by the workbook reader and consumed by the import pipeline.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from datetime import date
from typing import Any


@dataclass(frozen=True)
class LocationSnapshot:
    """
    Location attributes of an asset at one point in time.
    """

    data_center: str | None = None
    room_name: str | None = None
    cabinet_no: str | None = None
    u_position: str | None = None
    environment: str | None = None
    keeper: str | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @property
    def location_path(self) -> str:
        parts = (self.data_center, self.room_name, self.cabinet_no, self.u_position)
        return "/".join(part for part in parts if part)

    def fill_from(self, base: LocationSnapshot) -> LocationSnapshot:
        """
        Return a copy where every unset attribute is taken from ``base``.
        """

        return replace(
            self,
            **{
                f.name: getattr(base, f.name)
                for f in fields(self)
                if getattr(self, f.name) is None
            },
        )

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


@dataclass(frozen=True)
class LocationDelta:
    before: LocationSnapshot
    after: LocationSnapshot

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": "space",
            "before": self.before.to_dict(),
            "after": self.after.to_dict(),
        }


@dataclass(frozen=True)
class StatusDelta:
    before: str
    after: str

    def to_dict(self) -> dict[str, Any]:
        return {"field": "status", "before": self.before, "after": self.after}


@dataclass(frozen=True)
class CategoryPath:
    """
    Resolved 1-3 level category ids. Deeper levels are None when not supplied.
    """

    level1_id: int
    level2_id: int | None = None
    level3_id: int | None = None


@dataclass(frozen=True)
class AssetRow:
    """
    One data row of the asset import sheet.

    ``row_number`` is the 1-based position in the sheet (the header is row 1).
    Every other field is already coerced to its target type; cells that could
    not be coerced are None.
    """

    row_number: int
    asset_no: str | None = None
    asset_name: str | None = None
    serial_no: str | None = None
    model_no: str | None = None
    brand: str | None = None
    asset_status: str | None = None
    department: str | None = None
    owner: str | None = None
    category_l1: str | None = None
    category_l2: str | None = None
    category_l3: str | None = None
    data_center: str | None = None
    room_name: str | None = None
    cabinet_no: str | None = None
    u_position: str | None = None
    environment: str | None = None
    keeper: str | None = None
    contract_no: str | None = None
    warranty_provider: str | None = None
    warranty_start_date: date | None = None
    warranty_end_date: date | None = None
    warranty_status: str | None = None
    asset_life_years: int | None = None
    acceptance_date: date | None = None
    changed_data_center: str | None = None
    changed_room_name: str | None = None
    changed_cabinet_no: str | None = None
    changed_u_position: str | None = None
    changed_environment: str | None = None
    changed_keeper: str | None = None
    changed_asset_status: str | None = None

    @property
    def location(self) -> LocationSnapshot:
        return LocationSnapshot(
            data_center=self.data_center,
            room_name=self.room_name,
            cabinet_no=self.cabinet_no,
            u_position=self.u_position,
            environment=self.environment,
            keeper=self.keeper,
        )

    @property
    def changed_location(self) -> LocationSnapshot:
        return LocationSnapshot(
            data_center=self.changed_data_center,
            room_name=self.changed_room_name,
            cabinet_no=self.changed_cabinet_no,
            u_position=self.changed_u_position,
            environment=self.changed_environment,
            keeper=self.changed_keeper,
        )
