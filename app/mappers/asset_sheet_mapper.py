"""
app/mappers/asset_sheet_mapper.py

Header resolution and typed row conversion for the asset import sheet.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Sequence

from openpyxl.utils.datetime import from_excel

from app.domain.asset_row import AssetRow

REQUIRED_FIELDS: tuple[str, ...] = (
    "asset_no",
    "asset_name",
    "category_l1",
    "category_l2",
    "category_l3",
)

DATE_FIELDS: frozenset[str] = frozenset(
    {"warranty_start_date", "warranty_end_date", "acceptance_date"}
)

INT_FIELDS: frozenset[str] = frozenset({"asset_life_years"})

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%Y年%m月%d日",
    "%Y-%m-%d %H:%M:%S",
)

# Labels are compared after normalize_header, so case, spaces and punctuation don't matter.
DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "asset_no": ("asset_no", "asset number", "资产编号"),
    "asset_name": ("asset_name", "资产名称"),
    "serial_no": ("serial_no", "serial number", "sn", "序列号"),
    "model_no": ("model_no", "model", "型号"),
    "brand": ("brand", "品牌"),
    "asset_status": ("asset_status", "status", "资产状态"),
    "department": ("department", "使用部门", "部门"),
    "owner": ("owner", "使用人", "责任人"),
    "category_l1": ("category_l1", "category level 1", "level 1 category", "一级分类"),
    "category_l2": ("category_l2", "category level 2", "level 2 category", "二级分类"),
    "category_l3": ("category_l3", "category level 3", "level 3 category", "三级分类"),
    "data_center": ("data_center", "datacenter", "数据中心"),
    "room_name": ("room_name", "room", "机房"),
    "cabinet_no": ("cabinet_no", "cabinet", "机柜", "机柜编号"),
    "u_position": ("u_position", "u位"),
    "environment": ("environment", "环境", "所属环境"),
    "keeper": ("keeper", "custodian", "保管人"),
    "contract_no": ("contract_no", "contract number", "合同号", "合同编号"),
    "warranty_provider": ("warranty_provider", "维保提供商", "维保厂商"),
    "warranty_start_date": ("warranty_start_date", "维保开始日期"),
    "warranty_end_date": ("warranty_end_date", "维保结束日期"),
    "warranty_status": ("warranty_status", "维保状态"),
    "asset_life_years": ("asset_life_years", "life years", "资产使用年限(年)", "资产使用年限"),
    "acceptance_date": ("acceptance_date", "到货验收日期"),
    "changed_data_center": ("changed_data_center", "变更后数据中心"),
    "changed_room_name": ("changed_room_name", "changed room", "变更后机房"),
    "changed_cabinet_no": ("changed_cabinet_no", "changed cabinet", "变更后机柜"),
    "changed_u_position": ("changed_u_position", "变更后U位"),
    "changed_environment": ("changed_environment", "变更后环境"),
    "changed_keeper": ("changed_keeper", "变更后保管人"),
    "changed_asset_status": ("changed_asset_status", "changed status", "变更后资产状态"),
}


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


class MissingColumnsError(ValueError):
    """
    Raised when required sheet columns cannot be found in the header row.
    """

    def __init__(self, missing_fields: Sequence[str]) -> None:
        self.missing_fields = tuple(missing_fields)
        super().__init__(
            "Missing required column(s): " + ", ".join(self.missing_fields)
        )


@dataclass(frozen=True)
class SheetColumnMapping:
    """
    Field name to zero-based column index, resolved once from the header row.
    """

    field_to_index: dict[str, int]
    ignored_headers: tuple[str, ...] = ()


class AssetSheetMapper:
    """
    Resolves sheet headers and converts raw cell values into AssetRow objects.
    """

    def __init__(self, *, aliases: Mapping[str, Sequence[str]] | None = None) -> None:
        self._alias_lookup: dict[str, str] = {}
        for field_name, labels in (aliases or DEFAULT_COLUMN_ALIASES).items():
            for label in (field_name, *labels):
                self._alias_lookup.setdefault(normalize_header(label), field_name)

    def resolve_columns(self, headers: Sequence[Any]) -> SheetColumnMapping:
        field_to_index: dict[str, int] = {}
        ignored: list[str] = []
        for index, raw_header in enumerate(headers):
            if raw_header is None:
                continue
            header = str(raw_header)
            field_name = self._alias_lookup.get(normalize_header(header))
            if field_name is None:
                if header.strip():
                    ignored.append(header.strip())
                continue
            # First occurrence wins for repeated headers.
            field_to_index.setdefault(field_name, index)

        missing = [name for name in REQUIRED_FIELDS if name not in field_to_index]
        if missing:
            raise MissingColumnsError(missing)

        return SheetColumnMapping(field_to_index=field_to_index, ignored_headers=tuple(ignored))

    def to_asset_row(
        self,
        *,
        row_number: int,
        values: Sequence[Any],
        columns: SheetColumnMapping,
    ) -> AssetRow:
        parsed: dict[str, Any] = {}
        for field_name, index in columns.field_to_index.items():
            raw = values[index] if index < len(values) else None
            if field_name in DATE_FIELDS:
                parsed[field_name] = parse_date(raw)
            elif field_name in INT_FIELDS:
                parsed[field_name] = parse_int(raw)
            else:
                parsed[field_name] = parse_text(raw)
        return AssetRow(row_number=row_number, **parsed)


def parse_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def parse_date(value: Any) -> date | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        # Excel serial day number stored without a date number format.
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return None
        return converted.date() if isinstance(converted, datetime) else None
    if isinstance(value, str):
        stripped = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(stripped, fmt).date()
            except ValueError:
                continue
    return None


def parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        stripped = value.strip()
        try:
            as_float = float(stripped)
        except ValueError:
            return None
        return int(as_float) if as_float.is_integer() else None
    return None
