"""
app/services/asset_import_service.py

Per-row import pipeline: dedup, category validation, record building,
single-transaction persistence and change tracing.

A row either commits completely (asset, locations, warranty, traces) or
leaves nothing behind. Rejections raise RowRejectedError, persistence
failures raise AssetPersistenceError; the caller records both against the
row and carries on with the batch.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_asset_import_settings
from app.domain.asset_row import AssetRow, CategoryPath, LocationDelta, LocationSnapshot, StatusDelta
from app.domain.fingerprint import fingerprint_row, hash_row
from app.domain.import_task import RowOutcome
from app.mappers.asset_sheet_mapper import normalize_header
from app.repositories.asset_repository import AssetRepository
from app.repositories.category_repository import CategoryRepository
from app.validators.category_validator import CategoryValidator
from db.models.asset_record import AssetRecord, AssetStatus
from db.models.change_trace import ChangeTraceEntry, ChangeType
from db.models.location_timeline import LocationTimelineEntry
from db.models.warranty_record import WarrantyRecord

logger = logging.getLogger(__name__)

IMPORT_SOURCE = "EXCEL_IMPORT"
DEFAULT_ASSET_LIFE_YEARS = 5
DEFAULT_PROVIDER_LEVEL = 1

_STATUS_LABELS: dict[str, str] = {
    "使用中": AssetStatus.IN_USE,
    "在用": AssetStatus.IN_USE,
    "inuse": AssetStatus.IN_USE,
    "维修": AssetStatus.MAINTENANCE,
    "维修中": AssetStatus.MAINTENANCE,
    "maintenance": AssetStatus.MAINTENANCE,
    "报废": AssetStatus.RETIRED,
    "已报废": AssetStatus.RETIRED,
    "retired": AssetStatus.RETIRED,
    "库存": AssetStatus.INVENTORY,
    "库存中": AssetStatus.INVENTORY,
    "inventory": AssetStatus.INVENTORY,
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RowRejectedError(ValueError):
    """
    Raised when a row fails business validation.
    """


class AssetPersistenceError(RuntimeError):
    """
    Raised when a valid row cannot be persisted.
    """


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def map_asset_status(label: str | None) -> str:
    """
    Map a sheet status label to an AssetStatus value. Unknown labels map to INVENTORY.
    """

    if not label:
        return AssetStatus.INVENTORY
    return _STATUS_LABELS.get(normalize_header(label), AssetStatus.INVENTORY)


def generate_asset_uuid(now: datetime) -> str:
    return f"AST{now:%Y%m%d}-{uuid.uuid4().hex[:8]}"


def generate_batch_id(now: datetime) -> str:
    return f"IMPORT-{now:%Y%m%d%H%M%S}-{uuid.uuid4().hex[:6]}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return start.replace(year=start.year + years, day=28)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AssetImportService:
    """
    Turns one validated sheet row into persisted asset records.
    """

    def __init__(
        self,
        *,
        default_operator: str = IMPORT_SOURCE,
        log_row_errors: bool = True,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._default_operator = default_operator
        self._log_row_errors = log_row_errors
        self._clock = clock

    def import_row(
        self,
        *,
        db: Session,
        row: AssetRow,
        batch_id: str,
        operator: str | None = None,
    ) -> str:
        """
        Import one row. Returns a RowOutcome value.

        Raises:
            RowRejectedError: the row failed validation; nothing was written.
            AssetPersistenceError: the transaction was rolled back.
        """

        operated_by = operator or self._default_operator
        try:
            return self._import_row(db=db, row=row, batch_id=batch_id, operated_by=operated_by)
        except RowRejectedError as exc:
            db.rollback()
            if self._log_row_errors:
                logger.warning("Asset row rejected batch=%s row=%s reason=%s", batch_id, row.row_number, exc)
            raise

    def _import_row(
        self,
        *,
        db: Session,
        row: AssetRow,
        batch_id: str,
        operated_by: str,
    ) -> str:
        if not row.asset_no:
            raise RowRejectedError("Asset number is required.")
        if not row.asset_name:
            raise RowRejectedError("Asset name is required.")

        assets = AssetRepository(db)
        fingerprint = fingerprint_row(row)
        if assets.exists_by_fingerprint(fingerprint):
            db.rollback()
            logger.info("Skipping duplicate asset row batch=%s row=%s asset_no=%s", batch_id, row.row_number, row.asset_no)
            return RowOutcome.SKIPPED_DUPLICATE

        resolution = CategoryValidator(CategoryRepository(db)).resolve(
            row.category_l1,
            row.category_l2,
            row.category_l3,
        )
        if resolution.path is None:
            raise RowRejectedError(f"Invalid category path: {resolution.reason}")

        if assets.exists_by_asset_no(row.asset_no):
            raise RowRejectedError(f"Asset number '{row.asset_no}' already exists.")

        now = self._clock()
        asset = self._build_asset(
            row=row,
            category_path=resolution.path,
            fingerprint=fingerprint,
            batch_id=batch_id,
            now=now,
        )
        space_delta = self._attach_locations(asset=asset, row=row, now=now)
        self._attach_warranty(asset=asset, row=row, today=now.date())
        self._attach_traces(
            asset=asset,
            row=row,
            batch_id=batch_id,
            operated_by=operated_by,
            now=now,
            space_delta=space_delta,
        )

        try:
            assets.add(asset)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            detail = getattr(exc, "orig", None) or exc
            if self._log_row_errors:
                logger.warning(
                    "Asset row persistence failed batch=%s row=%s error=%s",
                    batch_id,
                    row.row_number,
                    detail,
                )
            raise AssetPersistenceError(f"Failed to persist asset '{row.asset_no}': {detail}") from exc

        return RowOutcome.CREATED

    # ------------------------------------------------------------------
    # Record builders
    # ------------------------------------------------------------------

    def _build_asset(
        self,
        *,
        row: AssetRow,
        category_path: CategoryPath,
        fingerprint: str,
        batch_id: str,
        now: datetime,
    ) -> AssetRecord:
        return AssetRecord(
            asset_uuid=generate_asset_uuid(now),
            asset_no=row.asset_no,
            asset_name=row.asset_name,
            serial_no=row.serial_no,
            model_no=row.model_no,
            brand=row.brand,
            department=row.department,
            owner=row.owner,
            current_status=map_asset_status(row.asset_status),
            category_l1_id=category_path.level1_id,
            category_l2_id=category_path.level2_id,
            category_l3_id=category_path.level3_id,
            data_fingerprint=fingerprint,
            import_batch=batch_id,
            row_hash=hash_row(row),
        )

    def _attach_locations(
        self,
        *,
        asset: AssetRecord,
        row: AssetRow,
        now: datetime,
    ) -> LocationDelta | None:
        """
        Add the current location and, when it differs, the changed-to location.

        A delta is only produced when both a current and a changed-to entry exist.
        """

        primary = row.location
        if not primary.is_empty:
            asset.locations.append(_location_entry(primary, valid_from=now, is_current=True))

        changed = row.changed_location
        if changed.is_empty:
            return None
        if primary.is_empty:
            asset.locations.append(_location_entry(changed, valid_from=now, is_current=False))
            return None
        changed = changed.fill_from(primary)
        if changed == primary:
            return None

        asset.locations.append(_location_entry(changed, valid_from=now, is_current=False))
        return LocationDelta(before=primary, after=changed)

    def _attach_warranty(self, *, asset: AssetRecord, row: AssetRow, today: date) -> None:
        if not row.contract_no:
            return
        start_date = row.warranty_start_date or today
        asset.warranties.append(
            WarrantyRecord(
                contract_no=row.contract_no,
                start_date=start_date,
                end_date=row.warranty_end_date or _add_years(today, 1),
                provider=row.warranty_provider,
                provider_level=DEFAULT_PROVIDER_LEVEL,
                warranty_status=row.warranty_status,
                asset_life_years=row.asset_life_years or DEFAULT_ASSET_LIFE_YEARS,
                acceptance_date=row.acceptance_date,
                is_active=True,
            )
        )

    def _attach_traces(
        self,
        *,
        asset: AssetRecord,
        row: AssetRow,
        batch_id: str,
        operated_by: str,
        now: datetime,
        space_delta: LocationDelta | None,
    ) -> None:
        snapshots: list[tuple[str, dict[str, Any]]] = [
            (
                ChangeType.INITIAL,
                {
                    "source": IMPORT_SOURCE,
                    "batch": batch_id,
                    "import_time": now.isoformat(),
                    "row_number": row.row_number,
                },
            )
        ]
        if space_delta is not None:
            snapshots.append((ChangeType.SPACE, space_delta.to_dict()))

        if row.changed_asset_status:
            changed_status = map_asset_status(row.changed_asset_status)
            if changed_status != asset.current_status:
                snapshots.append(
                    (
                        ChangeType.STATUS,
                        StatusDelta(before=asset.current_status, after=changed_status).to_dict(),
                    )
                )

        for change_type, delta in snapshots:
            asset.change_traces.append(
                ChangeTraceEntry(
                    change_type=change_type,
                    delta_snapshot=delta,
                    operated_by=operated_by,
                    operated_at=now,
                )
            )


def _location_entry(
    snapshot: LocationSnapshot,
    *,
    valid_from: datetime,
    is_current: bool,
) -> LocationTimelineEntry:
    return LocationTimelineEntry(
        location_path=snapshot.location_path,
        data_center=snapshot.data_center,
        room_name=snapshot.room_name,
        cabinet_no=snapshot.cabinet_no,
        u_position=snapshot.u_position,
        environment=snapshot.environment,
        keeper=snapshot.keeper,
        valid_from=valid_from,
        valid_to=None,
        is_current=is_current,
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_asset_import_service() -> AssetImportService:
    """
    Build and cache the row pipeline with env-driven settings.
    """

    settings = get_asset_import_settings()
    return AssetImportService(
        default_operator=settings.default_operator,
        log_row_errors=settings.log_row_errors,
    )
