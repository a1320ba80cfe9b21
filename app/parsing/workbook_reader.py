"""
app/parsing/workbook_reader.py

openpyxl-based reader for asset import workbooks.

The first worksheet is read. Row 1 is the header row; every following
non-blank row becomes one AssetRow. The workbook is opened twice in
read-only mode: once with cached values (``data_only=True``) and once with
formulas, so formula cells can be told apart from literal values.
"""

from __future__ import annotations

import logging
import os
import zipfile
from collections.abc import Iterator
from datetime import date, datetime
from itertools import zip_longest
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.domain.asset_row import AssetRow
from app.mappers.asset_sheet_mapper import AssetSheetMapper, MissingColumnsError, SheetColumnMapping

logger = logging.getLogger(__name__)

_UNREADABLE_WORKBOOK_ERRORS = (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError)


class WorkbookStructureError(ValueError):
    """
    Raised when a workbook cannot be read or its header row is unusable.
    """


class AssetWorkbook:
    """
    An opened, header-validated asset workbook.

    ``iter_rows`` restarts from the first data row on every call.
    """

    def __init__(
        self,
        *,
        path: str,
        columns: SheetColumnMapping,
        total_rows: int,
        mapper: AssetSheetMapper,
    ) -> None:
        self.path = path
        self.columns = columns
        self.total_rows = total_rows
        self._mapper = mapper

    def iter_rows(self) -> Iterator[AssetRow]:
        rows = _iter_sheet_values(self.path)
        try:
            next(rows, None)  # header
            for row_number, values in rows:
                if _is_blank(values):
                    continue
                yield self._mapper.to_asset_row(
                    row_number=row_number,
                    values=values,
                    columns=self.columns,
                )
        finally:
            rows.close()


class AssetWorkbookReader:
    """
    Opens asset workbooks and validates their header row.
    """

    def __init__(self, *, mapper: AssetSheetMapper | None = None) -> None:
        self._mapper = mapper or AssetSheetMapper()

    def open(self, path: str | os.PathLike[str]) -> AssetWorkbook:
        path = os.fspath(path)
        rows = _iter_sheet_values(path)
        try:
            header = next(rows, None)
            if header is None or _is_blank(header[1]):
                raise WorkbookStructureError("Workbook header row is missing.")
            try:
                columns = self._mapper.resolve_columns(header[1])
            except MissingColumnsError as exc:
                raise WorkbookStructureError(str(exc)) from exc

            total_rows = sum(1 for _, values in rows if not _is_blank(values))
        finally:
            rows.close()

        if columns.ignored_headers:
            logger.info(
                "Ignoring unrecognised workbook columns path=%s headers=%s",
                path,
                list(columns.ignored_headers),
            )
        return AssetWorkbook(path=path, columns=columns, total_rows=total_rows, mapper=self._mapper)


def _iter_sheet_values(path: str) -> Iterator[tuple[int, list[Any]]]:
    """
    Yield ``(row_number, coerced cell values)`` for every sheet row, header included.
    """

    try:
        values_book = load_workbook(path, read_only=True, data_only=True)
    except _UNREADABLE_WORKBOOK_ERRORS as exc:
        raise WorkbookStructureError(f"Unable to read workbook: {exc}") from exc
    try:
        formula_book = load_workbook(path, read_only=True, data_only=False)
    except _UNREADABLE_WORKBOOK_ERRORS as exc:
        values_book.close()
        raise WorkbookStructureError(f"Unable to read workbook: {exc}") from exc

    try:
        value_sheet = values_book.worksheets[0] if values_book.worksheets else None
        formula_sheet = formula_book.worksheets[0] if formula_book.worksheets else None
        if value_sheet is None or formula_sheet is None:
            raise WorkbookStructureError("Workbook contains no worksheets.")

        for row_number, (value_row, formula_row) in enumerate(
            zip(value_sheet.iter_rows(), formula_sheet.iter_rows()),
            start=1,
        ):
            yield row_number, [
                _cell_value(value_cell, formula_cell)
                for value_cell, formula_cell in zip_longest(value_row, formula_row)
            ]
    finally:
        values_book.close()
        formula_book.close()


def _cell_value(value_cell: Any, formula_cell: Any) -> Any:
    """
    Coerce one cell; malformed or unsupported cells become None.
    """

    if value_cell is None:
        return None
    value = value_cell.value
    if value is None or getattr(value_cell, "data_type", None) == "e":
        return None

    is_formula = getattr(formula_cell, "data_type", None) == "f"
    if is_formula and (isinstance(value, bool) or not isinstance(value, (str, int, float, datetime))):
        return None

    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, (int, float, date)):
        return value
    # time / timedelta and anything else openpyxl may hand back
    return None


def _is_blank(values: list[Any]) -> bool:
    return all(value is None for value in values)
