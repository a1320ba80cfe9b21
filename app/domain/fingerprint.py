"""
app/domain/fingerprint.py

Content fingerprints used for idempotent re-imports.

Each field is encoded as ``<length>:<value>`` before joining with ``|``, so a
separator inside a value can never shift a field boundary.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import fields
from typing import Any

from app.domain.asset_row import AssetRow

FINGERPRINT_FIELDS: tuple[str, ...] = ("asset_no", "asset_name", "serial_no")


def _digest(values: Iterable[Any]) -> str:
    parts = []
    for value in values:
        text = "" if value is None else str(value)
        parts.append(f"{len(text)}:{text}")
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def fingerprint_row(row: AssetRow) -> str:
    """
    SHA-256 hex over ``asset_no``, ``asset_name`` and ``serial_no`` in that
    order; absent fields encode as empty strings.
    """

    return _digest(getattr(row, name) for name in FINGERPRINT_FIELDS)


def hash_row(row: AssetRow) -> str:
    """
    SHA-256 hex over every sheet field of the row, row number excluded.
    """

    return _digest(getattr(row, field.name) for field in fields(row) if field.name != "row_number")
