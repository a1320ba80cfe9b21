"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_APP_MODES = {"cloud"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _require_app_mode() -> str:
    """
    Read and validate APP_MODE from the environment.

    APP_MODE must be explicitly set to 'cloud'. A missing or unknown value
    raises RuntimeError.
    """

    _load_env_once()
    raw = os.getenv("APP_MODE")
    if raw is None:
        raise RuntimeError("APP_MODE must be explicitly set to 'cloud'.")
    mode = raw.strip().lower()
    if mode not in _ALLOWED_APP_MODES:
        raise RuntimeError(
            f"APP_MODE '{raw.strip()}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_APP_MODES)}."
        )
    return mode


@dataclass(frozen=True)
class AppSettings:
    """
    Top-level application settings.
    """

    mode: str
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached application settings.

    Raises RuntimeError if APP_MODE is missing or not set to 'cloud'.
    """

    return AppSettings(
        mode=_require_app_mode(),
        log_level=_get_str_env("LOG_LEVEL", "INFO").upper(),
    )


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class AssetImportSettings:
    """
    Runtime settings for spreadsheet asset imports.
    """

    max_upload_bytes: int = 10 * 1024 * 1024
    max_workers: int = 4
    progress_interval: int = 10
    task_ttl_seconds: int = 86400
    purge_interval_seconds: int = 600
    max_recorded_errors: int = 1000
    default_operator: str = "EXCEL_IMPORT"
    log_row_errors: bool = True


@lru_cache(maxsize=1)
def get_asset_import_settings() -> AssetImportSettings:
    """
    Return cached asset import settings from environment variables.
    """

    return AssetImportSettings(
        max_upload_bytes=max(1, _get_int_env("ASSET_IMPORT_MAX_UPLOAD_BYTES", 10 * 1024 * 1024)),
        max_workers=max(1, _get_int_env("ASSET_IMPORT_MAX_WORKERS", 4)),
        progress_interval=max(1, _get_int_env("ASSET_IMPORT_PROGRESS_INTERVAL", 10)),
        task_ttl_seconds=max(1, _get_int_env("ASSET_IMPORT_TASK_TTL_SECONDS", 86400)),
        purge_interval_seconds=max(1, _get_int_env("ASSET_IMPORT_PURGE_INTERVAL_SECONDS", 600)),
        max_recorded_errors=max(1, _get_int_env("ASSET_IMPORT_MAX_RECORDED_ERRORS", 1000)),
        default_operator=_get_str_env("ASSET_IMPORT_DEFAULT_OPERATOR", "EXCEL_IMPORT"),
        log_row_errors=_get_bool_env("ASSET_IMPORT_LOG_ROW_ERRORS", True),
    )
