"""
Shared environment-driven database configuration helpers.
"""

from __future__ import annotations

import os
from pathlib import Path

_ENV_FILES: tuple[str, ...] = (".env", ".env.local")


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files() -> None:
    """
    Load KEY=VALUE pairs from `.env` and `.env.local` in the project root.
    Variables already present in the process environment win.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in _ENV_FILES:
        env_path = project_root / filename
        if not env_path.is_file():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is None:
                continue
            key, value = parsed
            os.environ.setdefault(key, value)


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite bare postgres URLs to the psycopg (v3) driver form SQLAlchemy expects.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def resolve_database_url() -> str:
    """
    Resolve the asset store URL.

    Priority:
    1) DATABASE_URL
    2) LOCAL_DATABASE_URL
    """

    load_env_files()

    for name in ("DATABASE_URL", "LOCAL_DATABASE_URL"):
        value = (os.getenv(name) or "").strip()
        if value:
            return normalize_postgres_url(value)

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL or LOCAL_DATABASE_URL."
    )
