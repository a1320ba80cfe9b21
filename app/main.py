from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- APP_MODE -------------------------------------------------------
    app_mode = os.getenv("APP_MODE", "").strip().lower()
    if not app_mode:
        errors.append(
            "APP_MODE is not set. It must be explicitly set to 'cloud'."
        )
    elif app_mode != "cloud":
        errors.append(
            f"APP_MODE='{app_mode}' is not valid. Allowed values: ['cloud']."
        )

    # --- Database URL ---------------------------------------------------
    database_url = os.getenv("DATABASE_URL", "").strip()
    local_database_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
    if not database_url and not local_database_url:
        errors.append(
            "No database URL configured. Set DATABASE_URL or LOCAL_DATABASE_URL."
        )

    if errors:
        raise RuntimeError(
            "Startup validation failed. Missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    from app.config import get_app_settings

    log_level = get_app_settings().log_level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    Missing tables abort startup; migrations are never applied automatically.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, start the scheduler on boot; stop it and the import pool on exit."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")

    from app.scheduler.jobs import build_scheduler
    from app.services.import_orchestrator_service import get_import_executor

    scheduler = build_scheduler()
    scheduler.start()
    logging.getLogger(__name__).info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        logging.getLogger(__name__).info("Scheduler shut down")
        get_import_executor().shutdown(wait=True)
        logging.getLogger(__name__).info("Import executor shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Asset Import API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import asset_import_router

    application.include_router(asset_import_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
