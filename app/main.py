from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    database: bool
    cache: bool


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A database URL must be configured.
    - CACHE_BACKEND must be ``redis`` or ``memory``.
    - REDIS_URL is required when CACHE_BACKEND=redis.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    # --- Cache backend --------------------------------------------------
    backend = os.getenv("CACHE_BACKEND", "redis").strip().lower()
    if backend not in {"redis", "memory"}:
        errors.append(
            f"CACHE_BACKEND='{backend}' is not valid. Allowed values: ['memory', 'redis']."
        )
    elif backend == "redis" and not os.getenv("REDIS_URL", "").strip():
        errors.append(
            "REDIS_URL is not set but CACHE_BACKEND is redis. "
            "Set REDIS_URL or use CACHE_BACKEND=memory for a single process."
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

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from db.session import ping_database

    if not ping_database():
        raise RuntimeError("Database unavailable.")


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    If any are missing, log a critical error and abort startup so that
    the operator is forced to run migrations before serving traffic.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def _check_cache() -> None:
    """Log (but tolerate) an unreachable cache; requests fall through to the store."""
    from app.cache.snapshot_cache import get_snapshot_cache

    if get_snapshot_cache().ping():
        logging.getLogger(__name__).info("Cache connectivity confirmed")
    else:
        logging.getLogger(__name__).warning("Cache unreachable; serving uncached results")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, start the scheduler on boot; shut it down on exit."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    _check_cache()

    from app.scheduler.jobs import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    logging.getLogger(__name__).info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        logging.getLogger(__name__).info("Scheduler shut down")


def create_app(*, validate_env: bool = True, lifespan: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build the app with ``validate_env=False, lifespan=False`` and
    override the store and cache dependencies.
    """

    if validate_env:
        _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Finbench Stats API",
        version="1.0.0",
        lifespan=_lifespan if lifespan else None,
    )

    from app.api.routers import stats_router

    application.include_router(stats_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        from app.cache.snapshot_cache import get_snapshot_cache
        from db.session import ping_database

        database_ok = ping_database()
        cache_ok = get_snapshot_cache().ping()
        return HealthResponse(
            status="ok" if database_ok and cache_ok else "degraded",
            database=database_ok,
            cache=cache_ok,
        )

    return application


app = create_app()
