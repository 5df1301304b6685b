from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from kwork_monitor import __version__
from kwork_monitor.logging_utils import configure_logging
from kwork_monitor.scheduler.orchestrator import CollectionOrchestrator


def check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.

    Does NOT auto-migrate: a missing table aborts startup so the operator
    runs ``alembic upgrade head`` first.
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
            "Schema mismatch: %d table(s) absent from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Start the collector on boot; shut it down on exit."""
    log = logging.getLogger(__name__)
    orchestrator: CollectionOrchestrator | None = getattr(application.state, "orchestrator", None)
    if orchestrator is None:
        check_schema()
        log.info("Database schema validated")

        from kwork_monitor.scheduler.jobs import build_orchestrator

        orchestrator = build_orchestrator()
        application.state.orchestrator = orchestrator

    orchestrator.start()
    log.info("Collector started with %d jobs", len(orchestrator.scheduler.get_jobs()))
    try:
        yield
    finally:
        orchestrator.shutdown(wait=True)
        log.info("Collector shut down")


def create_app(*, orchestrator: CollectionOrchestrator | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    When ``orchestrator`` is given it is used as-is; otherwise one is built
    from environment settings during startup.
    """

    configure_logging()

    application = FastAPI(
        title="kwork dashboard monitor",
        version=__version__,
        lifespan=_lifespan,
    )
    application.state.orchestrator = orchestrator

    from kwork_monitor.api.routers import metrics_router

    application.include_router(metrics_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application
