"""Main entrypoint and application factory for the Contracts Ledger API.

This module builds the FastAPI application, configures logging, wires the
database engine into ``app.state``, registers the error handler for ledger
failures, and exposes the Scalar API reference endpoint. It also includes the
main entrypoint for running the app with Uvicorn.
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference

from app.api.routes import router
from app.core.db import get_engine, get_session_factory, init_database
from app.core.errors import LedgerError
from app.core.settings import Settings, get_settings
from app.core.utils import ensure_dir, get_logger


# --- Logging Setup ---
LOGGER_NAMES = (
    "contracts-ledger",
    "contracts-ledger.api",
    "contracts-ledger.payments",
    "contracts-ledger.deposits",
    "contracts-ledger.transfer",
)


def setup_logging(settings: Settings) -> None:
    """Configure logging to file and console, and ensure the log directory exists."""
    ensure_dir(settings.log_dir)
    log_path = os.path.abspath(Path(settings.log_dir) / "ledger.log")
    file_handler = None
    for name in LOGGER_NAMES:
        logger = get_logger(name)
        logger.setLevel(settings.log_level.upper())
        # Add file handler for persistent logs (not colorized), replacing one that points elsewhere
        for handler in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
            if handler.baseFilename != log_path:
                logger.removeHandler(handler)
                handler.close()
        if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            if file_handler is None:
                file_handler = logging.FileHandler(log_path)
                file_handler.setLevel(logging.INFO)
                file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
            logger.addHandler(file_handler)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler: create the ledger tables on startup, release the engine on shutdown."""
    logger = get_logger("contracts-ledger")
    init_database(app.state.engine)
    logger.info("Ledger tables ready")
    yield
    app.state.engine.dispose()


async def ledger_error_handler(_request: Request, exc: LedgerError) -> JSONResponse:
    """Render a ledger failure as ``{"detail": message}`` with its status code."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application around its own engine and session factory."""
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        title="Contracts Ledger API",
        description="""
    The Contracts Ledger API lets clients and contractors read their contracts and jobs, pay for jobs, and deposit money.

    Every endpoint except `/health` and the docs requires a `profile_id` header identifying the caller.

    **Endpoints:**
    - `GET /contracts/{{id}}`: A contract of the caller.
    - `GET /contracts`: The caller's non-terminated contracts.
    - `GET /jobs/unpaid`: Unpaid jobs on the caller's in-progress contracts.
    - `POST /jobs/{{job_id}}/pay`: Pay a job from the client's balance to the contractor's.
    - `POST /balances/deposit/{{user_id}}`: Deposit into the caller's own balance.
    - `GET /profiles/me`: The caller's profile and balance.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
        version="1.0.0",
    )
    engine = get_engine(settings.database_url, echo=settings.sql_echo)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = get_session_factory(engine)
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.include_router(router)

    @app.get("/scalar", include_in_schema=False)
    async def scalar_docs() -> JSONResponse:
        """Return Scalar API reference."""
        return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
