"""FastAPI application for the shared-liquidity quote service.

Read-only: quotes, safe balance reads and snapshot export. State changes go
through the ledger and engine directly, never over HTTP.
"""

import logging

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from aqua import __version__
from aqua.api.endpoints import router
from aqua.config import DEFAULT_CONFIG
from aqua.errors import (
    AquaError,
    AuthorizationError,
    EconomicBoundError,
    LedgerError,
    SettlementError,
    SolverError,
)

logger = structlog.get_logger()

app = FastAPI(
    title="Aqua StableSwap",
    description="Quotes and balance reads over the shared-liquidity ledger",
    version=__version__,
)


def status_for(error: AquaError) -> int:
    """HTTP status for an error category."""
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, (LedgerError, SettlementError)):
        return 409
    if isinstance(error, (EconomicBoundError, SolverError)):
        return 422
    return 400


@app.exception_handler(AquaError)
async def aqua_error_handler(request: Request, exc: AquaError) -> JSONResponse:
    """Map domain errors to JSON error responses."""
    status_code = status_for(exc)
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def configure_logging(level: str) -> None:
    """Install the structlog processor chain at the given level name."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def run() -> None:
    """Run the API server using DEFAULT_CONFIG."""
    configure_logging(DEFAULT_CONFIG.log_level)
    uvicorn.run(
        "aqua.api.main:app",
        host=DEFAULT_CONFIG.host,
        port=DEFAULT_CONFIG.port,
        reload=DEFAULT_CONFIG.debug,
    )


if __name__ == "__main__":
    run()
