"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from launchpad_tx.api.admin import router as admin_router
from launchpad_tx.api.transactions import router as transactions_router
from launchpad_tx.app_logging import configure_logging
from launchpad_tx.containers import AppContainer
from launchpad_tx.domain.errors import (
    InvalidRequestError,
    SessionNotFoundError,
    StorageError,
    TransactionError,
    TransactionNotMinedError,
    VerificationFailedError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(transactions_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body"},
        )

    @app.exception_handler(TransactionError)
    async def transaction_error(request: Request, exc: TransactionError) -> JSONResponse:
        status_code, message = _error_response(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"error": message})

    return app


def _error_response(exc: TransactionError) -> tuple[int, str]:
    if isinstance(exc, SessionNotFoundError):
        return status.HTTP_404_NOT_FOUND, "Session not found"
    if isinstance(exc, InvalidRequestError):
        return status.HTTP_400_BAD_REQUEST, str(exc)
    if isinstance(exc, TransactionNotMinedError):
        return status.HTTP_409_CONFLICT, str(exc)
    if isinstance(exc, VerificationFailedError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to verify transaction"
    if isinstance(exc, StorageError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update session"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error"
