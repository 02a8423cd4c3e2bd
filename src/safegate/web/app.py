"""FastAPI application for the human approval decision interface."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from safegate import __version__
from safegate.approval.errors import (
    ApprovalError,
    ApprovalExpiredError,
    ApprovalNotFoundError,
    InvalidApprovalStateError,
    NotApprovedError,
)
from safegate.approval.sweeper import ExpirySweeper
from safegate.approval.workflow import ApprovalWorkflow
from safegate.config import Settings, get_settings
from safegate.logging import get_logger
from safegate.web.routes import router

logger = get_logger("web.app")

# Most specific first; ApprovalError catches anything unmapped
ERROR_STATUS_CODES: list[tuple[type[ApprovalError], int]] = [
    (ApprovalNotFoundError, 404),
    (InvalidApprovalStateError, 409),
    (NotApprovedError, 409),
    (ApprovalExpiredError, 410),
    (ApprovalError, 400),
]


def status_code_for(exc: ApprovalError) -> int:
    """Map an approval error to an HTTP status code."""
    for exc_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 400


async def approval_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render approval errors as JSON with the request id."""
    if not isinstance(exc, ApprovalError):
        raise exc
    code = status_code_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {code}: {exc}")
    return JSONResponse(
        status_code=code,
        content={"detail": str(exc), "error": type(exc).__name__, "request_id": exc.request_id},
    )


def create_app(
    workflow: ApprovalWorkflow | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        workflow: Workflow to serve (defaults to one built from settings)
        settings: Application settings (defaults to get_settings())

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()
    if workflow is None:
        workflow = ApprovalWorkflow.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper: ExpirySweeper | None = None
        if settings.approval.sweep_enabled:
            sweeper = ExpirySweeper(
                workflow.registry,
                interval_seconds=settings.approval.sweep_interval_seconds,
            )
            sweeper.start()
        app.state.sweeper = sweeper
        try:
            yield
        finally:
            if sweeper is not None:
                await sweeper.stop()

    app = FastAPI(
        title="SAFE Gate",
        description="Human approval interface for high-risk counterparty actions",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.workflow = workflow
    app.state.sweeper = None

    app.add_exception_handler(ApprovalError, approval_error_handler)
    app.include_router(router)

    return app
