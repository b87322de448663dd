"""
Main entrypoint for the Biblioteca API.

This module assembles the FastAPI application, sets up logging,
registers the lending error handler and includes versioned routers.
``create_app`` builds the app, which is then instantiated at module
import time as ``app``, so it can be served with::

    uvicorn biblioteca_api.app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.errors import LendingError, LendingErrorKind
from .core.logging_config import setup_logging


LENDING_ERROR_STATUS = {
    LendingErrorKind.BOOK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LendingErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LendingErrorKind.QUOTA_EXCEEDED: status.HTTP_409_CONFLICT,
    LendingErrorKind.ALREADY_BORROWED: status.HTTP_409_CONFLICT,
    LendingErrorKind.ALREADY_RETURNED: status.HTTP_409_CONFLICT,
    LendingErrorKind.NOT_BORROWED_BY_USER: status.HTTP_409_CONFLICT,
    LendingErrorKind.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def lending_error_handler(request: Request, exc: LendingError) -> JSONResponse:
    """Render a ``LendingError`` as ``{"code", "message", ...}``."""
    logging.getLogger(__name__).debug("%s %s -> %s", request.method, request.url.path, exc.kind.value)
    return JSONResponse(status_code=LENDING_ERROR_STATUS[exc.kind], content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Creates the database file if needed and applies pending migrations.
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Logging is configured before anything else so that the routers and
    services can log during start-up.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.add_exception_handler(LendingError, lending_error_handler)
    app.include_router(v1_router, prefix="/api/v1")
    return app


app = create_app()
