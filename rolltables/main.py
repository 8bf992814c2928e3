import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rolltables import __version__
from rolltables.api import health_router, tables_router
from rolltables.config import settings
from rolltables.logging_config import cleanup_logs, setup_logging
from rolltables.models.failure import ApiResponse, KnownError, RefusalError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    cleanup_logs()
    setup_logging()
    logger.info("Starting backend...")
    yield
    logger.info("Stopping backend...")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(tables_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # The desktop shell serves the UI from its own origin
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _explained_response(exc: KnownError | RefusalError) -> JSONResponse:
    logger.error("%s: %s (%s)", exc.kind.value, exc.message, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Log a known failure and return it in the failure envelope."""
    return _explained_response(exc)


@app.exception_handler(RefusalError)
async def refusal_error_handler(_request: Request, exc: RefusalError) -> JSONResponse:
    """Log a refusal and return it in the failure envelope."""
    return _explained_response(exc)


@app.exception_handler(Exception)
async def unexplained_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Anything not classified above is reported as an unknown failure."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content=ApiResponse.unknown_failure(detail=type(exc).__name__).model_dump(mode="json"),
    )
