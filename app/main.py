"""FastAPI application entry point.

Product catalog service for the marketplace: product CRUD backed by the
relational store, product images pushed to the remote host over SFTP.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.infra.database import close_db_engine, verify_db_connection
from app.infra.logging import get_logger, setup_logging
from app.services.errors import CatalogError, InfrastructureError, NotFoundError, OwnershipError

# Import routers
from app.api.routes.health import router as health_router
from app.api.routes.products import router as products_router

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup verifies the database connection; shutdown disposes the engine.
    """
    logger.info(
        "Product catalog starting",
        environment=settings.environment,
        version=__version__,
    )

    db_ok = await verify_db_connection()
    if not db_ok:
        logger.warning("Database connection failed - will retry on first request")

    yield

    logger.info("Product catalog shutting down")
    await close_db_engine()
    logger.info("Cleanup complete")


app = FastAPI(
    title="Marketplace Product Catalog",
    description="Product catalog management for producers and consumers",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "dev" else None,
    redoc_url=None,
)

# CORS middleware (mainly for local development)
if settings.environment == "dev":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(health_router)
app.include_router(products_router)


# =============================================================================
# Exception Handlers
# =============================================================================

_STATUS_BY_ERROR: dict[type[CatalogError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    OwnershipError: status.HTTP_403_FORBIDDEN,
    InfrastructureError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_body(exc: Exception, message: str) -> dict[str, object]:
    return {
        "success": False,
        "error": message,
        "error_type": type(exc).__name__,
    }


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Map catalog errors to HTTP statuses, passing the message through."""
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "Catalog request failed",
        error=exc.message,
        error_type=type(exc).__name__,
        path=request.url.path,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=_error_body(exc, exc.message))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(exc, "Internal server error"),
    )
