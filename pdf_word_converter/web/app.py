"""FastAPI application factory for the PDF to Word conversion API.

This module provides the FastAPI application that accepts PDF uploads,
returns placeholder conversions and serves them for download.

Usage:
    # Run directly with uvicorn
    uvicorn pdf_word_converter.web.app:create_app --factory --reload

    # Or use the create_app factory
    from pdf_word_converter.web.app import create_app
    app = create_app()
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pdf_word_converter.config import (
    API_PREFIX,
    CONVERSION_CONFIG,
    SERVER_HOST,
    SERVER_PORT,
)
from pdf_word_converter.exceptions import (
    FileNotFoundInStorageError,
    UploadValidationError,
)
from pdf_word_converter.services.conversion_service import (
    BatchConverter,
    UploadValidator,
)
from pdf_word_converter.services.temp_storage_service import (
    TempStorageService,
    run_periodic_cleanup,
)
from pdf_word_converter.web.schemas import HealthResponse

logger = logging.getLogger(__name__)

HEALTH_MESSAGE = "PDF to Word Converter API is running"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle.

    Startup:
    - Log storage locations and usage
    - Start the periodic stale file sweep

    Shutdown:
    - Stop the sweep
    """
    # Startup
    logger.info("Starting PDF to Word Converter API...")

    storage: TempStorageService = app.state.storage
    logger.info(f"Upload directory: {storage.upload_dir}")
    logger.info(f"Converted files directory: {storage.converted_dir}")
    logger.info(f"Temp storage stats: {storage.get_storage_stats()}")

    sweep_task = asyncio.create_task(
        run_periodic_cleanup(
            storage,
            interval_seconds=app.state.cleanup_interval_seconds,
            max_age_hours=CONVERSION_CONFIG["max_file_age_hours"],
        )
    )

    yield

    # Shutdown
    logger.info("Shutting down PDF to Word Converter API...")
    sweep_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweep_task


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto ``{"error": ...}`` responses."""

    @app.exception_handler(UploadValidationError)
    async def upload_validation_handler(request: Request, exc: UploadValidationError):
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Malformed request"})

    @app.exception_handler(FileNotFoundInStorageError)
    async def not_found_handler(request: Request, exc: FileNotFoundInStorageError):
        return JSONResponse(status_code=404, content={"error": "File not found"})

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    title: str = "PDF to Word Converter API",
    version: str = "1.0.0",
    debug: bool = False,
    storage: Optional[TempStorageService] = None,
    batch_converter: Optional[BatchConverter] = None,
    validator: Optional[UploadValidator] = None,
    cleanup_interval_seconds: Optional[float] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        title: API title for documentation
        version: API version
        debug: Enable debug mode
        storage: Temp storage to use (defaults to configured directories)
        batch_converter: Batch converter to use (defaults to the placeholder
            converter over ``storage``)
        validator: Upload validator (defaults to configured limits)
        cleanup_interval_seconds: Stale file sweep interval

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        version=version,
        description="API for converting uploaded PDF files to Word documents",
        debug=debug,
        lifespan=lifespan,
    )

    storage = storage or TempStorageService()
    app.state.storage = storage
    app.state.batch_converter = batch_converter or BatchConverter(storage)
    app.state.validator = validator or UploadValidator()
    app.state.cleanup_interval_seconds = (
        cleanup_interval_seconds
        if cleanup_interval_seconds is not None
        else CONVERSION_CONFIG["cleanup_interval_seconds"]
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Import and include routers
    from pdf_word_converter.web.router_convert import router as convert_router

    app.include_router(convert_router, prefix=API_PREFIX, tags=["convert"])

    # Health check endpoint
    @app.get(f"{API_PREFIX}/health", response_model=HealthResponse, tags=["system"])
    async def health_check():
        """Check API health status."""
        return HealthResponse(status="OK", message=HEALTH_MESSAGE)

    return app


def main():
    import uvicorn

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    logger.info(f"API endpoint: http://localhost:{SERVER_PORT}{API_PREFIX}")
    uvicorn.run(create_app(), host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    main()
