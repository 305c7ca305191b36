"""
FastAPI application entry point.

This is the main application that ties together all components:
- API routes for PAN, OCR, GST and Aadhaar verification
- Transaction audit log lifecycle
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kycgate import __version__
from kycgate.api import audit
from kycgate.api.dependencies import close_kyc_service, get_kyc_service
from kycgate.api.routes import aadhaar, gst, health, ocr, pan, transactions
from kycgate.config import get_settings
from kycgate.domain.errors import (
    ConfigurationMissingError,
    KycGatewayError,
    MalformedInputError,
    ProviderRejectedError,
)
from kycgate.infrastructure.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds provider chains up front so a bad chain configuration fails
    startup, and opens/closes the audit database.
    """
    settings = get_settings()

    logger.info(f"Starting KYC gateway v{__version__}")
    logger.info(f"Debug mode: {settings.debug}")

    service = get_kyc_service()
    for provider_id, configured in service.provider_status().items():
        logger.info(f"Provider {provider_id}: {'configured' if configured else 'not configured'}")

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        # Audit log is best-effort; keep serving

    yield  # Application runs here

    logger.info("Shutting down KYC gateway")
    await close_kyc_service()
    await close_db()


def _error_response(status_code: int, exc: KycGatewayError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": exc.message,
            "data": None,
            "error": exc.message,
            "provider": exc.provider_id,
        },
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = get_settings()

    app = FastAPI(
        title="KYC Gateway API",
        description=(
            "Identity and document verification with ordered provider fallback.\n\n"
            "PAN verification, PAN/cheque OCR, GST lookup and Aadhaar OTP."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    audit.install(app)

    # Register routers
    app.include_router(health.router)
    app.include_router(pan.router)
    app.include_router(ocr.router)
    app.include_router(gst.router)
    app.include_router(aadhaar.router)
    app.include_router(transactions.router)

    @app.exception_handler(MalformedInputError)
    async def malformed_input_handler(request: Request, exc: MalformedInputError):
        logger.info(f"Rejected request to {request.url.path}: {exc.message}")
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(ProviderRejectedError)
    async def provider_rejected_handler(request: Request, exc: ProviderRejectedError):
        return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)

    @app.exception_handler(ConfigurationMissingError)
    async def configuration_missing_handler(request: Request, exc: ConfigurationMissingError):
        logger.error(f"{request.url.path}: {exc.message}")
        return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)

    @app.exception_handler(KycGatewayError)
    async def gateway_error_handler(request: Request, exc: KycGatewayError):
        # Transport and token failures from direct (non-chained) provider calls
        logger.error(f"{request.url.path}: {exc.message}")
        return _error_response(status.HTTP_502_BAD_GATEWAY, exc)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        detail = str(exc) if settings.debug else "An internal error occurred"

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal Server Error",
                "error": detail,
            },
        )

    return app


# Create the application instance
app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kycgate.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
