"""FastAPI application for the column mapping service."""

import logging
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import column_mapping
from core.agents.column_mapping.exceptions import ColumnMappingError, InvalidMappingInputError
from core.auth.exceptions import NotAuthenticatedError, NotAuthorizedError
from core.config import get_config

config = get_config()

# Configure logging
logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Column Mapping API",
    description="Suggests canonical fields for the columns of uploaded customer datasets",
    version="1.0.0",
)

# CORS origins can be set via CORS_ORIGINS env var as comma-separated list
cors_origins_str: str = getattr(config, "cors_origins", "")
cors_origins: List[str] = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()] if cors_origins_str else []

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],  # Default to * for development
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-User-Id", "X-User-Email"],
)


# Exception handlers
@app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    """Handle missing caller identity."""
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": str(exc) or "Not authenticated"},
    )


@app.exception_handler(NotAuthorizedError)
async def not_authorized_handler(request: Request, exc: NotAuthorizedError):
    """Handle callers without workspace access."""
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"error": str(exc) or "Not authorized"},
    )


@app.exception_handler(InvalidMappingInputError)
async def invalid_input_handler(request: Request, exc: InvalidMappingInputError):
    """Handle malformed headers or sample rows."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid column mapping request", "details": str(exc)},
    )


@app.exception_handler(ColumnMappingError)
async def column_mapping_error_handler(request: Request, exc: ColumnMappingError):
    """Handle classification failures."""
    logger.error(f"Column mapping failed: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Column mapping analysis failed", "details": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    # ctx may hold exception objects that JSON cannot encode
    serializable_errors = []
    for error in exc.errors():
        serializable_error = {}
        for key, value in error.items():
            if key == "ctx" and isinstance(value, dict):
                serializable_error[key] = {k: str(v) for k, v in value.items()}
            elif isinstance(value, Exception):
                serializable_error[key] = str(value)
            else:
                serializable_error[key] = value
        serializable_errors.append(serializable_error)

    logger.warning(f"Validation error: {serializable_errors}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Invalid request body", "details": serializable_errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Column mapping analysis failed", "details": str(exc) or type(exc).__name__},
    )


# Include routers
app.include_router(column_mapping.router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Column Mapping API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
