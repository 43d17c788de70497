"""
FastAPI application entry point for the Patient Records API.

This module configures and creates the FastAPI application with:
- Structured JSON Logging: Request/response logging with request ids
- Dependency Injection: Services and repositories injected via Depends()
- Exception Handling: Consistent {"error", "code"} bodies via setup_exception_handlers()
- CORS Middleware: The browser client is served from another origin
- Lifespan Management: Record store and blob store opened at startup, closed at shutdown
- Metrics Collection: In-memory metrics for Prometheus scraping

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack (order matters!)                          │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py     - /health, /ready, /metrics endpoints  │
    │    ├── patients.py   - Patient CRUD                         │
    │    └── images.py     - Local blob serving (local backend)   │
    ├─────────────────────────────────────────────────────────────┤
    │  PatientService           ← Injected via Depends()          │
    ├─────────────────────────────────────────────────────────────┤
    │  PatientRepository (SQLite)  │  BlobStore (S3 / local dir)  │
    │        ↑ app.state.database  │    ↑ app.state.blob_store    │
    └─────────────────────────────────────────────────────────────┘
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from patient_svc.api.routers import health_router, images_router, patients_router
from patient_svc.core.config import API_HOST, API_PORT, API_RELOAD, settings
from patient_svc.core.exceptions import setup_exception_handlers
from patient_svc.core.logging_config import setup_logging
from patient_svc.core.middleware import LoggingMiddleware
from patient_svc.repositories import Database
from patient_svc.storage import create_blob_store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application.

    Startup:
        - Configures structured JSON logging
        - Opens the record store (creates the schema if needed)
        - Builds the configured blob store; a missing bucket aborts startup

    Shutdown:
        - Closes the blob store client and the record store handle
    """
    # =========================================================================
    # STARTUP
    # =========================================================================

    # Configure structured logging FIRST (before any other logging)
    setup_logging(
        level=settings.log_level,
        json_format=settings.log_format.lower() == "json",
    )

    logger = logging.getLogger(__name__)
    logger.info("Starting Patient Records API...")

    database = Database(
        db_path=settings.database_path,
        busy_timeout=settings.patient_svc_db_timeout,
    )
    logger.info("Database initialized", extra={"db_path": database.db_path})

    try:
        blob_store = create_blob_store(settings)
    except ValueError as e:
        logger.critical(f"Blob store misconfigured: {e}")
        database.close()
        raise

    app.state.database = database
    app.state.blob_store = blob_store
    logger.info(
        "Blob store initialized",
        extra={
            "backend": settings.patient_svc_blob_backend,
            "image_base_url": settings.image_base_url,
        }
    )

    yield  # Application runs here

    # =========================================================================
    # SHUTDOWN
    # =========================================================================
    logger.info("Patient Records API shutting down...")
    blob_store.close()
    database.close()


# Create FastAPI app with lifespan context
app = FastAPI(
    title="Patient Records API",
    description="REST API for patient records. Create, list, update and delete patients "
                "with an optional image kept in an S3-compatible object store.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
setup_exception_handlers(app)

# =============================================================================
# MIDDLEWARE
# =============================================================================
# Middleware is executed in REVERSE order of registration.

# 1. CORS Middleware (innermost - closest to routes)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Logging Middleware (outermost - captures all requests)
app.add_middleware(LoggingMiddleware)

# =============================================================================
# ROUTERS
# =============================================================================
app.include_router(health_router)
app.include_router(patients_router)

# With the S3 backend image URLs point at the bucket itself
if settings.patient_svc_blob_backend == "local":
    app.include_router(images_router)


if __name__ == "__main__":
    uvicorn.run(
        "patient_svc.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
