"""
Student Records - FastAPI Application Entry Point.

This module:
1. Sets up structured JSON logging
2. Creates the key/value table and the application's record store
3. Implements request ID middleware (X-Request-ID header)
4. Registers the student routes
5. Provides health check endpoint

Layout:
- routes/: API endpoint handlers (presentation layer)
- services/: record store, field validator, form session
- storage/: persistence slots (database, file, memory)
- models/: ORM key/value table and pydantic record models
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.logging_config import (
    setup_logging, get_logger, log_with_context,
    begin_request
)
from app.routes import students
from app.database import create_tables
from app.services.record_store import RecordStore
from app.storage.db_slot import DatabaseSlot

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")


def create_app(store: RecordStore = None) -> FastAPI:
    """
    Build the application around a record store.

    Without a store, one backed by the kv_store database table is created
    and loaded.
    """
    if store is None:
        create_tables()
        store = RecordStore(DatabaseSlot())
        store.load()

    application = FastAPI(
        title="Student Records",
        description=(
            "Register, edit and delete student records. Every field is validated "
            "and student ID, email and contact number are unique across records."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    # The store lives on the app; routes reach it through get_store
    application.state.store = store

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"]
    )

    @application.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Tag the request with a UUID, log start and completion with latency."""
        req_id = begin_request()

        start_time = time.time()

        log_with_context(logger, "INFO",
            f"Request started: {request.method} {request.url.path}",
            context={"request_id": req_id},
            extra_data={
                "ip": request.client.host if request.client else "unknown",
                "user_agent": request.headers.get("user-agent", ""),
            })

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Request-ID"] = req_id

        log_with_context(logger, "INFO",
            f"Request completed: {request.method} {request.url.path} → {response.status_code}",
            context={"request_id": req_id},
            extra_data={
                "duration_ms": round(duration_ms, 2),
                "status_code": response.status_code
            })

        return response

    application.include_router(students.router, tags=["Students"])

    @application.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint for Docker health checks and monitoring."""
        return {
            "status": "healthy",
            "service": "student-records",
            "version": "1.0.0",
            "records": len(application.state.store),
        }

    @application.get("/", tags=["Root"])
    def root():
        """Root endpoint with API information."""
        return {
            "service": "Student Records",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "list": "GET /api/students",
                "detail": "GET /api/students/{id}",
                "create": "POST /api/students",
                "update": "PUT /api/students/{id}",
                "delete": "DELETE /api/students/{id}",
                "validate": "POST /api/students/validate",
                "import": "POST /api/students/import"
            }
        }

    return application
