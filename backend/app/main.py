"""
EduRegister - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Turns every domain error into a JSON response, so no action ever
   ends in an unhandled fault
5. Registers the student routes and the health check

Layout:
- routes/: API endpoint handlers
- models/: Pydantic student models and the SQLAlchemy key-value table
- services/: validation, store, reconciliation, search, CSV export
- errors.py: domain exceptions
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.errors import RegistrationError, StorageUnavailable
from app.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from app.routes import students
from app.database import DATABASE_URL, create_tables

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")

if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite — creating tables directly")
    create_tables()

app = FastAPI(
    title="EduRegister",
    description=(
        "Student registration manager: validates and stores student records, "
        "keeps roll numbers and emails unique, and lists, searches, edits, "
        "deletes and exports them as CSV."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# In production, restrict origins to the actual frontend domain.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# Generates a UUID per request, stores it in the logging context
# variable, returns it as X-Request-ID and logs start/end latency.
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = generate_request_id()
    request_id_var.set(req_id)

    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
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


# ──────────────────────────────────────────────────────────────
# Error handlers
#
# Every response body has the same shape:
#   {"code": ..., "message": ..., "errors": [{"field", "message"}]}
# ──────────────────────────────────────────────────────────────
@app.exception_handler(RegistrationError)
async def registration_error_handler(request: Request, exc: RegistrationError):
    level = "ERROR" if isinstance(exc, StorageUnavailable) else "INFO"
    log_with_context(logger, level,
        f"{request.method} {request.url.path} failed: {exc.message}",
        context={"code": exc.code},
        extra_data={"errors": exc.errors})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": str(err["loc"][-1]) if err.get("loc") else "body", "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    log_with_context(logger, "INFO", "Malformed request body", extra_data={"errors": errors})
    return JSONResponse(status_code=422, content={
        "code": "MALFORMED_REQUEST",
        "message": "Please fix the errors before submitting.",
        "errors": errors,
    })


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log_with_context(logger, "ERROR",
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True)
    return JSONResponse(status_code=500, content={
        "code": "INTERNAL_ERROR",
        "message": "Something went wrong.",
        "errors": [],
    })


app.include_router(students.router, tags=["Students"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks and monitoring."""
    return {"status": "healthy", "service": "eduregister-backend", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "EduRegister",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "list": "GET /api/students?search=",
            "count": "GET /api/students/count",
            "form_defaults": "GET /api/students/form-defaults",
            "export": "GET /api/students/export",
            "detail": "GET /api/students/{id}",
            "register": "POST /api/students",
            "update": "PUT /api/students/{id}",
            "delete": "DELETE /api/students/{id}",
            "clear": "DELETE /api/students"
        }
    }
