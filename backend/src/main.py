"""Mailroom Backend - Main FastAPI Application

Digital mailroom: scanned mail, action requests, lockers, billing and
referrals behind one access policy.

This module creates and configures the main FastAPI application, including:
- All API routers under /api/v1
- Middleware (request ID correlation, CORS)
- Exception handlers (domain errors, access denials, validation, database)
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from domain.access.policy import DecisionKind
from domain.errors import ErrorKind, MailroomError

# Observability
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router

# Authentication & Authorization
from auth.dependencies import AccessDenied
from auth.router import router as auth_router
from access.router import router as access_router

# Domain Routers
from mail_items.router import router as mail_items_router
from mail_items.router import business_router as business_mail_router
from mail_items.router import operator_router as operator_mail_router
from lockers.router import router as lockers_router
from referrals.router import router as referrals_router
from catalog.router import router as catalog_router
from billing.router import router as billing_router
from audit.router import router as audit_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Mailroom API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    yield

    logger.info("Mailroom API shutting down...")


_docs_enabled = settings.ENVIRONMENT != "production"

app = FastAPI(
    title="Mailroom API",
    description="Digital mailroom: scanning, forwarding, shredding, lockers and billing",
    version="0.1.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(MailroomError)
async def mailroom_exception_handler(request: Request, exc: MailroomError) -> JSONResponse:
    """Render domain errors as {"error": kind, "message": ...}."""
    status_code = ERROR_STATUS[exc.kind]
    if exc.kind == ErrorKind.UPSTREAM:
        logger.error(f"Upstream failure on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind.value} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    """REDIRECT becomes 303 with Location; DENY_NOT_FOUND becomes a bare 404."""
    if exc.decision.kind == DecisionKind.REDIRECT:
        return JSONResponse(
            status_code=status.HTTP_303_SEE_OTHER,
            content=exc.decision.to_dict(),
            headers={"Location": exc.decision.target},
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": ErrorKind.NOT_FOUND.value, "message": "Not found"},
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": ErrorKind.VALIDATION.value,
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Log the full database error, return a generic message."""
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(observability_router)

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(access_router, prefix=API_PREFIX)
app.include_router(mail_items_router, prefix=API_PREFIX)
app.include_router(business_mail_router, prefix=API_PREFIX)
app.include_router(operator_mail_router, prefix=API_PREFIX)
app.include_router(lockers_router, prefix=API_PREFIX)
app.include_router(referrals_router, prefix=API_PREFIX)
app.include_router(catalog_router, prefix=API_PREFIX)
app.include_router(billing_router, prefix=API_PREFIX)
app.include_router(audit_router, prefix=API_PREFIX)


@app.get("/", include_in_schema=False)
def root():
    return {"name": "Mailroom API", "version": "0.1.0"}
