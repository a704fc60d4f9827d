# gatekeeper/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gatekeeper.api.dependencies import (
    get_registry,
    get_token_decoder,
    start_audit_queue,
    stop_audit_queue,
)
from gatekeeper.api.middleware import CorrelationIdMiddleware, PrincipalMiddleware
from gatekeeper.api.routers import audit, health, tasks
from gatekeeper.application.exceptions import ApplicationError
from gatekeeper.config.logging import configure_logging
from gatekeeper.config.settings import get_settings
from gatekeeper.domain.exceptions import DomainError, DomainValidationError, NotFoundError
from gatekeeper.infrastructure.database.session import create_schema
from gatekeeper.policy.rules import CROSS_TENANT_MESSAGE
from gatekeeper.security.exceptions import (
    AccessDeniedError,
    TenantIsolationError,
    UnauthenticatedError,
)

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_registry()
    await create_schema()
    await start_audit_queue()
    logger.info("app_started", extra={"environment": settings.environment})
    yield
    await stop_audit_queue()
    logger.info("app_stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> Principal.
app.add_middleware(PrincipalMiddleware, decoder_factory=get_token_decoder)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(UnauthenticatedError)
async def unauthenticated_error_handler(request, exc: UnauthenticatedError):
    return JSONResponse(status_code=401, content={"error": exc.message})


@app.exception_handler(AccessDeniedError)
async def access_denied_error_handler(request, exc: AccessDeniedError):
    return JSONResponse(status_code=403, content={"error": exc.message})


@app.exception_handler(TenantIsolationError)
async def tenant_isolation_error_handler(request, exc: TenantIsolationError):
    # tenant ids stay in the log and audit trail, not the response
    logger.warning("tenant_isolation_violation", extra={"error": exc.message})
    return JSONResponse(status_code=403, content={"error": CROSS_TENANT_MESSAGE})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": exc.message})


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request, exc: DomainValidationError):
    return JSONResponse(status_code=422, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


# Routers: /health, /metrics, /tasks, /audit
app.include_router(health.router)
app.include_router(tasks.router, prefix="/tasks")
app.include_router(audit.router, prefix="/audit")
