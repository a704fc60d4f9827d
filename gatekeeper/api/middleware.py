"""API middleware: correlation ID and principal extraction."""

import re
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from gatekeeper.core.context import actor_id_ctx, correlation_id_ctx, tenant_id_ctx
from gatekeeper.security.tokens import TokenDecoder

CORRELATION_HEADER = "X-Correlation-ID"
AUTHORIZATION_HEADER = "Authorization"

# Inbound ids are kept only when short and plain; anything else is replaced.
MAX_CORRELATION_ID_LENGTH = 64
_CORRELATION_ID_RE = re.compile(rf"[A-Za-z0-9._:-]{{1,{MAX_CORRELATION_ID_LENGTH}}}")


def accept_correlation_id(value: str | None) -> str:
    """Return value if it is a usable correlation id, else a fresh UUID."""
    if value and _CORRELATION_ID_RE.fullmatch(value):
        return value
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = accept_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class PrincipalMiddleware(BaseHTTPMiddleware):
    """
    Decode the bearer token into request.state.principal (None if absent or
    invalid) and expose tenant/actor to the logging context. Never rejects:
    whether a principal is required is the AccessGate's decision.
    """

    def __init__(self, app, decoder_factory: Callable[[], TokenDecoder]) -> None:
        super().__init__(app)
        self._decoder_factory = decoder_factory

    async def dispatch(self, request: Request, call_next) -> Response:
        principal = self._decoder_factory().principal_from_header(
            request.headers.get(AUTHORIZATION_HEADER)
        )
        request.state.principal = principal
        tenant_id_ctx.set(principal.tenant_id if principal else None)
        actor_id_ctx.set(principal.id if principal else None)
        return await call_next(request)
