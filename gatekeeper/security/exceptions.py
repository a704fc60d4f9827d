"""Security-layer exceptions. Typed, no HTTP."""

from typing import Any, Optional


class SecurityError(Exception):
    """Base for all security-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnauthenticatedError(SecurityError):
    """Raised when no authenticated principal is present for a gated operation."""


class AccessDeniedError(SecurityError):
    """
    Raised when a policy denies an operation. message is already sanitized
    for the client; verdict keeps the internal detail for audit and logs.
    """

    def __init__(self, message: str, verdict: Optional[Any] = None) -> None:
        super().__init__(message)
        self.verdict = verdict


class TenantIsolationError(SecurityError):
    """Raised when resource tenant does not match request tenant (cross-tenant access)."""


class SigningError(SecurityError):
    """Raised when audit signing is misconfigured (e.g. missing key)."""
