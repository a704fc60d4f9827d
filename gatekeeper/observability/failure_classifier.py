"""Maps exceptions raised by a gated operation to the audit result taxonomy."""

from gatekeeper.domain.exceptions import DomainError
from gatekeeper.governance.audit_models import AuditResult
from gatekeeper.security.exceptions import (
    AccessDeniedError,
    TenantIsolationError,
    UnauthenticatedError,
)


class FailureClassifier:
    """
    Classifies exceptions into AuditResult. Business errors (validation, not
    found) are FAILURE; authorization errors raised downstream are DENIED;
    everything else, including infrastructure faults, is ERROR.
    """

    @staticmethod
    def classify(exception: BaseException) -> AuditResult:
        """Map exception to AuditResult. Unknown -> ERROR."""
        if isinstance(exception, (AccessDeniedError, UnauthenticatedError, TenantIsolationError)):
            return AuditResult.DENIED
        if isinstance(exception, DomainError):
            return AuditResult.FAILURE
        return AuditResult.ERROR
