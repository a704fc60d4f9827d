"""FailureClassifier tests: exception -> audit result."""

from gatekeeper.application.exceptions import ApplicationError
from gatekeeper.domain.exceptions import DomainError, DomainValidationError, NotFoundError
from gatekeeper.governance.audit_models import AuditResult
from gatekeeper.governance.exceptions import AuditWriteError
from gatekeeper.observability.failure_classifier import FailureClassifier
from gatekeeper.security.exceptions import AccessDeniedError, TenantIsolationError, UnauthenticatedError


def test_business_errors_are_failures():
    assert FailureClassifier.classify(DomainValidationError("bad")) is AuditResult.FAILURE
    assert FailureClassifier.classify(NotFoundError("gone")) is AuditResult.FAILURE
    assert FailureClassifier.classify(DomainError("x")) is AuditResult.FAILURE


def test_security_errors_are_denials():
    assert FailureClassifier.classify(AccessDeniedError("x")) is AuditResult.DENIED
    assert FailureClassifier.classify(UnauthenticatedError("x")) is AuditResult.DENIED
    assert FailureClassifier.classify(TenantIsolationError("x")) is AuditResult.DENIED


def test_everything_else_is_error():
    """Unknown -> ERROR."""
    assert FailureClassifier.classify(ApplicationError("x")) is AuditResult.ERROR
    assert FailureClassifier.classify(AuditWriteError("x")) is AuditResult.ERROR
    assert FailureClassifier.classify(ValueError("x")) is AuditResult.ERROR
