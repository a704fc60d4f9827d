"""Single enforcement point: maps verdicts to protocol-level outcomes."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gatekeeper.policy.engine import PolicyEngine
from gatekeeper.policy.models import RequestContext, Verdict, VerdictKind
from gatekeeper.security.exceptions import AccessDeniedError, UnauthenticatedError
from gatekeeper.security.principal import Principal

UNAUTHENTICATED_MESSAGE = "Authentication required"
GENERIC_DENY_MESSAGE = "Access denied: Insufficient permissions"


class GateOutcome(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"
    UNAUTHENTICATED = "unauthenticated"
    EVALUATION_FAILED = "evaluation_failed"


@dataclass(frozen=True)
class GateDecision:
    """Terminal gate state for one request. message is safe to show the client."""

    outcome: GateOutcome
    status_code: Optional[int]
    message: Optional[str]
    verdict: Optional[Verdict] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.ALLOWED

    def to_error(self) -> Exception:
        """Exception the transport layer turns into 401/403."""
        if self.outcome is GateOutcome.UNAUTHENTICATED:
            return UnauthenticatedError(self.message or UNAUTHENTICATED_MESSAGE)
        return AccessDeniedError(self.message or GENERIC_DENY_MESSAGE, verdict=self.verdict)


class AccessGate:
    """
    Start -> AuthenticationCheck -> RuleLookup -> ResourceResolution -> Evaluation
    -> Allowed | Denied | Unauthenticated | EvaluationFailed.

    Holds no per-request state. Unauthenticated requests stop before rule lookup,
    so they never pay for resource resolution.
    """

    def __init__(self, engine: PolicyEngine, logger: Optional[logging.Logger] = None) -> None:
        self._engine = engine
        self._logger = logger or logging.getLogger(__name__)

    async def check(
        self,
        operation_id: str,
        principal: Optional[Principal],
        context: RequestContext,
    ) -> GateDecision:
        if principal is None:
            return GateDecision(
                outcome=GateOutcome.UNAUTHENTICATED,
                status_code=401,
                message=UNAUTHENTICATED_MESSAGE,
            )

        verdict = await self._engine.evaluate(operation_id, principal, context)

        if verdict.kind is VerdictKind.ALLOW:
            return GateDecision(
                outcome=GateOutcome.ALLOWED,
                status_code=None,
                message=None,
                verdict=verdict,
            )
        if verdict.kind is VerdictKind.DENY:
            return GateDecision(
                outcome=GateOutcome.DENIED,
                status_code=403,
                message=verdict.reason or GENERIC_DENY_MESSAGE,
                verdict=verdict,
            )
        # Same client-facing shape as a deny; the cause stays server-side.
        self._logger.warning(
            "gate_evaluation_failed",
            extra={"operation_id": operation_id, "rule": verdict.rule_name},
        )
        return GateDecision(
            outcome=GateOutcome.EVALUATION_FAILED,
            status_code=403,
            message=GENERIC_DENY_MESSAGE,
            verdict=verdict,
        )

    async def enforce(
        self,
        operation_id: str,
        principal: Optional[Principal],
        context: RequestContext,
    ) -> GateDecision:
        """check(), raising UnauthenticatedError / AccessDeniedError unless allowed."""
        decision = await self.check(operation_id, principal, context)
        if not decision.allowed:
            raise decision.to_error()
        return decision
