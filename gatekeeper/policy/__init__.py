"""Policy: rules, verdicts, resolvers, scope, engine and access gate. No FastAPI."""

from gatekeeper.policy.engine import PolicyEngine
from gatekeeper.policy.gate import AccessGate, GateDecision, GateOutcome
from gatekeeper.policy.models import (
    MissingResource,
    PolicyRule,
    RequestContext,
    Resource,
    Verdict,
    VerdictKind,
)
from gatekeeper.policy.registry import PolicyRegistry
from gatekeeper.policy.resolvers import ById, ByRouteParam, NoResource, ResourceResolver
from gatekeeper.policy.scope import ScopeFilter, ScopeResolver

__all__ = [
    "AccessGate",
    "ById",
    "ByRouteParam",
    "GateDecision",
    "GateOutcome",
    "MissingResource",
    "NoResource",
    "PolicyEngine",
    "PolicyRegistry",
    "PolicyRule",
    "RequestContext",
    "Resource",
    "ResourceResolver",
    "ScopeFilter",
    "ScopeResolver",
    "Verdict",
    "VerdictKind",
]
