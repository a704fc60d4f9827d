"""Policy value objects: request context, resource projection, rules and verdicts."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional, Union

from gatekeeper.security.principal import Principal

if TYPE_CHECKING:
    from gatekeeper.policy.resolvers import ResolverSpec


@dataclass(frozen=True)
class RequestContext:
    """What a rule may look at besides the principal. Built by the transport layer."""

    http_method: Optional[str] = None
    endpoint: Optional[str] = None
    route_params: Mapping[str, Any] = field(default_factory=dict)
    query_params: Mapping[str, Any] = field(default_factory=dict)
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    correlation_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class Resource:
    """Minimal projection of a domain entity: enough for ownership and tenant checks."""

    id: int
    owner_id: Optional[int]
    tenant_id: int
    resource_type: str = "resource"


PredicateResult = Union[bool, Awaitable[bool]]
Predicate = Callable[[Principal, RequestContext, Optional[Resource]], PredicateResult]


class MissingResource(str, Enum):
    """What to do when a rule's resolver finds nothing."""

    DENY = "deny"  # predicate gets None and decides (shipped predicates deny)
    NOT_FOUND = "not_found"  # engine raises NotFoundError before the predicate runs


@dataclass(frozen=True)
class PolicyRule:
    """Named predicate plus the message shown to the client when it denies."""

    name: str
    predicate: Predicate
    error_message: Optional[str] = None
    resolver: Optional["ResolverSpec"] = None
    on_missing: MissingResource = MissingResource.DENY


class VerdictKind(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    EVALUATION_ERROR = "evaluation_error"


@dataclass(frozen=True)
class Verdict:
    """
    Outcome of evaluating the rules bound to one operation.
    cause is internal only: it is logged and audited, never shown to the client.
    """

    kind: VerdictKind
    reason: Optional[str] = None
    rule_name: Optional[str] = None
    cause: Optional[BaseException] = field(default=None, compare=False)

    @classmethod
    def allow(cls) -> "Verdict":
        return cls(kind=VerdictKind.ALLOW)

    @classmethod
    def deny(cls, reason: Optional[str], rule_name: Optional[str] = None) -> "Verdict":
        return cls(kind=VerdictKind.DENY, reason=reason, rule_name=rule_name)

    @classmethod
    def error(
        cls,
        cause: Optional[BaseException],
        rule_name: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> "Verdict":
        return cls(
            kind=VerdictKind.EVALUATION_ERROR,
            reason=reason,
            rule_name=rule_name,
            cause=cause,
        )

    @property
    def is_allowed(self) -> bool:
        return self.kind is VerdictKind.ALLOW
