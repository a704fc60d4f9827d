"""
Resource resolution for resource-bound rules.

Resolvers answer "what is this", never "is this allowed". The kinds are a
small tagged variant (ById, ByRouteParam, NoResource) dispatched through one
ResourceResolver, so each can be tested without a real request.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union

from gatekeeper.policy.exceptions import UnknownResourceTypeError
from gatekeeper.policy.models import RequestContext, Resource


class ResourceLookup(Protocol):
    """Storage-side adapter returning the projection of one entity, or None."""

    async def get_resource(self, resource_id: int) -> Optional[Resource]:
        """Pure lookup; must not mutate state or raise for a missing entity."""
        ...


@dataclass(frozen=True)
class ById:
    """Target id comes from RequestContext.resource_id."""

    resource_type: str


@dataclass(frozen=True)
class ByRouteParam:
    """Target id comes from a route parameter (default "id")."""

    resource_type: str
    param: str = "id"


@dataclass(frozen=True)
class NoResource:
    """Context-only rule; nothing to resolve."""


ResolverSpec = Union[ById, ByRouteParam, NoResource]


def _coerce_id(raw: Any) -> Optional[int]:
    """Integer ids only; anything unparsable is treated as not found."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def target_id(spec: ResolverSpec, context: RequestContext) -> Optional[int]:
    """Id the resolver kind points at in this context, without touching storage."""
    if isinstance(spec, ById):
        return _coerce_id(context.resource_id)
    if isinstance(spec, ByRouteParam):
        return _coerce_id(context.route_params.get(spec.param))
    return None


class ResourceResolver:
    """Dispatch a ResolverSpec to the ResourceLookup registered for its resource type."""

    def __init__(self, lookups: Optional[Mapping[str, ResourceLookup]] = None) -> None:
        self._lookups: dict[str, ResourceLookup] = dict(lookups or {})

    def register(self, resource_type: str, lookup: ResourceLookup) -> None:
        self._lookups[resource_type] = lookup

    @property
    def resource_types(self) -> frozenset[str]:
        return frozenset(self._lookups)

    async def resolve(self, spec: ResolverSpec, context: RequestContext) -> Optional[Resource]:
        """
        Return the resource the resolver kind points at, or None if it does not exist or
        the id is absent/unparsable. Unknown resource types raise.
        """
        if isinstance(spec, NoResource):
            return None
        lookup = self._lookups.get(spec.resource_type)
        if lookup is None:
            raise UnknownResourceTypeError(
                f"No resource lookup registered for '{spec.resource_type}'"
            )
        resource_id = target_id(spec, context)
        if resource_id is None:
            return None
        return await lookup.get_resource(resource_id)
