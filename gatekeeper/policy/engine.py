"""Policy evaluation: look up rules, resolve resources, evaluate predicates, fail closed."""

import asyncio
import inspect
import logging
from typing import Optional

from gatekeeper.domain.exceptions import NotFoundError
from gatekeeper.policy.models import (
    MissingResource,
    PolicyRule,
    RequestContext,
    Resource,
    Verdict,
)
from gatekeeper.policy.registry import PolicyRegistry
from gatekeeper.policy.resolvers import ResolverSpec, ResourceResolver, target_id
from gatekeeper.security.principal import Principal

UNAUTHENTICATED_REASON = "unauthenticated"
DEFAULT_RESOLUTION_TIMEOUT = 2.0


class PolicyEngine:
    """
    Stateless evaluator over a frozen PolicyRegistry.

    Rules run in registration order and the first Deny or EvaluationError wins
    (AND semantics). Any exception from a resolver or predicate becomes an
    EvaluationError verdict; nothing but Allow lets a request through.
    """

    def __init__(
        self,
        registry: PolicyRegistry,
        resolver: ResourceResolver,
        *,
        resolution_timeout: float = DEFAULT_RESOLUTION_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._resolution_timeout = resolution_timeout
        self._logger = logger or logging.getLogger(__name__)

    @property
    def registry(self) -> PolicyRegistry:
        return self._registry

    async def evaluate(
        self,
        operation_id: str,
        principal: Optional[Principal],
        context: RequestContext,
    ) -> Verdict:
        """
        Verdict for principal calling operation_id. No bound rule means Allow.
        Raises NotFoundError only for rules declared with on_missing=NOT_FOUND.
        """
        if principal is None:
            return Verdict.error(None, reason=UNAUTHENTICATED_REASON)

        rules = self._registry.rules_for(operation_id)
        if not rules:
            return Verdict.allow()

        # Per-evaluation memo: rules sharing a target resolve it once.
        resolved: dict[tuple[ResolverSpec, Optional[int]], Optional[Resource]] = {}

        for rule in rules:
            resource: Optional[Resource] = None
            if rule.resolver is not None:
                key = (rule.resolver, target_id(rule.resolver, context))
                if key not in resolved:
                    try:
                        resolved[key] = await asyncio.wait_for(
                            self._resolver.resolve(rule.resolver, context),
                            timeout=self._resolution_timeout,
                        )
                    except asyncio.TimeoutError as e:
                        return self._evaluation_failed(operation_id, rule, e, "resolution_timeout")
                    except Exception as e:
                        return self._evaluation_failed(operation_id, rule, e, "resolution_failed")
                resource = resolved[key]
                if resource is None and rule.on_missing is MissingResource.NOT_FOUND:
                    raise NotFoundError(self._not_found_message(rule.resolver, context))

            try:
                allowed = await self._call_predicate(rule, principal, context, resource)
            except Exception as e:
                return self._evaluation_failed(operation_id, rule, e, "predicate_failed")

            if allowed is not True:
                self._logger.info(
                    "policy_denied",
                    extra={"operation_id": operation_id, "rule": rule.name},
                )
                return Verdict.deny(rule.error_message, rule.name)

        return Verdict.allow()

    @staticmethod
    async def _call_predicate(
        rule: PolicyRule,
        principal: Principal,
        context: RequestContext,
        resource: Optional[Resource],
    ) -> bool:
        result = rule.predicate(principal, context, resource)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _evaluation_failed(
        self,
        operation_id: str,
        rule: PolicyRule,
        cause: BaseException,
        stage: str,
    ) -> Verdict:
        self._logger.error(
            "policy_evaluation_failed",
            extra={
                "operation_id": operation_id,
                "rule": rule.name,
                "stage": stage,
                "error_type": type(cause).__name__,
                "error": str(cause),
            },
        )
        return Verdict.error(cause, rule.name)

    @staticmethod
    def _not_found_message(spec: ResolverSpec, context: RequestContext) -> str:
        resource_type = getattr(spec, "resource_type", "resource")
        resource_id = target_id(spec, context)
        return f"{resource_type.capitalize()} with ID {resource_id} not found"
