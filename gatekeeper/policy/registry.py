"""Static operation -> rules map. Built once at startup, read-only afterwards."""

import logging
from typing import Iterable, Optional

from gatekeeper.policy.exceptions import RegistryFrozenError
from gatekeeper.policy.models import PolicyRule


class PolicyRegistry:
    """
    Holds the ordered rules bound to each operation id. Several rules on one
    operation compose with AND in registration order. Once frozen the map is
    shared by reference across concurrent requests without locking.
    """

    def __init__(self) -> None:
        self._rules: dict[str, list[PolicyRule]] = {}
        self._declared: set[str] = set()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Policy registry is frozen; register rules at startup")

    def register_rule(self, operation_id: str, rule: PolicyRule) -> None:
        """Append rule to operation_id's chain."""
        self._check_mutable()
        self._declared.add(operation_id)
        self._rules.setdefault(operation_id, []).append(rule)

    def declare_operation(self, operation_id: str) -> None:
        """Record that an operation exists, bound or not (used by lint)."""
        self._check_mutable()
        self._declared.add(operation_id)

    def declare_operations(self, operation_ids: Iterable[str]) -> None:
        for operation_id in operation_ids:
            self.declare_operation(operation_id)

    def freeze(self) -> "PolicyRegistry":
        self._frozen = True
        return self

    def rules_for(self, operation_id: str) -> tuple[PolicyRule, ...]:
        """Rules bound to operation_id in order. Empty tuple means public."""
        return tuple(self._rules.get(operation_id, ()))

    def operations(self) -> frozenset[str]:
        return frozenset(self._declared)

    def bound_operations(self) -> frozenset[str]:
        return frozenset(op for op, rules in self._rules.items() if rules)

    def unbound_operations(self) -> list[str]:
        return sorted(self._declared - self.bound_operations())

    def lint(self, logger: Optional[logging.Logger] = None) -> list[str]:
        """
        Warn once per declared operation with no rule. Unbound operations are
        public (default-open), so every one of these is reachable unauthorized.
        """
        log = logger or logging.getLogger(__name__)
        unbound = self.unbound_operations()
        for operation_id in unbound:
            log.warning(
                "policy_operation_unbound",
                extra={"operation_id": operation_id},
            )
        return unbound
