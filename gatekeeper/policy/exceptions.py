"""Policy-layer exceptions. Typed, no HTTP."""


class PolicyError(Exception):
    """Base for all policy-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RegistryFrozenError(PolicyError):
    """Raised when registering a rule after the registry was frozen at startup."""


class UnknownResourceTypeError(PolicyError):
    """Raised when a resolver names a resource type with no lookup registered."""
