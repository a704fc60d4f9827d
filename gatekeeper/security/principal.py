"""Authenticated actor. Built once per request from token claims, never mutated."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from gatekeeper.security.exceptions import UnauthenticatedError


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        return _ROLE_HIERARCHY[self]


# viewer < admin < owner
_ROLE_HIERARCHY: dict[Role, int] = {
    Role.VIEWER: 1,
    Role.ADMIN: 2,
    Role.OWNER: 3,
}


@dataclass(frozen=True)
class Principal:
    """Who is calling: user id, email, role and the tenant (organization) they belong to."""

    id: int
    email: str
    role: Role
    tenant_id: int

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Principal":
        """
        Build from decoded token claims (sub, email, role, tenant_id).
        Raises UnauthenticatedError if any claim is missing or malformed.
        """
        try:
            principal_id = int(claims["sub"])
            tenant_id = int(claims["tenant_id"])
            role = Role(str(claims["role"]).lower())
            email = str(claims["email"])
        except (KeyError, TypeError, ValueError) as e:
            raise UnauthenticatedError("Invalid token claims") from e
        if isinstance(claims["sub"], bool) or isinstance(claims["tenant_id"], bool):
            raise UnauthenticatedError("Invalid token claims")
        return cls(id=principal_id, email=email, role=role, tenant_id=tenant_id)

    def to_claims(self) -> dict[str, Any]:
        return {
            "sub": str(self.id),
            "email": self.email,
            "role": self.role.value,
            "tenant_id": self.tenant_id,
        }
