"""Bearer token -> Principal. Decoding only; tokens are issued elsewhere."""

import logging
from typing import Optional

import jwt

from gatekeeper.security.exceptions import UnauthenticatedError
from gatekeeper.security.principal import Principal

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


class TokenDecoder:
    """Verify a JWT with the shared secret and turn its claims into a Principal."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def decode(self, token: str) -> Principal:
        """Raises UnauthenticatedError for expired, invalid or incomplete tokens."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthenticatedError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise UnauthenticatedError("Invalid token") from e
        return Principal.from_claims(claims)

    def principal_from_header(self, authorization: Optional[str]) -> Optional[Principal]:
        """Principal for an Authorization header value, or None when absent or unusable."""
        if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
            return None
        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            return None
        try:
            return self.decode(token)
        except UnauthenticatedError as e:
            logger.info("authentication_failed", extra={"reason": e.message})
            return None
