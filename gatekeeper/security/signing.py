"""HMAC signatures for audit records. Key derived from a secret; no global state."""

import base64
import json
from typing import Any, Mapping, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from gatekeeper.security.exceptions import SigningError

DEFAULT_SALT = b"gatekeeper_audit_signing_v1"


def _derive_key(secret: str, salt: bytes = DEFAULT_SALT) -> bytes:
    """Derive a 32-byte HMAC key from a variable-length secret."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=480000,
    )
    return kdf.derive(secret.encode("utf-8"))


def canonical_payload(fields: Mapping[str, Any]) -> bytes:
    """Stable byte encoding: sorted keys, no whitespace, non-JSON values stringified."""
    return json.dumps(fields, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")


class AuditSigner:
    """
    Signs audit payloads with HMAC-SHA256 so any later edit to a stored record
    is detectable. The key is passed in (from settings in production).
    """

    def __init__(self, key: Optional[str]) -> None:
        if not key or not key.strip():
            raise SigningError("Audit signing key is required.")
        self._key = _derive_key(key.strip())

    def sign(self, fields: Mapping[str, Any]) -> str:
        """Return the urlsafe base64 signature of the canonical payload."""
        h = hmac.HMAC(self._key, hashes.SHA256())
        h.update(canonical_payload(fields))
        return base64.urlsafe_b64encode(h.finalize()).decode("ascii")

    def verify(self, fields: Mapping[str, Any], signature: str) -> bool:
        """Constant-time check that signature matches fields."""
        try:
            expected = base64.urlsafe_b64decode(signature.encode("ascii"))
        except (ValueError, UnicodeEncodeError):
            return False
        h = hmac.HMAC(self._key, hashes.SHA256())
        h.update(canonical_payload(fields))
        try:
            h.verify(expected)
        except InvalidSignature:
            return False
        return True
