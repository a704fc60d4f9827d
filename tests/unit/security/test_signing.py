"""Security tests: audit record signatures."""

import pytest

from gatekeeper.security.exceptions import SigningError
from gatekeeper.security.signing import AuditSigner, canonical_payload


@pytest.fixture(scope="module")
def signer():
    return AuditSigner("unit-test-signing-key")


def test_sign_and_verify(signer):
    fields = {"action": "tasks.read", "result": "success", "actor_id": 1}
    signature = signer.sign(fields)
    assert signer.verify(fields, signature)


def test_tampered_payload_fails(signer):
    fields = {"action": "tasks.delete", "result": "denied"}
    signature = signer.sign(fields)
    assert not signer.verify({**fields, "result": "success"}, signature)


def test_garbage_signature_fails(signer):
    assert not signer.verify({"a": 1}, "not base64 !!")


def test_different_key_fails(signer):
    fields = {"action": "x"}
    assert not AuditSigner("another-key").verify(fields, signer.sign(fields))


def test_canonical_payload_ignores_key_order():
    assert canonical_payload({"b": 1, "a": 2}) == canonical_payload({"a": 2, "b": 1})


@pytest.mark.parametrize("key", [None, "", "   "])
def test_missing_key_raises(key):
    with pytest.raises(SigningError):
        AuditSigner(key)
