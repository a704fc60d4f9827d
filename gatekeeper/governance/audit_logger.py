"""Durable, signed append of audit records with bounded retries. No FastAPI."""

import asyncio
import dataclasses
import logging
from typing import Optional

from gatekeeper.governance.audit_models import AuditRecord, AuditResult
from gatekeeper.governance.audit_repository import AuditRepository
from gatekeeper.governance.exceptions import AuditWriteError
from gatekeeper.security.signing import AuditSigner

AUDIT_LOGGER_NAME = "gatekeeper.audit"


class AuditLogger:
    """
    Writes immutable audit records via repository.
    Signs each record, retries a bounded number of times, and mirrors every
    record as one structured log line. Raises AuditWriteError when the
    repository keeps failing; callers decide whether that matters.
    """

    def __init__(
        self,
        repository: AuditRepository,
        *,
        signer: Optional[AuditSigner] = None,
        retries: int = 2,
        backoff_seconds: float = 0.05,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._repository = repository
        self._signer = signer
        self._retries = max(0, retries)
        self._backoff = max(0.0, backoff_seconds)
        self._logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def sign(self, record: AuditRecord) -> AuditRecord:
        if self._signer is None or record.signature is not None:
            return record
        return dataclasses.replace(record, signature=self._signer.sign(record.signable_fields()))

    async def append(self, record: AuditRecord) -> AuditRecord:
        """Sign and persist record. Returns the stored (signed) record."""
        signed = self.sign(record)
        attempts = self._retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                await self._repository.append(signed)
            except Exception as e:
                last_error = e
                self._logger.warning(
                    "audit_append_attempt_failed",
                    extra={"attempt": attempt, "attempts": attempts, "error": str(e)},
                )
                if attempt < attempts and self._backoff:
                    await asyncio.sleep(self._backoff * attempt)
                continue
            self._emit(signed)
            return signed
        raise AuditWriteError(
            f"Audit append failed after {attempts} attempt(s): {last_error}",
            attempts=attempts,
        ) from last_error

    def _emit(self, record: AuditRecord) -> None:
        level = (
            logging.WARNING
            if record.result in (AuditResult.DENIED, AuditResult.ERROR)
            else logging.INFO
        )
        self._logger.log(level, "audit_record", extra={"audit": record.to_dict()})
