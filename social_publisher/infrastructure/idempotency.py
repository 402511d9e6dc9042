"""Idempotency store for publish jobs.

Prevents the same content being published twice to the same platforms when
a job is resubmitted (double click, retry after a timeout, redelivery).
"""

import hashlib
import time
from datetime import datetime
from typing import Any

import structlog

from ..domain.ports import IdempotencyPort, IdempotencyRecord

logger = structlog.get_logger()

# Default TTL for idempotency keys (24 hours)
DEFAULT_TTL_SECONDS = 86400

# A job stuck in "processing" longer than this may be retried
PROCESSING_TIMEOUT_SECONDS = 300


class InMemoryIdempotencyService(IdempotencyPort):
    """
    In-memory implementation of IdempotencyPort.

    Suitable for a single process; a shared cache with TTL should back the
    port when several workers publish.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._ttl_seconds = ttl_seconds
        self._cache: dict[str, IdempotencyRecord] = {}
        self._expires: dict[str, float] = {}

    def generate_key(self, job_id: str, platforms: list[str]) -> str:
        """SHA256 of job id + sorted platforms."""
        platforms_str = ",".join(sorted(platforms))
        key_input = f"{job_id}:{platforms_str}"
        return hashlib.sha256(key_input.encode()).hexdigest()

    def check_and_lock(self, key: str) -> IdempotencyRecord | None:
        """
        Check if a job has been processed and lock it for processing.

        Returns:
            Existing record if already completed/processing, None if new
        """
        self._cleanup_expired()

        existing = self._cache.get(key)

        if existing:
            if existing.status == "completed":
                logger.info("Publish job already processed", idempotency_key=key[:16])
                return existing

            if existing.status == "processing":
                age = (datetime.now() - existing.created_at).total_seconds()
                if age > PROCESSING_TIMEOUT_SECONDS:
                    logger.warning("Processing timeout, allowing retry", idempotency_key=key[:16])
                else:
                    logger.info("Publish job currently running", idempotency_key=key[:16])
                    return existing

        self._cache[key] = IdempotencyRecord(
            key=key,
            status="processing",
            created_at=datetime.now(),
        )
        self._expires[key] = time.time() + self._ttl_seconds

        logger.debug("Locked publish job", idempotency_key=key[:16])
        return None

    def mark_completed(self, key: str, result: dict[str, Any]) -> None:
        record = self._cache.get(key)
        if record is None:
            return
        self._cache[key] = IdempotencyRecord(
            key=record.key,
            status="completed",
            created_at=record.created_at,
            completed_at=datetime.now(),
            result=result,
        )
        logger.debug("Marked publish job as completed", idempotency_key=key[:16])

    def mark_failed(self, key: str, error: str) -> None:
        """Mark a job as failed; a failed job may be locked again."""
        record = self._cache.get(key)
        if record is None:
            return
        self._cache[key] = IdempotencyRecord(
            key=record.key,
            status="failed",
            created_at=record.created_at,
            completed_at=datetime.now(),
            error=error,
        )
        logger.debug("Marked publish job as failed", idempotency_key=key[:16], error=error)

    def release_lock(self, key: str) -> None:
        """Release a processing lock without recording a result."""
        self._cache.pop(key, None)
        self._expires.pop(key, None)

    def _cleanup_expired(self) -> None:
        now = time.time()
        expired = [k for k, v in self._expires.items() if v < now]
        for key in expired:
            del self._cache[key]
            del self._expires[key]
        if expired:
            logger.debug("Cleaned up expired idempotency records", count=len(expired))


# Global instance
_idempotency_service: InMemoryIdempotencyService | None = None


def get_idempotency_service(ttl_seconds: int = DEFAULT_TTL_SECONDS) -> IdempotencyPort:
    """Get or create the global idempotency service."""
    global _idempotency_service
    if _idempotency_service is None:
        _idempotency_service = InMemoryIdempotencyService(ttl_seconds=ttl_seconds)
    return _idempotency_service
