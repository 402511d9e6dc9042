"""
Outbound port for idempotency checking.

Keyed TTL store that keeps a publish job from being run twice. It lives
behind a port so a shared cache can replace the in-process default.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class IdempotencyRecord:
    """Record of a processed publish job."""

    key: str
    status: str  # processing, completed, failed
    created_at: datetime
    completed_at: datetime | None = None
    result: dict | None = None
    error: str | None = None


class IdempotencyPort(ABC):
    """Outbound port for idempotency checking."""

    @abstractmethod
    def generate_key(self, job_id: str, platforms: list[str]) -> str:
        """
        Generate a unique idempotency key.

        Args:
            job_id: Publish job identifier (e.g. the chat message id)
            platforms: Target platforms of the job

        Returns:
            Unique key for this operation
        """
        ...

    @abstractmethod
    def check_and_lock(self, key: str) -> IdempotencyRecord | None:
        """
        Check if a job exists and lock it if not.

        Returns:
            Existing record if found, None if new (and locked)
        """
        ...

    @abstractmethod
    def mark_completed(self, key: str, result: dict[str, Any]) -> None:
        ...

    @abstractmethod
    def mark_failed(self, key: str, error: str) -> None:
        ...

    @abstractmethod
    def release_lock(self, key: str) -> None:
        """Drop a processing lock without recording a result."""
        ...
