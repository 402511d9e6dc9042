"""
Background publish jobs.

A publish job fans one piece of content out to several platforms. The
caller gets a task handle right away and is notified through a completion
callback once every platform has an outcome.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog

from ...domain.ports import IdempotencyPort
from ...domain.value_objects import Platform, PublishOutcome, PublishRequest
from ...infrastructure.logging import correlation_context
from .social_media_facade import SocialMediaFacade

logger = structlog.get_logger()


@dataclass(frozen=True)
class PublishJob:
    """Content to publish, one request per target platform."""

    job_id: str
    requests: list[PublishRequest]

    @property
    def platforms(self) -> list[str]:
        return [
            r.platform.value if isinstance(r.platform, Platform) else str(r.platform)
            for r in self.requests
        ]


@dataclass
class PublishJobReport:
    """What happened to a job, handed to the completion callback."""

    job_id: str
    outcomes: list[PublishOutcome] = field(default_factory=list)
    skipped: bool = False
    reason: str | None = None

    @property
    def successful(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.successful

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "skipped": self.skipped,
            "reason": self.reason,
            "successful": self.successful,
            "failed": self.failed,
            "results": [o.to_dict() for o in self.outcomes],
        }


CompletionCallback = Callable[[PublishJobReport], Awaitable[None] | None]


class PublishJobRunner:
    """
    Runs publish jobs in the background with idempotency.

    Dependencies are injected:
    - SocialMediaFacade does the publishing
    - IdempotencyPort keeps a resubmitted job from publishing twice
    """

    def __init__(
        self,
        facade: SocialMediaFacade,
        idempotency: IdempotencyPort,
    ) -> None:
        self._facade = facade
        self._idempotency = idempotency
        self._tasks: set[asyncio.Task] = set()

    def submit(
        self,
        job: PublishJob,
        on_complete: CompletionCallback | None = None,
    ) -> asyncio.Task:
        """
        Schedule a job on the running event loop.

        Returns:
            Task resolving to the job's PublishJobReport
        """
        task = asyncio.create_task(self.run(job, on_complete))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Publish job submitted", job_id=job.job_id, platforms=job.platforms)
        return task

    async def run(
        self,
        job: PublishJob,
        on_complete: CompletionCallback | None = None,
    ) -> PublishJobReport:
        """Run a job to completion and notify the callback."""
        with correlation_context(job.job_id, job_id=job.job_id):
            report = await self._execute(job)
            await self._notify(report, on_complete)
            return report

    async def _execute(self, job: PublishJob) -> PublishJobReport:
        idempotency_key = self._idempotency.generate_key(job.job_id, job.platforms)
        existing = self._idempotency.check_and_lock(idempotency_key)

        if existing:
            if existing.status == "completed":
                logger.info("Skipping duplicate publish job (idempotent)")
                return PublishJobReport(job_id=job.job_id, skipped=True, reason="completed")
            if existing.status == "processing":
                logger.info("Publish job already being processed")
                return PublishJobReport(job_id=job.job_id, skipped=True, reason="processing")

        try:
            outcomes = await self._facade.publish_batch(job.requests)
        except asyncio.CancelledError:
            logger.warning("Publish job cancelled")
            self._idempotency.release_lock(idempotency_key)
            raise
        except Exception as e:
            logger.error("Publish job failed", error=str(e))
            self._idempotency.mark_failed(idempotency_key, str(e))
            outcomes = [
                PublishOutcome.failed(platform, str(e) or type(e).__name__)
                for platform in job.platforms
            ]
            return PublishJobReport(job_id=job.job_id, outcomes=outcomes)

        report = PublishJobReport(job_id=job.job_id, outcomes=outcomes)
        self._idempotency.mark_completed(idempotency_key, report.to_dict())
        logger.info(
            "Publish job completed",
            successful=report.successful,
            failed=report.failed,
        )
        return report

    async def _notify(
        self,
        report: PublishJobReport,
        on_complete: CompletionCallback | None,
    ) -> None:
        if on_complete is None:
            return
        try:
            result = on_complete(report)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("Publish job callback failed", error=str(e))

    async def wait_all(self) -> None:
        """Wait for every job submitted so far."""
        if self._tasks:
            await asyncio.gather(*self._tasks)
