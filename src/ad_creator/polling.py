"""Long-running job driver: submit, then poll status at a fixed interval.

Providers without push callbacks (Runway, HeyGen, Luma, Replicate) hand back
a job id; the poller re-checks it until a terminal status or until the
attempt budget runs out. The wait primitive is injected so tests can drive
the loop with a fake clock.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

from ad_creator.exceptions import JobCancelledError, JobFailedError, JobTimeoutError

logger = structlog.get_logger()


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass
class JobUpdate:
    """One status-check answer, already translated from the provider's shape."""

    status: JobStatus
    asset_urls: list[str] = field(default_factory=list)
    failure_reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def primary_url(self) -> str:
        return self.asset_urls[0]


@dataclass
class JobHandle:
    job_id: str
    max_attempts: int
    poll_interval: float
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0

    @property
    def progress(self) -> float:
        return min(1.0, self.attempts / self.max_attempts) if self.max_attempts else 0.0


StatusCheck = Callable[[str], Awaitable[JobUpdate]]
ProgressCallback = Callable[[JobHandle], None]
Sleep = Callable[[float], Awaitable[Any]]


class JobPoller:
    """Fixed-interval, bounded-attempt status poller."""

    def __init__(
        self,
        *,
        max_attempts: int,
        poll_interval: float,
        sleep: Sleep = asyncio.sleep,
        label: str = "job",
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self._sleep = sleep
        self.label = label

    async def run(
        self,
        job_id: str,
        check_status: StatusCheck,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> JobUpdate:
        """Poll *job_id* until it succeeds with assets.

        Raises:
            JobFailedError: provider reported failure, or success without assets.
            JobTimeoutError: no terminal status within ``max_attempts`` checks.
            JobCancelledError: *cancel_event* was set between checks.
        """
        handle = JobHandle(
            job_id=job_id,
            max_attempts=self.max_attempts,
            poll_interval=self.poll_interval,
        )
        logger.info(
            "job_poller.start",
            label=self.label,
            job_id=job_id,
            max_attempts=self.max_attempts,
            poll_interval=self.poll_interval,
        )

        while handle.attempts < handle.max_attempts:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("job_poller.cancelled", label=self.label, job_id=job_id, attempts=handle.attempts)
                raise JobCancelledError(f"{self.label} {job_id} was cancelled", job_id=job_id)

            handle.attempts += 1
            try:
                update = await check_status(job_id)
            except Exception as exc:
                # Transient status-check failures count against the budget only
                logger.warning(
                    "job_poller.check_failed",
                    label=self.label,
                    job_id=job_id,
                    attempt=handle.attempts,
                    error=str(exc),
                )
            else:
                handle.status = update.status
                if update.status.is_terminal:
                    return self._finish(handle, update)

            if on_progress is not None:
                on_progress(handle)

            logger.debug(
                "job_poller.waiting",
                label=self.label,
                job_id=job_id,
                attempt=handle.attempts,
                status=handle.status.value,
            )
            if handle.attempts < handle.max_attempts:
                await self._sleep(self.poll_interval)

        logger.warning("job_poller.timeout", label=self.label, job_id=job_id, attempts=handle.attempts)
        raise JobTimeoutError(
            f"{self.label} timed out after {handle.attempts} status checks (id={job_id})",
            job_id=job_id,
            attempts=handle.attempts,
        )

    def _finish(self, handle: JobHandle, update: JobUpdate) -> JobUpdate:
        if update.status is JobStatus.FAILED:
            logger.warning(
                "job_poller.failed",
                label=self.label,
                job_id=handle.job_id,
                reason=update.failure_reason,
            )
            raise JobFailedError(
                f"{self.label} failed: {update.failure_reason or 'no reason given'}",
                job_id=handle.job_id,
            )

        if not update.asset_urls:
            logger.warning("job_poller.empty_success", label=self.label, job_id=handle.job_id)
            raise JobFailedError(
                f"{self.label} completed but returned no asset (id={handle.job_id})",
                job_id=handle.job_id,
            )

        logger.info(
            "job_poller.done",
            label=self.label,
            job_id=handle.job_id,
            attempts=handle.attempts,
        )
        return update

    async def submit_and_poll(
        self,
        submit: Callable[[], Awaitable[str]],
        check_status: StatusCheck,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> JobUpdate:
        """Submit a job and poll it. Submission errors propagate; no polling starts."""
        job_id = await submit()
        return await self.run(
            job_id,
            check_status,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
