"""Concurrent batches of factory calls and caller-level retry."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, TypeVar

import structlog

from ad_creator.exceptions import AdCreatorError, ConfigurationError, ProviderNotImplementedError

logger = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")

# Retrying these cannot succeed until the user changes settings
_NOT_RETRYABLE = (ConfigurationError, ProviderNotImplementedError)


@dataclass
class BatchOutcome(Generic[R]):
    index: int
    result: R | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_batch(
    items: Iterable[T],
    operation: Callable[[T], Awaitable[R]],
    max_concurrency: int | None = None,
) -> list[BatchOutcome[R]]:
    """Run *operation* on every item concurrently.

    Outcomes come back in input order. A failing item never cancels or
    affects the others.
    """
    items = list(items)
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def _run(item: T) -> R:
        if semaphore is None:
            return await operation(item)
        async with semaphore:
            return await operation(item)

    logger.info("batch.start", size=len(items), max_concurrency=max_concurrency)
    results = await asyncio.gather(*[_run(item) for item in items], return_exceptions=True)

    outcomes: list[BatchOutcome[R]] = []
    for i, result in enumerate(results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error("batch.item_failed", index=i, error_type=type(result).__name__, error=str(result))
            outcomes.append(BatchOutcome(index=i, error=result))
        else:
            outcomes.append(BatchOutcome(index=i, result=result))

    logger.info(
        "batch.done",
        size=len(outcomes),
        failed=sum(1 for o in outcomes if not o.ok),
    )
    return outcomes


async def retry_with_prompt_mutation(
    operation: Callable[[T], Awaitable[R]],
    request: T,
    mutate: Callable[[T, AdCreatorError, int], T],
    attempts: int = 2,
) -> R:
    """Call *operation*, re-issuing it with a mutated request after failures.

    ``mutate(request, error, attempt)`` returns the request for the next
    attempt, e.g. a softened prompt after a content-policy rejection.
    Configuration and not-implemented errors are raised immediately.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    current = request
    for attempt in range(1, attempts):
        try:
            return await operation(current)
        except _NOT_RETRYABLE:
            raise
        except AdCreatorError as exc:
            logger.warning(
                "retry_with_prompt_mutation.retrying",
                attempt=attempt,
                error_type=type(exc).__name__,
                error=exc.message,
            )
            current = mutate(current, exc, attempt)

    return await operation(current)
