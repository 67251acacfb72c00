"""Runway task API shared by the Runway image and video providers."""

from __future__ import annotations

from typing import Any

from ad_creator.exceptions import ProviderError
from ad_creator.polling import JobStatus, JobUpdate
from ad_creator.providers.http import ClientFactory, request_json

RUNWAY_API_BASE = "https://api.dev.runwayml.com/v1"
RUNWAY_API_VERSION = "2024-11-06"

_STATUS_MAP: dict[str, JobStatus] = {
    "PENDING": JobStatus.PENDING,
    "THROTTLED": JobStatus.PENDING,
    "RUNNING": JobStatus.RUNNING,
    "SUCCEEDED": JobStatus.SUCCEEDED,
    "FAILED": JobStatus.FAILED,
    "CANCELLED": JobStatus.FAILED,
}


def runway_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "X-Runway-Version": RUNWAY_API_VERSION,
        "Content-Type": "application/json",
    }


class RunwayTasks:
    """Submit a Runway task and translate ``GET /tasks/{id}`` into ``JobUpdate``."""

    def __init__(self, api_key: str, client_factory: ClientFactory, provider: str = "runway"):
        self._headers = runway_headers(api_key)
        self._client_factory = client_factory
        self._provider = provider

    async def submit(self, endpoint: str, payload: dict[str, Any]) -> str:
        async with self._client_factory() as client:
            body = await request_json(
                client,
                "POST",
                f"{RUNWAY_API_BASE}/{endpoint}",
                provider=self._provider,
                headers=self._headers,
                json=payload,
            )
        task_id = body.get("id") if isinstance(body, dict) else None
        if not task_id:
            raise ProviderError("Runway did not return a task id", provider=self._provider)
        return task_id

    async def check(self, task_id: str) -> JobUpdate:
        async with self._client_factory() as client:
            body = await request_json(
                client,
                "GET",
                f"{RUNWAY_API_BASE}/tasks/{task_id}",
                provider=self._provider,
                headers=self._headers,
            )

        raw_status = str(body.get("status", "")).upper()
        status = _STATUS_MAP.get(raw_status, JobStatus.RUNNING)
        output = body.get("output") or []
        if isinstance(output, str):
            output = [output]
        return JobUpdate(
            status=status,
            asset_urls=[url for url in output if url],
            failure_reason=body.get("failure") or body.get("failureReason"),
            metadata={"progress": body.get("progress")},
        )
