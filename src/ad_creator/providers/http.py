"""httpx helpers shared by the REST providers."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import structlog

from ad_creator.config import settings
from ad_creator.exceptions import ProviderError

logger = structlog.get_logger()

ClientFactory = Callable[[], httpx.AsyncClient]


def default_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.http_timeout_sec)


def error_detail(response: httpx.Response) -> str:
    """Best-effort human-readable error text from a provider response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]

    if isinstance(body, dict):
        error = body.get("error") or body.get("detail") or body.get("message")
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if error:
            return str(error)
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            return str(first.get("message", first)) if isinstance(first, dict) else str(first)
    return response.text[:500]


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider: str,
    headers: dict[str, str],
    json: Any = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Send a request and return the decoded JSON body.

    Raises:
        ProviderError: On transport errors, non-2xx statuses or non-JSON bodies.
    """
    try:
        response = await client.request(method, url, headers=headers, json=json, params=params)
    except httpx.RequestError as e:
        raise ProviderError(f"{provider} request failed: {e}", provider=provider, original_error=e) from e

    if not response.is_success:
        detail = error_detail(response)
        logger.error(
            "provider_http.api_error",
            provider=provider,
            status_code=response.status_code,
            response_body=detail,
        )
        raise ProviderError(
            f"{provider} API error ({response.status_code}): {detail}",
            provider=provider,
        )

    try:
        return response.json()
    except ValueError as e:
        raise ProviderError(f"{provider} returned a non-JSON response", provider=provider, original_error=e) from e


async def probe(client_factory: ClientFactory, url: str, headers: dict[str, str]) -> bool:
    """Minimal read-only request used by connection tests."""
    try:
        async with client_factory() as client:
            response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.info("provider_http.probe_failed", url=url, error=str(e))
        return False
    return response.is_success
