"""HTTP helper for actions that read from external JSON APIs.

Only idempotent GET requests go through :func:`fetch_json`, which retries
transient failures with capped exponential backoff. Nothing that submits a
state change may use it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx

from agent_actions.config import HttpConfig
from agent_actions.errors import ExternalFailure

logger = logging.getLogger("agent_actions.actions.http")

_USER_AGENT = "agent-actions/0.1"


def is_transient(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


async def fetch_json(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    config: Optional[HttpConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
    service: str = "",
) -> Any:
    """GET *url* and decode the JSON body.

    Transport errors, 429 and 5xx responses are retried up to
    ``config.max_retries`` times. Exhausting the retries raises
    ``ExternalFailure(retryable=True)``; any other non-2xx response raises
    ``ExternalFailure(retryable=False)`` immediately.
    """
    config = config or HttpConfig()
    service = service or httpx.URL(url).host
    request_headers = {"User-Agent": _USER_AGENT, "Accept": "application/json"}
    request_headers.update(headers or {})

    retries = 0
    while True:
        try:
            if client is not None:
                resp = await client.get(url, params=params, headers=request_headers, timeout=config.timeout)
            else:
                async with httpx.AsyncClient(timeout=config.timeout) as own_client:
                    resp = await own_client.get(url, params=params, headers=request_headers)
        except httpx.TransportError as exc:
            failure = ExternalFailure(
                f"{service} request failed: {exc}",
                retryable=True,
                details={"service": service},
            )
            cause: BaseException = exc
        else:
            if resp.is_success:
                try:
                    return resp.json()
                except ValueError as exc:
                    raise ExternalFailure(
                        f"{service} returned invalid JSON",
                        details={"service": service, "status": resp.status_code},
                    ) from exc
            if not is_transient(resp.status_code):
                raise ExternalFailure(
                    f"{service} API error: {resp.status_code}",
                    details={"service": service, "status": resp.status_code},
                )
            failure = ExternalFailure(
                f"{service} API error: {resp.status_code}",
                retryable=True,
                details={"service": service, "status": resp.status_code},
            )
            cause = httpx.HTTPStatusError(
                failure.message, request=resp.request, response=resp
            )

        if retries >= config.max_retries:
            raise failure from cause
        sleep_s = min(config.backoff_initial * (config.backoff_factor**retries), config.backoff_max)
        logger.warning(
            f"{failure.message}; retrying in {sleep_s}s (attempt {retries + 1}/{config.max_retries})"
        )
        retries += 1
        await asyncio.sleep(sleep_s)
