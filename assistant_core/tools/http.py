"""Shared HTTP GET helper for tool implementations."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from assistant_core.domain.exceptions import NetworkError
from assistant_core.infrastructure.logging.logger import logger

USER_AGENT = "assistant-core/0.1 (+tool-calling chat assistant)"
MAX_ERROR_BODY = 4096


async def http_get(
    url: str,
    *,
    timeout: float,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Response:
    """Perform one GET request; transport failures become NetworkError."""

    merged = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    merged.update(headers or {})
    try:
        async with httpx.AsyncClient(timeout=timeout, trust_env=False) as client:
            return await client.get(url, params=params, headers=merged)
    except httpx.RequestError as e:
        logger.error("HTTP error", extra={"extra": {"url": url, "error": str(e)}})
        raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)


def error_body(resp: httpx.Response) -> str:
    return resp.text[:MAX_ERROR_BODY]
