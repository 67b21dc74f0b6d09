from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..errors import ProviderError

logger = logging.getLogger(__name__)


def build_http_client(*, base_url: str, timeout: float) -> httpx.AsyncClient:
    """Shared async client for one upstream; closed by the application lifespan."""

    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(timeout, connect=min(timeout, 2.0)),
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        headers={"Accept": "application/json"},
    )


def segment(value: str) -> str:
    return quote(value, safe="")


async def get_json(client: httpx.AsyncClient, path: str, *, provider: str) -> Any | None:
    """GET ``path`` and decode the JSON body.

    Returns None on 404. Transport failures, other non-success statuses and
    undecodable bodies raise ProviderError.
    """

    try:
        resp = await client.get(path)
    except httpx.HTTPError as exc:
        logger.warning("upstream request failed provider=%s path=%s error=%s", provider, path, exc)
        raise ProviderError(f"{provider} request failed: {exc}", provider=provider) from exc

    if resp.status_code == 404:
        return None
    if resp.status_code >= 400:
        raise ProviderError(f"{provider} returned HTTP {resp.status_code}", provider=provider)

    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderError(f"{provider} returned an undecodable body", provider=provider) from exc
