"""HTTP client helpers shared by the update and server services."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "zama-supervisor"


def create_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Return a new client using httpx's default (non-following) redirect policy."""

    return httpx.AsyncClient(timeout=timeout, headers={"User-Agent": USER_AGENT})


@asynccontextmanager
async def client_session(
    client: httpx.AsyncClient | None = None, *, timeout: float = DEFAULT_TIMEOUT
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield ``client`` unchanged, or a fresh client that is closed on exit.

    Callers that pass their own client keep ownership of it.
    """

    if client is not None:
        yield client
        return

    async with create_client(timeout) as owned:
        yield owned


__all__ = ["DEFAULT_TIMEOUT", "client_session", "create_client"]
