"""
HTTP client for the Plugwise gateway's local status endpoint.

Issues a single authenticated GET to ``http://{address}/core/modules`` and
returns the raw response body. Designed to be simple:

- HTTP Basic auth from the static gateway credential pair.
- Explicit request timeout (FETCH_TIMEOUT_S).
- Body returned on any HTTP status; extraction decides whether it is usable.
- Transport and decoding failures raise :class:`FetchError`; no retry here, the
  collector owns the schedule.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from plugwise_reader.src.errors import FetchError

if TYPE_CHECKING:
    from plugwise_reader.src.models import GatewayCredentials

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODULES_PATH: str = "/core/modules"
"""Gateway path that serves the module/meter status document."""

DEFAULT_FETCH_TIMEOUT_S: float = 10.0
"""Timeout for the whole gateway request in seconds."""


class DeviceClient:
    """Fetches the raw status document from the gateway.

    A fresh ``httpx.AsyncClient`` is opened per fetch; the gateway is on the
    local LAN and is polled only every few seconds.

    Args:
        timeout_s: Request timeout in seconds.
        transport: Optional httpx transport, used by tests to stub the
            gateway.

    Usage::

        client = DeviceClient(timeout_s=10.0)
        body = await client.fetch(credentials)
    """

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_FETCH_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._transport = transport

    async def fetch(
        self,
        credentials: GatewayCredentials,
        path: str = MODULES_PATH,
    ) -> bytes:
        """GET ``path`` from the gateway and return the body bytes.

        Args:
            credentials: Gateway address and Basic auth pair.
            path: Request path, defaults to ``/core/modules``.

        Returns:
            The complete response body, whatever the status code.

        Raises:
            FetchError: On connection failure, timeout, or an undecodable response.
        """
        url = f"http://{credentials.address}{path}"
        auth = httpx.BasicAuth(credentials.username, credentials.password)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.get(url, auth=auth)
        except httpx.TimeoutException as exc:
            raise FetchError(
                f"Timed out after {self._timeout_s}s fetching {url}"
            ) from exc
        except httpx.RequestError as exc:
            raise FetchError(f"Request error fetching {url}: {exc!r}") from exc

        if response.is_error:
            logger.warning(
                "Gateway answered HTTP %d for %s (%d bytes)",
                response.status_code,
                url,
                len(response.content),
            )
        else:
            logger.debug(
                "Fetched %d bytes from %s (HTTP %d)",
                len(response.content),
                url,
                response.status_code,
            )
        return response.content
