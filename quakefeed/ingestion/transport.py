"""
transport.py — HTTP transport for the feed (httpx).

The transport does exactly one thing: GET a URL and hand back the body
bytes. It does not retry; a failed call is reported once, to the caller:

    network / DNS / connection errors   → TransportError
    HTTP 4xx / 5xx                      → TransportError(upstream_status=…)
    exceeded the caller's timeout       → FeedTimeoutError

The FDSN service answers bad requests with HTTP 400 and a plain-text
explanation; the first line of that body is kept in the error message.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from quakefeed.core.config import settings
from quakefeed.core.errors import FeedTimeoutError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept": "application/json"}


class Transport(Protocol):
    def send(self, url: str, *, timeout: Optional[float] = None) -> bytes:
        ...


def _first_line(text: str, limit: int = 200) -> str:
    for line in text.splitlines():
        line = line.strip()
        if line:
            return line[:limit]
    return ""


class HttpxTransport:
    """
    Synchronous transport on top of ``httpx.Client``.

    Usage:
        transport = HttpxTransport()
        body = transport.send(url, timeout=10.0)
        transport.close()
    """

    def __init__(self, client: Optional[httpx.Client] = None):
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=settings.REQUEST_TIMEOUT,
            headers={
                **DEFAULT_HEADERS,
                "User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}",
            },
        )

    def send(self, url: str, *, timeout: Optional[float] = None) -> bytes:
        kwargs: Dict[str, Any] = {"headers": DEFAULT_HEADERS}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = self._client.get(url, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise FeedTimeoutError(timeout, url=url) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise TransportError(
                f"HTTP {status}: {_first_line(exc.response.text)}",
                url=url,
                upstream_status=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__, url=url) from exc

        logger.debug("GET %s → %d (%d bytes)", url, response.status_code, len(response.content))
        return response.content

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client and not self._client.is_closed:
            self._client.close()
