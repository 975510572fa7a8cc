r"""Transport abstraction used to put requests on the wire.

A transport sends one attempt and either returns the response, whatever
its status, or raises ``httpx.TransportError`` when the connection
failed. Retry logic lives above it, in ``RequestClient``.
"""

from __future__ import annotations

__all__ = ["ALL_METHODS", "HttpxTransport", "Transport"]

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from sdkretry.core.config import DEFAULT_TIMEOUT
from sdkretry.core.validation import validate_timeout

if TYPE_CHECKING:
    from collections.abc import Iterable

logger: logging.Logger = logging.getLogger(__name__)

# HTTP methods sent natively by default
ALL_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})


@runtime_checkable
class Transport(Protocol):
    """Sends a single attempt of a request."""

    supported_methods: frozenset[str]

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send the request and return the response.

        Raises:
            httpx.TransportError: If the request could not be sent or the
                response could not be received.
        """

    def close(self) -> None:
        """Release the resources held by the transport."""


class HttpxTransport:
    r"""Transport backed by an ``httpx.Client``.

    Args:
        client: Optional ``httpx.Client`` to send requests with. If
            ``None``, a client is created with ``timeout`` and closed by
            ``close``. A client passed in is never closed here.
        timeout: Timeout used for the owned client. Must be > 0.
        supported_methods: HTTP methods that can be sent as is. Other
            methods are tunnelled through ``POST`` by ``RequestClient``.

    Example:
        ```pycon
        >>> import httpx
        >>> from sdkretry.transport import HttpxTransport
        >>> mock = httpx.MockTransport(lambda request: httpx.Response(204))
        >>> transport = HttpxTransport(httpx.Client(transport=mock))
        >>> transport.send(httpx.Request("GET", "https://example.com")).status_code
        204

        ```
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        timeout: float | httpx.Timeout = DEFAULT_TIMEOUT,
        supported_methods: Iterable[str] = ALL_METHODS,
    ) -> None:
        validate_timeout(timeout)
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self.supported_methods = frozenset(method.upper() for method in supported_methods)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(owns_client={self._owns_client}, "
            f"supported_methods={sorted(self.supported_methods)})"
        )

    def send(self, request: httpx.Request) -> httpx.Response:
        return self._client.send(request)

    def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            logger.debug("Closing owned httpx client")
            self._client.close()
