r"""Credential refresh on unsuccessful responses.

This module provides the ``CredentialRefreshGate`` that lets a request be
retried immediately after its credentials were refreshed, together with
the ``CredentialSource`` protocol it draws material from.
"""

from __future__ import annotations

__all__ = [
    "CREDENTIAL_STATE_KEY",
    "CredentialRefreshGate",
    "CredentialSource",
    "CredentialState",
    "StaticCredentialSource",
    "get_credential_state",
]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    import httpx

logger: logging.Logger = logging.getLogger(__name__)

# Key of the CredentialState in httpx.Request.extensions
CREDENTIAL_STATE_KEY = "credential_state"


@runtime_checkable
class CredentialSource(Protocol):
    """Supplier of the credential material attached to requests."""

    def current_material(self) -> str | None:
        """Return the current credential material, or None if there is
        none."""

    def refresh(self) -> None:
        """Refresh the credential material.

        Implementations decide whether a refresh actually happens; the
        gate only observes whether ``current_material`` changed.
        """


class StaticCredentialSource:
    r"""Credential source whose material never changes.

    Args:
        material: The credential material, or None for anonymous
            requests.

    Example:
        ```pycon
        >>> from sdkretry.retry.credentials import StaticCredentialSource
        >>> source = StaticCredentialSource("token")
        >>> source.refresh()
        >>> source.current_material()
        'token'

        ```
    """

    def __init__(self, material: str | None = None) -> None:
        self._material = material

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(has_material={self._material is not None})"

    def current_material(self) -> str | None:
        return self._material

    def refresh(self) -> None:
        """Nothing to refresh."""


@dataclass(frozen=True)
class CredentialState:
    """Credential material attached to a request, and the attempt it was
    attached for.

    Attributes:
        material: The attached material, or None if the request went out
            without credentials.
        attempt: The attempt number (0-indexed) the material was attached
            for.
    """

    material: str | None
    attempt: int = 0


def get_credential_state(request: httpx.Request) -> CredentialState | None:
    """Return the credential state recorded on a request, if any."""
    return request.extensions.get(CREDENTIAL_STATE_KEY)


class CredentialRefreshGate:
    r"""Retry immediately when an unsuccessful response was caused by
    stale credentials.

    On an unsuccessful response, the gate asks the credential source to
    refresh. If the material changed compared to what the request carried,
    the new material is attached and the request should be re-sent right
    away. Otherwise the gate declines and the regular retry policy takes
    over. The gate never sleeps and never consumes retry budget itself;
    the ``RetryCoordinator`` accounts for the retries it grants.

    Args:
        source: The credential source.
        header_name: The header carrying the credentials.
        scheme: The authorization scheme prefixed to the material. Use an
            empty string to send the raw material.
        refresh_status_codes: Status codes that trigger a refresh. ``None``
            means any unsuccessful response.

    Example:
        ```pycon
        >>> import httpx
        >>> from sdkretry.retry.credentials import CredentialRefreshGate
        >>> class RotatingSource:
        ...     def __init__(self):
        ...         self.material = "old"
        ...     def current_material(self):
        ...         return self.material
        ...     def refresh(self):
        ...         self.material = "new"
        ...
        >>> gate = CredentialRefreshGate(RotatingSource(), refresh_status_codes={401})
        >>> request = httpx.Request("GET", "https://example.com")
        >>> gate.initialize(request)
        >>> request.headers["Authorization"]
        'Bearer old'
        >>> gate.on_unsuccessful_response(request, httpx.Response(401))
        True
        >>> request.headers["Authorization"]
        'Bearer new'
        >>> gate.on_unsuccessful_response(request, httpx.Response(401))
        False

        ```
    """

    def __init__(
        self,
        source: CredentialSource,
        *,
        header_name: str = "Authorization",
        scheme: str = "Bearer",
        refresh_status_codes: Iterable[int] | None = None,
    ) -> None:
        self.source = source
        self.header_name = header_name
        self.scheme = scheme
        self.refresh_status_codes = (
            frozenset(refresh_status_codes) if refresh_status_codes is not None else None
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(source={self.source!r}, "
            f"header_name={self.header_name!r}, "
            f"refresh_status_codes={self.refresh_status_codes})"
        )

    def initialize(self, request: httpx.Request, attempt: int = 0) -> None:
        """Attach the source's current material to a request.

        Args:
            request: The request to decorate.
            attempt: The attempt number (0-indexed) being prepared.
        """
        self._apply(request, self.source.current_material(), attempt)

    def on_unsuccessful_response(self, request: httpx.Request, response: httpx.Response) -> bool:
        """Refresh credentials after an unsuccessful response.

        Args:
            request: The request that produced the response. Updated in
                place when new material is available.
            response: The unsuccessful response.

        Returns:
            True if new material was attached and the request should be
            retried immediately, otherwise False.
        """
        status = response.status_code
        if self.refresh_status_codes is not None and status not in self.refresh_status_codes:
            return False

        self.source.refresh()
        material = self.source.current_material()
        previous = get_credential_state(request) or CredentialState(material=None)
        if material == previous.material:
            logger.debug(f"Credentials unchanged after refresh for status {status}")
            return False

        logger.debug(f"Credentials refreshed after status {status}, retrying immediately")
        self._apply(request, material, previous.attempt + 1)
        return True

    def _apply(self, request: httpx.Request, material: str | None, attempt: int) -> None:
        if material is None:
            request.headers.pop(self.header_name, None)
        elif self.scheme:
            request.headers[self.header_name] = f"{self.scheme} {material}"
        else:
            request.headers[self.header_name] = material
        request.extensions[CREDENTIAL_STATE_KEY] = CredentialState(material=material, attempt=attempt)
