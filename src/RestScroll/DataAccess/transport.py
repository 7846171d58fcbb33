# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.transport",
#   "purpose": "Single-request httpx transport with bearer auth and request logging.",
#   "sections": [
#     {
#       "id": "rawresponse",
#       "name": "RawResponse",
#       "anchor": "class-rawresponse",
#       "kind": "class"
#     },
#     {
#       "id": "httptransport",
#       "name": "HttpTransport",
#       "anchor": "class-httptransport",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
HTTPX transport for the data-access layer.

Issues exactly one HTTP request per :meth:`HttpTransport.send` call and yields
either a :class:`RawResponse` (2xx) or raises
:class:`~RestScroll.DataAccess.errors.TransportFailure`. No retries and no
interpretation of the body shape happen here.

Architecture:
1. One ``httpx.AsyncClient`` per transport (injectable for tests via
   ``httpx.MockTransport``)
2. Event hooks time each request and log a ``net.request`` debug line
3. The auth collaborator (``token_provider``) is consulted per request and a
   bearer token attached when it returns one
4. A 401 response notifies ``on_unauthorized`` before the failure propagates
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import httpx

from .errors import TransportFailure

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
UnauthorizedHook = Callable[[], Union[None, Awaitable[None]]]

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_HEADERS = {"Accept": "application/json"}

_NO_BODY = object()


@dataclass(frozen=True)
class RawResponse:
    """Successful (2xx) HTTP response, body undecoded."""

    status: int
    headers: Mapping[str, str]
    content: bytes
    url: str = ""

    def json(self) -> Any:
        """Decode the body as JSON (raises ``ValueError`` if it is not JSON)."""
        return json.loads(self.content.decode("utf-8") or "null")

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")


def _decode_error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class HttpTransport:
    """Single-shot HTTP sender wrapping an ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_provider: Optional[TokenProvider] = None,
        on_unauthorized: Optional[UnauthorizedHook] = None,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Args:
            client: Preconfigured client (takes precedence over ``transport``)
            transport: Low-level transport for a newly built client
            token_provider: Returns the current bearer token or ``None``
            on_unauthorized: Called (and awaited if async) on a 401 response
            default_headers: Headers merged over :data:`DEFAULT_HEADERS`
        """
        headers = dict(DEFAULT_HEADERS)
        headers.update(default_headers or {})
        if client is None:
            client = httpx.AsyncClient(
                transport=transport,
                headers=headers,
                follow_redirects=False,
            )
        else:
            client.headers.update(headers)
        client.event_hooks["request"] = [_on_request]
        client.event_hooks["response"] = [_on_response]
        self._client = client
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _request_headers(self, extra: Optional[Mapping[str, str]], has_json: bool) -> dict:
        headers: dict = {}
        if has_json:
            headers["Content-Type"] = "application/json"
        if self._token_provider is not None:
            token = self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        if extra:
            headers.update(extra)
        return headers

    async def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = _NO_BODY,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        files: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> RawResponse:
        """
        Send one request.

        Args:
            method: HTTP verb
            url: Absolute URL
            json_body: JSON payload (omit for no body)
            params: Query parameters
            data: Form fields (multipart when ``files`` is given)
            files: Multipart file parts in any form httpx accepts
            headers: Per-request headers
            timeout_ms: Whole-request timeout; expiry surfaces as status 0

        Returns:
            The 2xx response

        Raises:
            TransportFailure: status 0 when no response was received, the
                HTTP status otherwise
        """
        has_json = json_body is not _NO_BODY
        kwargs: dict = {
            "params": params,
            "headers": self._request_headers(headers, has_json),
            "timeout": httpx.Timeout(timeout_ms / 1000.0),
        }
        if has_json:
            kwargs["json"] = json_body
        if data is not None:
            kwargs["data"] = data
        if files is not None:
            kwargs["files"] = files

        try:
            response = await self._client.request(method.upper(), url, **kwargs)
        except httpx.TransportError as exc:
            raise TransportFailure(0, url=url, cause=exc) from exc

        if response.is_success:
            return RawResponse(
                status=response.status_code,
                headers=dict(response.headers),
                content=response.content,
                url=str(response.request.url),
            )

        if response.status_code == 401 and self._on_unauthorized is not None:
            result = self._on_unauthorized()
            if result is not None:
                await result
        raise TransportFailure(response.status_code, body=_decode_error_body(response), url=url)


# ============================================================================
# Event Hooks (Telemetry)
# ============================================================================


async def _on_request(request: httpx.Request) -> None:
    """Hook: capture request start time."""
    request.extensions["t0_perf"] = time.perf_counter()


async def _on_response(response: httpx.Response) -> None:
    """Hook: log one net.request line per exchange."""
    req = response.request
    t0 = req.extensions.get("t0_perf", time.perf_counter())
    elapsed_ms = (time.perf_counter() - t0) * 1000.0
    logger.debug(
        "net.request method=%s url=%s status=%d elapsed_ms=%.1f",
        req.method,
        req.url,
        response.status_code,
        elapsed_ms,
    )
