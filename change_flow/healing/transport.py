"""
HTTP collaborator used by the endpoint resolver.

Any response, whatever its status, is returned; only network-level failures
raise. ``AioHttpTransport`` is the default implementation.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

import aiohttp

from ..core.config import ChangeFlowConfig

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}
BODY_METHODS = ("POST", "PUT", "PATCH")


@dataclass
class HttpResponse:
    status: int
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


class HttpTransport(Protocol):
    async def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        ...


def decode_body(raw: bytes) -> Any:
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


class AioHttpTransport:
    """
    aiohttp-backed transport rooted at ``base_url``.

    Use as an async context manager, or call ``close()`` when done.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_config(cls, config: ChangeFlowConfig, timeout: Optional[float] = None) -> "AioHttpTransport":
        return cls(config.api_base_url, timeout=timeout)

    async def __aenter__(self) -> "AioHttpTransport":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def url_for(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        method = method.upper()
        # An explicit empty mapping sends no headers at all
        request_headers = dict(DEFAULT_HEADERS) if headers is None else dict(headers)
        body = data if data is not None and method in BODY_METHODS else None

        session = self._ensure_session()
        async with session.request(method, self.url_for(path), json=body, headers=request_headers) as resp:
            raw = await resp.read()
            return HttpResponse(status=resp.status, data=decode_body(raw), headers=dict(resp.headers))

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
