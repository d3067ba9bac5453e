"""Minimal HTTP transport shared by secret providers and template fetchers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


class TransportError(RuntimeError):
    """Raised when a request cannot reach the remote endpoint."""


@dataclass
class HttpResponse:
    """Status, headers and raw body of a completed request."""

    status: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.text())


class HttpTransport:
    """Issues requests through `urllib` with a fixed timeout.

    Non-2xx responses are returned rather than raised so callers can map
    provider-specific statuses (such as 404) to their own semantics.
    """

    def __init__(self, *, timeout: float = 30.0, user_agent: str = "apigen/1.0") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        if self._closed:
            raise TransportError("HTTP transport has been closed")
        merged = {"User-Agent": self.user_agent}
        merged.update(headers or {})
        request = Request(url, data=data, headers=merged, method=method.upper())
        effective_timeout = self.timeout if timeout is None else timeout
        try:
            with urlopen(request, timeout=effective_timeout) as response:
                status = getattr(response, "status", None) or response.getcode()
                return HttpResponse(
                    status=int(status),
                    body=response.read(),
                    headers=_header_dict(getattr(response, "headers", None)),
                )
        except HTTPError as exc:
            body = exc.read() if exc.fp is not None else b""
            return HttpResponse(status=exc.code, body=body or b"", headers=_header_dict(exc.headers))
        except URLError as exc:
            raise TransportError(f"Request to {url} failed: {exc.reason}") from exc
        except OSError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

    def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> HttpResponse:
        return self.request("GET", url, headers=headers)

    def post(
        self,
        url: str,
        *,
        data: bytes,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        return self.request("POST", url, headers=headers, data=data)

    def close(self) -> None:
        self._closed = True


def _header_dict(headers: Any) -> Dict[str, str]:
    if headers is None:
        return {}
    try:
        return {str(key).lower(): str(value) for key, value in headers.items()}
    except AttributeError:
        return {}


__all__ = ["HttpResponse", "HttpTransport", "TransportError"]
