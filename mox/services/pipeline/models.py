"""Domain models for the pipeline service."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Deque, Dict, Optional

import httpx
from fastapi import Request, Response

from mox.services.pipeline.body_codec import default_body_codec
from mox.services.pipeline.exceptions import ResponseAlreadySentException
from mox.utils import normalize_headers

if TYPE_CHECKING:
    from mox.services.pipeline.transformers import Transformer

# Recomputed by whoever writes the final body
UPSTREAM_SKIPPED_HEADERS = frozenset({'content-length', 'content-encoding'})

# Never carry a body; 1xx is checked by range
BODYLESS_STATUSES = frozenset({204, 304})


@dataclass
class InterceptedRequest:
    """Mutable view of the inbound request that transformers operate on."""

    method: str
    url: str
    headers: Dict[str, str]
    body: Any = None
    raw_body: bytes = b''
    original_url: str = ''
    path_params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    http_version: str = '1.1'

    def __post_init__(self):
        self.method = self.method.upper()
        if not self.original_url:
            self.original_url = self.url

    @property
    def path(self) -> str:
        return self.url.split('?', 1)[0]

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get('content-type')

    def normalize_headers(self) -> None:
        """Lower-case all header names in place."""
        self.headers = normalize_headers(self.headers)

    @classmethod
    async def from_request(cls, request: Request) -> 'InterceptedRequest':
        """Create an InterceptedRequest from a Starlette request, reading the raw body."""
        raw_body = await request.body()
        url = request.url.path
        if request.url.query:
            url = f'{url}?{request.url.query}'

        return cls(
            method=request.method,
            url=url,
            headers=normalize_headers(request.headers.items()),
            raw_body=raw_body,
            path_params=dict(request.path_params),
            query_params=dict(request.query_params),
            http_version=request.scope.get('http_version', '1.1'),
        )


@dataclass
class UpstreamResponse:
    """Result of a single upstream call with its body already decoded."""

    status_code: int
    headers: httpx.Headers
    body: Any = None


class ResponseSink:
    """Outbound response to the original client; written exactly once."""

    def __init__(self, status_code: int = 200, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.headers = httpx.Headers(headers or {})
        self._response: Optional[Response] = None

    @property
    def sent(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Optional[Response]:
        return self._response

    def status(self, status_code: int) -> 'ResponseSink':
        self.status_code = status_code
        return self

    def set_header(self, name: str, value: str) -> 'ResponseSink':
        self.headers[name] = value
        return self

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def remove_header(self, name: str) -> 'ResponseSink':
        if name in self.headers:
            del self.headers[name]
        return self

    def get_headers(self) -> Dict[str, str]:
        return dict(self.headers.items())

    def apply_upstream(self, upstream: UpstreamResponse) -> None:
        """Copy upstream status and headers, minus length and encoding headers."""
        incoming = [(name.lower(), value) for name, value in upstream.headers.multi_items() if name.lower() not in UPSTREAM_SKIPPED_HEADERS]
        replaced = {name for name, _ in incoming}
        merged = [(name, value) for name, value in self.headers.multi_items() if name.lower() not in replaced]
        merged.extend(incoming)
        self.headers = httpx.Headers(merged)
        self.status_code = upstream.status_code

    def send(self, body: Any) -> Response:
        """Render the final body and freeze the response."""
        self._ensure_unsent()
        self.remove_header('transfer-encoding')

        if self.status_code < 200 or self.status_code in BODYLESS_STATUSES:
            content, media_type = b'', None
        else:
            content, default_media_type = default_body_codec.render_body(body)
            media_type = self.headers.get('content-type') or default_media_type
        response = Response(content=content, status_code=self.status_code, media_type=media_type)
        for name, value in self.headers.multi_items():
            if name.lower() in ('content-type', 'content-length', 'transfer-encoding'):
                continue
            response.headers.append(name, value)

        self._response = response
        return response

    def attach(self, response: Response) -> Response:
        """Record a response produced by another writer, e.g. full passthrough."""
        self._ensure_unsent()
        self._response = response
        return response

    def _ensure_unsent(self) -> None:
        if self._response is not None:
            raise ResponseAlreadySentException('Response has already been sent')


@dataclass
class ExecutionContext:
    """Per-request state for one walk of a compiled chain."""

    request: InterceptedRequest
    response: ResponseSink
    target_url: str
    transform_queue: Deque['Transformer'] = field(default_factory=deque)

    @property
    def req(self) -> InterceptedRequest:
        return self.request

    @property
    def res(self) -> ResponseSink:
        return self.response
