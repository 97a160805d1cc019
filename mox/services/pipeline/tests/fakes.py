"""Test doubles for the pipeline collaborators."""

from typing import Any, List, Optional

import httpx
from fastapi import Response

from mox.services.pipeline.engine import ActionsOptions
from mox.services.pipeline.models import InterceptedRequest, ResponseSink, UpstreamResponse


class FakeDispatcher:
    """Records dispatched requests and answers with a canned upstream response."""

    def __init__(self, body: Any = None, status_code: int = 200, headers: Optional[dict] = None, error: Optional[Exception] = None):
        self.body = body
        self.status_code = status_code
        self.headers = headers or {'content-type': 'application/json'}
        self.error = error
        self.calls: List[dict] = []

    async def dispatch(self, target_url: str, request: InterceptedRequest) -> UpstreamResponse:
        self.calls.append({'target_url': target_url, 'url': request.url, 'body': request.body, 'headers': dict(request.headers)})
        if self.error is not None:
            raise self.error
        return UpstreamResponse(status_code=self.status_code, headers=httpx.Headers(self.headers), body=self.body)


class FakeProxy:
    """Full-passthrough delegate that answers with a fixed body."""

    def __init__(self, content: bytes = b'proxied'):
        self.content = content
        self.calls: List[dict] = []

    async def __call__(self, request: InterceptedRequest, sink: ResponseSink, target_url: str) -> Response:
        self.calls.append({'target_url': target_url, 'url': request.url, 'body': request.body, 'headers': dict(request.headers)})
        return sink.attach(Response(content=self.content, status_code=200))


def make_options(dispatcher: Optional[FakeDispatcher] = None, proxy: Optional[FakeProxy] = None, **kwargs) -> ActionsOptions:
    return ActionsOptions(
        target_url='http://upstream.test',
        proxy=proxy or FakeProxy(),
        dispatcher=dispatcher or FakeDispatcher(),
        **kwargs,
    )


def make_request(method: str = 'GET', url: str = '/start', body: bytes = b'', content_type: Optional[str] = None, headers: Optional[dict] = None) -> InterceptedRequest:
    all_headers = dict(headers or {})
    if content_type:
        all_headers['Content-Type'] = content_type
    return InterceptedRequest(method=method, url=url, headers=all_headers, raw_body=body)
