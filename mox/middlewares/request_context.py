from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from mox.context import RequestContext, set_request_context
from mox.utils import generate_correlation_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Creates the per-request context and propagates the correlation ID."""

    def __init__(self, app, correlation_header: str = 'X-Correlation-ID', target_url: str | None = None):
        super().__init__(app)
        self.correlation_header = correlation_header
        self.target_url = target_url

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Create or use existing correlation ID
        correlation_id = request.headers.get(self.correlation_header) or generate_correlation_id()

        context = RequestContext(correlation_id=correlation_id, path=str(request.url.path), method=request.method, target_url=self.target_url)

        # Store in request state for access by route endpoints
        request.state.request_context = context
        set_request_context(context)

        response = await call_next(request)
        response.headers[self.correlation_header] = context.correlation_id

        return response
