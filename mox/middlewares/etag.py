from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


class DisableEtagMiddleware(BaseHTTPMiddleware):
    """Strips etag validators so clients never receive 304 Not Modified on proxy through."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if 'etag' in response.headers:
            del response.headers['etag']
        return response
