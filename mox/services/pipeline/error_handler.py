"""Error handling service for mapping exceptions to HTTP responses."""

from typing import Optional

import httpx
import orjson
from fastapi import Response
from fastapi import status as Status

from .exceptions import (
    BodyDecodeException,
    ExecutionTimeoutException,
    PipelineException,
    ResponseAlreadySentException,
    TransformerException,
    UpstreamConnectionException,
    UpstreamException,
    UpstreamTimeoutException,
)


class ErrorHandlingService:
    """Service for handling errors and mapping them to appropriate responses."""

    def convert_httpx_exception(self, exc: httpx.HTTPError, correlation_id: Optional[str] = None) -> UpstreamException:
        """Convert httpx exceptions to domain exceptions."""

        if isinstance(exc, httpx.TimeoutException):
            return UpstreamTimeoutException(f'Upstream timed out: {exc}', correlation_id=correlation_id)
        elif isinstance(exc, httpx.TransportError):
            return UpstreamConnectionException(f'Upstream connection error: {exc}', correlation_id=correlation_id)
        elif isinstance(exc, httpx.HTTPStatusError):
            return UpstreamException(f'Upstream error: {exc}', status_code=exc.response.status_code, correlation_id=correlation_id)
        else:
            return UpstreamException(f'Upstream HTTP error: {exc}', correlation_id=correlation_id)

    def get_status_code(self, exc: Exception) -> int:
        """Map exceptions to the status returned to the original client."""

        match exc:
            case UpstreamTimeoutException() | ExecutionTimeoutException():
                return Status.HTTP_504_GATEWAY_TIMEOUT
            case UpstreamException():
                return Status.HTTP_502_BAD_GATEWAY
            case BodyDecodeException():
                return Status.HTTP_400_BAD_REQUEST
            case _:
                return Status.HTTP_500_INTERNAL_SERVER_ERROR

    def _get_error_type(self, exc: Exception) -> str:
        """Map exceptions to error type labels."""

        match exc:
            case UpstreamTimeoutException():
                return 'upstream_timeout_error'
            case UpstreamConnectionException():
                return 'upstream_connection_error'
            case UpstreamException():
                return 'upstream_error'
            case ExecutionTimeoutException():
                return 'execution_timeout_error'
            case BodyDecodeException():
                return 'invalid_request_error'
            case TransformerException():
                return 'transformer_error'
            case ResponseAlreadySentException():
                return 'response_error'
            case _:
                return 'api_error'

    def get_error_data(self, exc: Exception, correlation_id: Optional[str] = None) -> dict:
        """Structured error payload for a failed execution."""

        message = exc.message if isinstance(exc, PipelineException) else f'Request processing failed: {exc}'
        error_data = {'error': {'type': self._get_error_type(exc), 'message': message}}

        request_id = correlation_id or getattr(exc, 'correlation_id', None)
        if request_id:
            error_data['request_id'] = request_id
        return error_data

    def build_error_response(self, exc: Exception, correlation_id: Optional[str] = None) -> Response:
        return Response(
            content=orjson.dumps(self.get_error_data(exc, correlation_id)),
            status_code=self.get_status_code(exc),
            media_type='application/json',
        )
