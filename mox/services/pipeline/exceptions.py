"""Pipeline service domain exceptions."""

from typing import Optional


class PipelineException(Exception):
    """Base exception for pipeline operations."""

    def __init__(self, message: str, correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class BodyDecodeException(PipelineException):
    """Request body could not be decoded for its declared content type."""

    pass


class TransformerException(PipelineException):
    """Exception raised from inside a transformer hook."""

    def __init__(self, message: str, transformer: Optional[str] = None, correlation_id: Optional[str] = None):
        super().__init__(message, correlation_id)
        self.transformer = transformer


class UpstreamException(PipelineException):
    """Exception for upstream communication errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, correlation_id: Optional[str] = None):
        super().__init__(message, correlation_id)
        self.status_code = status_code


class UpstreamConnectionException(UpstreamException):
    """Upstream could not be reached."""

    pass


class UpstreamTimeoutException(UpstreamException):
    """Upstream did not answer in time."""

    pass


class ExecutionTimeoutException(PipelineException):
    """Intercepted request exceeded its execution deadline."""

    pass


class ResponseAlreadySentException(PipelineException):
    """Response sink was written more than once."""

    pass
