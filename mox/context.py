"""Request context utilities for per-request state management."""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from mox.utils import generate_correlation_id


@dataclass
class RequestContext:
    """Structured context data attached to each inbound request."""

    # Request identification
    correlation_id: str = field(default_factory=generate_correlation_id)

    # Request metadata
    method: Optional[str] = None
    path: Optional[str] = None

    # Route information (populated once a mox route matches)
    route: Optional[str] = None
    target_url: Optional[str] = None

    # Arbitrary extras for logging annotations
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, include_none: bool = False) -> Dict[str, Any]:
        """Serialize context for structured logging."""
        result: Dict[str, Any] = {}

        for key, value in {
            'correlation_id': self.correlation_id,
            'method': self.method,
            'path': self.path,
            'route': self.route,
            'target_url': self.target_url,
        }.items():
            if include_none or value is not None:
                result[key] = value

        result.update(self.extra)
        return result


request_context_var: ContextVar[RequestContext] = ContextVar('request_context', default=RequestContext())


def get_request_context() -> RequestContext:
    """Return the active request context."""

    return request_context_var.get()


def set_request_context(context: RequestContext) -> None:
    """Replace the current request context."""

    request_context_var.set(context)


def get_correlation_id() -> str:
    """Expose the correlation ID for log formatting helpers."""

    return request_context_var.get().correlation_id


__all__ = [
    'RequestContext',
    'get_request_context',
    'set_request_context',
    'get_correlation_id',
    'request_context_var',
]
