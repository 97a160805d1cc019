"""Conversion between wire bytes and in-memory bodies based on content type."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Tuple

import orjson

from mox.config.log import get_logger
from mox.services.pipeline.exceptions import BodyDecodeException

if TYPE_CHECKING:
    from mox.services.pipeline.models import InterceptedRequest

logger = get_logger(__name__)

JSON_MEDIA_TYPE = 'application/json'
BODYLESS_METHODS = frozenset({'GET', 'HEAD'})

_TEXTUAL_MARKERS = ('json', 'xml', 'javascript', 'x-www-form-urlencoded')


def split_content_type(content_type: Optional[str]) -> Tuple[str, Optional[str]]:
    """Return (media type, charset) from a content-type header value."""
    if not content_type:
        return '', None

    parts = [part.strip() for part in content_type.split(';')]
    charset = None
    for param in parts[1:]:
        key, _, value = param.partition('=')
        if key.strip().lower() == 'charset' and value:
            charset = value.strip().strip('"')
    return parts[0].lower(), charset


class BodyCodec:
    """Stateless body handling shared by the engine, dispatcher and passthrough proxy."""

    def is_json(self, content_type: Optional[str]) -> bool:
        media_type, _ = split_content_type(content_type)
        return media_type == JSON_MEDIA_TYPE

    def is_text(self, content_type: Optional[str]) -> bool:
        media_type, _ = split_content_type(content_type)
        return media_type.startswith('text/')

    def is_textual(self, content_type: Optional[str]) -> bool:
        media_type, _ = split_content_type(content_type)
        if not media_type or media_type.startswith('text/'):
            return True
        return any(marker in media_type for marker in _TEXTUAL_MARKERS)

    # ------------------------------------------------------------------
    # Request side
    # ------------------------------------------------------------------
    def parse_request_body(self, request: 'InterceptedRequest') -> None:
        """Materialize request.raw_body into request.body.

        JSON becomes a structured value (an empty JSON body becomes {}), text/*
        becomes a str and anything else stays raw bytes.
        """
        content_type = request.content_type
        raw = request.raw_body or b''

        if self.is_json(content_type):
            if not raw.strip():
                request.body = {}
                return
            try:
                request.body = orjson.loads(raw)
            except orjson.JSONDecodeError as e:
                raise BodyDecodeException(f'Invalid JSON request body: {e}') from e
        elif self.is_text(content_type):
            _, charset = split_content_type(content_type)
            request.body = raw.decode(charset or 'utf-8', errors='replace')
        else:
            if raw:
                logger.warning('Skipping body parsing for content-type', content_type=content_type, method=request.method, url=request.original_url)
            request.body = raw

    def has_body(self, method: str, body: Any) -> bool:
        """Decide whether a request carries a body worth forwarding."""
        if method.upper() in BODYLESS_METHODS:
            return isinstance(body, (dict, list)) and len(body) > 0
        return body is not None

    def serialize_request_body(self, request: 'InterceptedRequest') -> Optional[bytes]:
        """Serialize the (possibly mutated) request body for an outbound call."""
        if not self.has_body(request.method, request.body):
            return None
        return self._encode(request.body, request.content_type)

    def restream_request_body(self, request: 'InterceptedRequest') -> Optional[bytes]:
        """Serialize the body for full passthrough and fix the declared content-length."""
        content = self.serialize_request_body(request)
        if content is None:
            request.headers.pop('content-length', None)
            return None

        if request.headers.get('content-length') != str(len(content)):
            request.headers['content-length'] = str(len(content))
        return content

    # ------------------------------------------------------------------
    # Response side
    # ------------------------------------------------------------------
    def parse_response_body(self, content: bytes, content_type: Optional[str], encoding: Optional[str] = None) -> Any:
        """Decode an upstream body; only JSON-typed strings are parsed."""
        if not self.is_textual(content_type):
            return content

        _, charset = split_content_type(content_type)
        body = content.decode(charset or encoding or 'utf-8', errors='replace')
        return self.parse_intercepted_response_body(body, content_type)

    def parse_intercepted_response_body(self, body: Any, content_type: Optional[str]) -> Any:
        if isinstance(body, str) and self.is_json(content_type):
            try:
                return orjson.loads(body)
            except orjson.JSONDecodeError:
                return body
        return body

    def render_body(self, body: Any) -> Tuple[bytes, str]:
        """Return wire bytes and a default media type for a final response body."""
        if body is None:
            return b'', 'text/html; charset=utf-8'
        if isinstance(body, bytes):
            return body, 'application/octet-stream'
        if isinstance(body, str):
            return body.encode('utf-8'), 'text/html; charset=utf-8'
        return orjson.dumps(body), JSON_MEDIA_TYPE

    def _encode(self, body: Any, content_type: Optional[str] = None) -> bytes:
        if isinstance(body, bytes):
            return body
        if isinstance(body, str):
            _, charset = split_content_type(content_type)
            return body.encode(charset or 'utf-8', errors='replace')
        return orjson.dumps(body)


default_body_codec = BodyCodec()
