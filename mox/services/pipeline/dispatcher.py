"""Single outbound call to the upstream for intercepted (non-passthrough) chains."""

from typing import Dict, Optional

import httpx

from mox.config.log import get_logger
from mox.context import get_correlation_id
from mox.services.pipeline.body_codec import BodyCodec, default_body_codec
from mox.services.pipeline.error_handler import ErrorHandlingService
from mox.services.pipeline.models import InterceptedRequest, UpstreamResponse
from mox.utils import join_url

logger = get_logger(__name__)

# Recomputed for the new target and the re-serialized body
_DROPPED_REQUEST_HEADERS = frozenset({'host', 'content-length', 'transfer-encoding', 'connection'})


class UpstreamDispatcher:
    def __init__(self, client: httpx.AsyncClient, codec: Optional[BodyCodec] = None, error_handler: Optional[ErrorHandlingService] = None):
        self._client = client
        self._codec = codec or default_body_codec
        self._error_handler = error_handler or ErrorHandlingService()

    def build_headers(self, request: InterceptedRequest, content: Optional[bytes]) -> Dict[str, str]:
        headers = {name: value for name, value in request.headers.items() if name.lower() not in _DROPPED_REQUEST_HEADERS}
        if content is not None:
            headers['content-length'] = str(len(content))
        if 'accept-encoding' in headers:
            # The body is decoded here, so only ask for encodings httpx can always undo
            headers['accept-encoding'] = 'gzip, deflate'
        return headers

    async def dispatch(self, target_url: str, request: InterceptedRequest) -> UpstreamResponse:
        """Send the current request to target_url and decode the upstream response."""
        content = self._codec.serialize_request_body(request)
        headers = self.build_headers(request, content)
        url = join_url(target_url, request.url)

        try:
            response = await self._client.request(request.method, url, headers=headers, content=content)
        except httpx.HTTPError as exc:
            raise self._error_handler.convert_httpx_exception(exc, get_correlation_id()) from exc

        logger.info('Sent to upstream', method=request.method, url=url, status_code=response.status_code, http_version=request.http_version)

        body = self._codec.parse_response_body(response.content, response.headers.get('content-type'), response.encoding)
        return UpstreamResponse(status_code=response.status_code, headers=response.headers, body=body)
