"""Full passthrough: stream the request to the upstream and its response back unchanged."""

from typing import Dict, List, Optional, Tuple

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from mox.config.log import get_logger
from mox.context import get_correlation_id
from mox.services.pipeline.body_codec import BodyCodec, default_body_codec
from mox.services.pipeline.error_handler import ErrorHandlingService
from mox.services.pipeline.models import InterceptedRequest, ResponseSink
from mox.utils import join_url

logger = get_logger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {'connection', 'keep-alive', 'proxy-authenticate', 'proxy-authorization', 'te', 'trailer', 'transfer-encoding', 'upgrade'}
)


class PassthroughProxy:
    """Hands complete ownership of the response to the upstream."""

    def __init__(self, client: httpx.AsyncClient, codec: Optional[BodyCodec] = None, error_handler: Optional[ErrorHandlingService] = None):
        self._client = client
        self._codec = codec or default_body_codec
        self._error_handler = error_handler or ErrorHandlingService()

    def build_headers(self, request: InterceptedRequest) -> Dict[str, str]:
        # host is dropped so httpx sets it for the target (change origin)
        return {name: value for name, value in request.headers.items() if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() != 'host'}

    def _response_headers(self, headers: httpx.Headers) -> List[Tuple[str, str]]:
        return [(name, value) for name, value in headers.multi_items() if name.lower() not in HOP_BY_HOP_HEADERS]

    async def forward(self, request: InterceptedRequest, sink: ResponseSink, target_url: str) -> Response:
        content = self._codec.restream_request_body(request)
        headers = self.build_headers(request)
        url = join_url(target_url, request.url)

        outbound = self._client.build_request(request.method, url, headers=headers, content=content)
        try:
            upstream = await self._client.send(outbound, stream=True)
        except httpx.HTTPError as exc:
            raise self._error_handler.convert_httpx_exception(exc, get_correlation_id()) from exc

        logger.info('Proxied to upstream', method=request.method, url=url, status_code=upstream.status_code)

        response = StreamingResponse(upstream.aiter_raw(), status_code=upstream.status_code, background=BackgroundTask(upstream.aclose))
        for name, value in self._response_headers(upstream.headers):
            response.headers.append(name, value)
        return sink.attach(response)
