"""Execution engine: walks a compiled chain against one live request."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from fastapi import Request, Response
from structlog.types import FilteringBoundLogger

from mox.config.log import get_logger
from mox.context import get_correlation_id
from mox.services.pipeline.body_codec import BodyCodec, default_body_codec
from mox.services.pipeline.dispatcher import UpstreamDispatcher
from mox.services.pipeline.error_handler import ErrorHandlingService
from mox.services.pipeline.exceptions import ExecutionTimeoutException, PipelineException, TransformerException
from mox.services.pipeline.models import ExecutionContext, InterceptedRequest, ResponseSink
from mox.services.pipeline.transformers import Transformer

logger = get_logger(__name__)

ProxyHandler = Callable[[InterceptedRequest, ResponseSink, str], Awaitable[Response]]


class Phase(Enum):
    REQUEST = 'request'
    RESPONSE = 'response'
    PASSTHROUGH = 'passthrough'


@dataclass
class ActionsOptions:
    """Collaborators shared by every chain built from one router."""

    target_url: str
    proxy: ProxyHandler
    dispatcher: UpstreamDispatcher
    error_handler: ErrorHandlingService = field(default_factory=ErrorHandlingService)
    codec: BodyCodec = default_body_codec
    execution_timeout: Optional[float] = None


class ExecutionEngine:
    """Runs the two-phase algorithm for a frozen chain.

    Request-phase transformers run ``modify_req`` until the first transformer
    with ``trigger_send`` is reached. That transformer decides how the
    response phase starts: full passthrough (hand off and stop), a mocked
    empty body, or one upstream call. From then on every transformer runs
    ``modify_res`` on the working body, which is finally sent to the client.
    """

    def __init__(self, chain: Tuple[Transformer, ...], options: ActionsOptions):
        self._chain = chain
        self._options = options

    @property
    def chain(self) -> Tuple[Transformer, ...]:
        return self._chain

    async def execute(self, request: InterceptedRequest, sink: ResponseSink) -> Response:
        """Execute the chain and return the response written to the sink.

        Any failure aborts the walk and is turned into an error response.
        """
        context = ExecutionContext(
            request=request,
            response=sink,
            target_url=self._options.target_url,
            transform_queue=deque(self._chain),
        )
        log = logger.bind(method=request.method, url=request.original_url)

        try:
            await self._with_deadline(self._run(context, log))
        except Exception as exc:
            log.error('An unexpected error occurred', error=str(exc), exc_info=True)
            return self._options.error_handler.build_error_response(exc, get_correlation_id())

        return sink.response

    async def _with_deadline(self, coro: Awaitable[Phase]) -> Phase:
        timeout = self._options.execution_timeout
        if timeout is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout)
        except asyncio.TimeoutError as e:
            raise ExecutionTimeoutException(f'Execution exceeded {timeout}s deadline') from e

    async def _run(self, context: ExecutionContext, log: FilteringBoundLogger) -> Phase:
        context.request.normalize_headers()
        self._options.codec.parse_request_body(context.request)

        phase = Phase.REQUEST
        body: Any = None
        queue = context.transform_queue

        while queue:
            transformer = queue.popleft()

            if phase is Phase.REQUEST and transformer.trigger_send:
                if transformer.full_pass_through:
                    log.info('Pass-through', target=context.target_url, to=context.request.url)
                    response = await self._options.proxy(context.request, context.response, context.target_url)
                    if not context.response.sent:
                        context.response.attach(response)
                    return Phase.PASSTHROUGH

                phase = Phase.RESPONSE
                if transformer.dont_request:
                    log.info('No request sent')
                    body = {}
                else:
                    upstream = await self._options.dispatcher.dispatch(context.target_url, context.request)
                    context.response.apply_upstream(upstream)
                    body = upstream.body

            if phase is Phase.RESPONSE:
                body = await self._invoke(transformer, transformer.modify_res, body, context)
            else:
                context.request = await self._invoke(transformer, transformer.modify_req, context.request, context)

        context.response.send(body)
        return phase

    async def _invoke(self, transformer: Transformer, hook: Callable[[Any, ExecutionContext], Awaitable[Any]], value: Any, context: ExecutionContext) -> Any:
        try:
            return await hook(value, context)
        except PipelineException:
            raise
        except Exception as exc:
            raise TransformerException(f"Transformer '{transformer.name}' failed: {exc}", transformer=transformer.name) from exc


class ChainHandler:
    """Compiled, immutable handler bound to one chain."""

    def __init__(self, chain: Tuple[Transformer, ...], options: ActionsOptions):
        self.engine = ExecutionEngine(chain, options)

    @property
    def chain(self) -> Tuple[Transformer, ...]:
        return self.engine.chain

    async def __call__(self, request: Request) -> Response:
        intercepted = await InterceptedRequest.from_request(request)
        return await self.engine.execute(intercepted, ResponseSink())

    async def handle(self, request: InterceptedRequest, sink: Optional[ResponseSink] = None) -> Response:
        """Run the chain against an already-built request."""
        return await self.engine.execute(request, sink or ResponseSink())
