"""Fluent builder that accumulates a chain of transformers for one route."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, Union

from mox.config.log import get_logger
from mox.services.pipeline.engine import ActionsOptions, ChainHandler
from mox.services.pipeline.models import ExecutionContext, InterceptedRequest, ResponseSink
from mox.services.pipeline.transformers import (
    PASS_THROUGH,
    Transformer,
    call_flexible,
    flex_transformer,
    request_transformer,
    resolve,
    response_transformer,
)

logger = get_logger(__name__)

GotoTarget = Union[str, Callable[[str, InterceptedRequest], str]]


class Actions:
    """Chain builder; every operation appends a transformer and returns self.

    Flex operations (``delay``, ``log``, ``apply``) act in whichever phase they
    are reached. Request operations (``req``, ``goto``, ``set_base``) only act
    before the trigger. Response operations (``res``, ``status``, ``mutate``,
    ``mock``, ``send``) trigger the transition, so any request operation
    declared after one of them never runs.
    """

    def __init__(self, options: ActionsOptions):
        self.options = options
        self._transformers: List[Transformer] = []

    @property
    def transformers(self) -> List[Transformer]:
        return list(self._transformers)

    def _add_req_transform(self, fn: Callable[[InterceptedRequest, ExecutionContext], Any], name: str) -> None:
        self._transformers.append(request_transformer(fn, name=name))

    def _add_res_transform(self, fn: Callable[[Any, ExecutionContext], Any], name: str, dont_request: bool = False) -> None:
        self._transformers.append(response_transformer(fn, name=name, dont_request=dont_request))

    # ------------------------------------------------------------------
    # Flex transforms
    # ------------------------------------------------------------------
    def delay(self, ms: float) -> 'Actions':
        async def _delay(pass_through: Any, context: ExecutionContext) -> Any:
            await asyncio.sleep(ms / 1000)
            return pass_through

        self._transformers.append(flex_transformer(_delay, name='delay'))
        return self

    def log(self, hide_headers: bool = False) -> 'Actions':
        def _log_request(request: InterceptedRequest, context: ExecutionContext) -> InterceptedRequest:
            info = {'url': request.url, 'params': request.path_params, 'query': request.query_params}
            if not hide_headers:
                info['headers'] = request.headers
            logger.info('REQUEST INFO', method=request.method, original_url=request.original_url, **info)
            return request

        def _log_response(body: Any, context: ExecutionContext) -> Any:
            info = {'status': context.response.status_code}
            if not hide_headers:
                info['headers'] = context.response.get_headers()
            logger.info('RESPONSE INFO', method=context.request.method, original_url=context.request.original_url, body=body, **info)
            return body

        self._transformers.append(Transformer(trigger_send=False, on_request=_log_request, on_response=_log_response, name='log'))
        return self

    def apply(self, fn: Callable[..., Any]) -> 'Actions':
        """Decide part of the chain per request.

        ``fn(mox, req, res)`` receives a fresh builder; whatever it declares is
        spliced onto the front of the remaining queue and runs next.
        """

        async def _execute(pass_through: Any, context: ExecutionContext) -> Any:
            mox = Actions(self.options)
            await resolve(call_flexible(fn, mox, context.request, context.response))
            context.transform_queue.extendleft(reversed(mox._transformers))
            return pass_through

        self._transformers.append(flex_transformer(_execute, name='apply'))
        return self

    def req(self, fn: Callable[[InterceptedRequest], Any]) -> 'Actions':
        async def _req(request: InterceptedRequest, context: ExecutionContext) -> InterceptedRequest:
            await resolve(fn(request))
            return request

        self._add_req_transform(_req, name='req')
        return self

    def res(self, fn: Callable[[ResponseSink], Any]) -> 'Actions':
        async def _res(body: Any, context: ExecutionContext) -> Any:
            await resolve(fn(context.response))
            return body

        self._add_res_transform(_res, name='res')
        return self

    # ------------------------------------------------------------------
    # Response transforms
    # ------------------------------------------------------------------
    def status(self, status_code: int) -> 'Actions':
        def _status(body: Any, context: ExecutionContext) -> Any:
            context.response.status(status_code)
            return body

        self._add_res_transform(_status, name='status')
        return self

    def mutate(self, mutator: Callable[..., Any]) -> 'Actions':
        self._add_res_transform(lambda body, context: call_flexible(mutator, body, context), name='mutate')
        return self

    def mock(self, response: Any, status_code: Optional[int] = None) -> 'Actions':
        def _mock(body: Any, context: ExecutionContext) -> Any:
            if isinstance(status_code, int):
                context.response.status(status_code)
            return response

        self._add_res_transform(_mock, name='mock', dont_request=True)
        return self

    def send(self) -> 'Actions':
        self._add_res_transform(lambda body, context: body, name='send')
        return self

    # ------------------------------------------------------------------
    # Request transforms
    # ------------------------------------------------------------------
    def goto(self, path: GotoTarget) -> 'Actions':
        def _goto(request: InterceptedRequest, context: ExecutionContext) -> InterceptedRequest:
            request.url = path(request.url, request) if callable(path) else path
            return request

        self._add_req_transform(_goto, name='goto')
        return self

    def set_base(self, target_url: str) -> 'Actions':
        def _set_base(request: InterceptedRequest, context: ExecutionContext) -> InterceptedRequest:
            context.target_url = target_url
            return request

        self._add_req_transform(_set_base, name='set_base')
        return self

    def compile(self) -> ChainHandler:
        """Freeze the chain into a handler.

        A trailing full-passthrough trigger guarantees the request is still
        forwarded when only request transforms were declared.
        """
        return ChainHandler((*self._transformers, PASS_THROUGH), self.options)
