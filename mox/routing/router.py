"""Binds mox chains to Starlette routes with lazy, compile-once handlers."""

import threading
from typing import Callable, Generic, List, Optional, TypeVar

from fastapi import FastAPI, Request, Response

from mox.config.log import get_logger
from mox.services.pipeline.actions import Actions
from mox.services.pipeline.engine import ActionsOptions

logger = get_logger(__name__)

T = TypeVar('T')

ALL_METHODS = ['GET', 'HEAD', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS']


class CompileOnce(Generic[T]):
    """Single-assignment cell: the factory runs at most once, even under concurrent first access."""

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._done = False

    @property
    def compiled(self) -> bool:
        return self._done

    def __call__(self) -> T:
        if self._done:
            return self._value
        with self._lock:
            if not self._done:
                self._value = self._factory()
                self._done = True
        return self._value


class MoxRouter:
    """Entry point for declaring chains: ``router.get('/path').goto(...).mutate(...)``."""

    def __init__(self, app: FastAPI, options: ActionsOptions):
        self._app = app
        self._options = options

    def _apply_mox(self, path: str, methods: List[str]) -> Actions:
        actions = Actions(self._options)
        compile_once = CompileOnce(actions.compile)

        async def endpoint(request: Request) -> Response:
            if not compile_once.compiled:
                logger.debug('Compiling chain', path=path, methods=methods)
            request_context = getattr(request.state, 'request_context', None)
            if request_context is not None:
                request_context.route = path
            handler = compile_once()
            return await handler(request)

        self._app.add_route(path, endpoint, methods=methods, include_in_schema=False)
        return actions

    def all(self, path: str) -> Actions:
        return self._apply_mox(path, ALL_METHODS)

    def get(self, path: str) -> Actions:
        return self._apply_mox(path, ['GET'])

    def put(self, path: str) -> Actions:
        return self._apply_mox(path, ['PUT'])

    def post(self, path: str) -> Actions:
        return self._apply_mox(path, ['POST'])

    def delete(self, path: str) -> Actions:
        return self._apply_mox(path, ['DELETE'])

    def patch(self, path: str) -> Actions:
        return self._apply_mox(path, ['PATCH'])

    def head(self, path: str) -> Actions:
        return self._apply_mox(path, ['HEAD'])

    def options(self, path: str) -> Actions:
        return self._apply_mox(path, ['OPTIONS'])
