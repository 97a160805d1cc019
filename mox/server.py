"""mox server: wires the router, passthrough proxy and upstream client into a FastAPI app."""

import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response

from mox.config.log import get_logger
from mox.config.models import ConfigModel
from mox.context import get_correlation_id
from mox.middlewares.etag import DisableEtagMiddleware
from mox.middlewares.request_context import RequestContextMiddleware
from mox.routers.health import router as health_router
from mox.routing.router import ALL_METHODS, MoxRouter
from mox.services.pipeline.dispatcher import UpstreamDispatcher
from mox.services.pipeline.engine import ActionsOptions
from mox.services.pipeline.error_handler import ErrorHandlingService
from mox.services.pipeline.exceptions import PipelineException
from mox.services.pipeline.models import InterceptedRequest, ResponseSink
from mox.services.pipeline.passthrough import PassthroughProxy

logger = get_logger(__name__)

Initializer = Callable[[MoxRouter], None]


class MoxServer:
    """Intercepting server in front of a single upstream."""

    def __init__(self, config: Optional[ConfigModel] = None, app: Optional[FastAPI] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config or ConfigModel()
        self.target_url = self.config.target_url

        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            verify=self.config.verify_upstream_tls,
            timeout=httpx.Timeout(self.config.upstream_timeout),
        )

        # The interactive docs would shadow upstream paths
        self.app = app or FastAPI(title='mox', docs_url=None, redoc_url=None, openapi_url=None, lifespan=self._lifespan)

        self.error_handler = ErrorHandlingService()
        self.dispatcher = UpstreamDispatcher(self.http_client, error_handler=self.error_handler)
        self.proxy = PassthroughProxy(self.http_client, error_handler=self.error_handler)
        self._router = MoxRouter(
            self.app,
            ActionsOptions(
                target_url=self.target_url,
                proxy=self.proxy.forward,
                dispatcher=self.dispatcher,
                error_handler=self.error_handler,
                execution_timeout=self.config.execution_timeout,
            ),
        )

        self._is_setup = False
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        yield
        await self.aclose()

    def get_router(self) -> MoxRouter:
        return self._router

    def setup(self, initialize: Optional[Initializer] = None) -> FastAPI:
        """Install middleware and built-in routes, run the initializer, then add the catch-all.

        Routes declared after setup are matched after the catch-all, so declare
        them in ``initialize`` when ``proxy_unmatched_routes`` is on.
        """
        if self._is_setup:
            return self.app

        # Middlewares execute LIFO
        if self.config.disable_etag:
            self.app.add_middleware(DisableEtagMiddleware)
        self.app.add_middleware(RequestContextMiddleware, target_url=self.target_url)

        self.app.include_router(health_router, prefix=self.config.admin_prefix, tags=['health'])

        if callable(initialize):
            initialize(self.get_router())

        if self.config.proxy_unmatched_routes:
            self.app.add_route('/{path:path}', self._proxy_unmatched, methods=ALL_METHODS, include_in_schema=False)

        self._is_setup = True
        return self.app

    async def _proxy_unmatched(self, request: Request) -> Response:
        intercepted = await InterceptedRequest.from_request(request)
        intercepted.body = intercepted.raw_body
        try:
            return await self.proxy.forward(intercepted, ResponseSink(), self.target_url)
        except PipelineException as exc:
            logger.error('An error occurred in http proxy', error=str(exc), exc_info=True)
            return self.error_handler.build_error_response(exc, get_correlation_id())

    async def start(self, initialize: Optional[Initializer] = None) -> uvicorn.Server:
        """Serve in the background and return once the socket is listening."""
        app = self.setup(initialize)

        is_https = bool(self.config.ssl_certfile and self.config.ssl_keyfile)
        server_config = uvicorn.Config(
            app,
            host=self.config.host,
            port=self.config.port,
            ssl_certfile=self.config.ssl_certfile if is_https else None,
            ssl_keyfile=self.config.ssl_keyfile if is_https else None,
            log_config=None,
        )
        server = uvicorn.Server(server_config)
        self._serve_task = asyncio.create_task(server.serve())

        while not server.started:
            if self._serve_task.done():
                await self._serve_task
                raise RuntimeError(f'mox failed to listen on {self.config.host}:{self.config.port}')
            await asyncio.sleep(0.05)

        logger.info(f"Server is listening at {'https' if is_https else 'http'}://{self.config.host}:{self.config.port}")
        self._server = server
        return server

    async def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
            await self._serve_task
            self._server = None
            self._serve_task = None
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and not self.http_client.is_closed:
            await self.http_client.aclose()
