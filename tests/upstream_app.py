"""Small upstream application that mox sits in front of during end-to-end tests."""

from typing import Dict

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse


def create_upstream_app(name: str = 'default_server') -> FastAPI:
    app = FastAPI()

    @app.get('/{ver}/array')
    async def array(ver: str):
        return ['foo', 'bar', 'baz']

    @app.get('/{ver}/object')
    async def obj(ver: str):
        return {'id': 'zxcv', 'name': 'Bob', 'location': 'Palo Alto, CA'}

    @app.get('/{ver}/country/{country}/state/{state}/info')
    async def country_info(ver: str, country: str, state: str):
        return {'country': country, 'state': state}

    @app.get('/{ver}/info')
    async def info(ver: str):
        return {'name': name}

    @app.get('/{ver}/send-back-header/{value}')
    async def send_back_header(ver: str, value: str, request: Request, response: Response):
        response.headers['x-mox-outgoing-test'] = value
        return {'received': request.headers.get('x-mox-incoming-test')}

    @app.get('/{ver}/text-plain-looks-like-json')
    async def text_plain_looks_like_json(ver: str):
        return PlainTextResponse('{"message": "looks like json"}')

    @app.get('/{ver}/etagged')
    async def etagged(ver: str):
        return Response(content=b'cached', media_type='text/plain', headers={'etag': '"v1"'})

    @app.post('/{ver}/send-back-json-body')
    async def send_back_json_body(ver: str, request: Request):
        if request.headers.get('content-type') != 'application/json':
            return PlainTextResponse('Incorrect content type', status_code=400)
        return {'message': 'ok', 'received': await request.json()}

    @app.post('/{ver}/send-back-text-body')
    async def send_back_text_body(ver: str, request: Request):
        if request.headers.get('content-type') != 'text/plain':
            return PlainTextResponse('Incorrect content type', status_code=400)
        body = await request.body()
        return PlainTextResponse(f'received: {body.decode()}')

    @app.post('/{ver}/first-5-chars')
    async def first_5_chars(ver: str, request: Request):
        if request.headers.get('content-type') != 'text/plain':
            return PlainTextResponse('Incorrect content type', status_code=400)
        body = await request.body()
        return PlainTextResponse(body.decode()[:5])

    return app


class HostRoutingTransport(httpx.AsyncBaseTransport):
    """Dispatches each request to the in-process app registered for its host."""

    def __init__(self, apps: Dict[str, FastAPI]):
        self._transports = {host: httpx.ASGITransport(app=app) for host, app in apps.items()}

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        transport = self._transports.get(request.url.host)
        if transport is None:
            raise httpx.ConnectError(f'No upstream listening at {request.url.host}', request=request)
        return await transport.handle_async_request(request)
