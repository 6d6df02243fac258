"""Pytest configuration and fixtures."""

import asyncio

import pytest
from aiohttp import web

from gateway.forward_service.server import create_app
from gateway.forward_service.upstream.base_transport import UpstreamTransport
from gateway.shared.config import Settings, get_settings
from gateway.shared.models import OutboundRequest, UpstreamOutcome, UpstreamSuccess

SLOW_RESPONSE_DELAY = 1.0


async def _echo(request: web.Request) -> web.Response:
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "raw_path": request.rel_url.raw_path,
            "query": {name: value for name, value in request.query.items()},
            "headers": [[name, value] for name, value in request.headers.items()],
            "body": body.decode("utf-8"),
        }
    )


async def _json(request: web.Request) -> web.Response:
    return web.Response(text='{"a":1}', content_type="application/json")


async def _missing(request: web.Request) -> web.Response:
    return web.Response(text="not found", status=404)


async def _html(request: web.Request) -> web.Response:
    return web.Response(text="<p>hi</p>", content_type="text/html")


async def _binary(request: web.Request) -> web.Response:
    return web.Response(body=b"\xff\xfe\xfd", content_type="application/octet-stream")


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(SLOW_RESPONSE_DELAY)
    return web.Response(text="too late")


async def _loop(request: web.Request) -> web.Response:
    raise web.HTTPFound("/loop")


def build_upstream_app() -> web.Application:
    """In-process stand-in for the upstream host."""
    app = web.Application()
    app.router.add_get("/json", _json)
    app.router.add_get("/missing", _missing)
    app.router.add_get("/html", _html)
    app.router.add_get("/binary", _binary)
    app.router.add_get("/slow", _slow)
    app.router.add_get("/loop", _loop)
    app.router.add_route("*", "/{tail:.*}", _echo)
    return app


class RecordingTransport(UpstreamTransport):
    """Fake transport that records outbound requests and replays a canned outcome."""

    def __init__(self, outcome: UpstreamOutcome | None = None, error: Exception | None = None):
        self.outcome = outcome or UpstreamSuccess(status_code=200, body="{}")
        self.error = error
        self.sent: list[OutboundRequest] = []

    async def send(self, request: OutboundRequest) -> UpstreamOutcome:
        self.sent.append(request)
        if self.error is not None:
            raise self.error
        return self.outcome


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read the environment afresh."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
async def upstream(aiohttp_server):
    """Running upstream test server."""
    return await aiohttp_server(build_upstream_app())


@pytest.fixture
def upstream_url(upstream) -> str:
    return f"http://{upstream.host}:{upstream.port}"


@pytest.fixture
def make_gateway(aiohttp_client):
    """Factory for a gateway test client pointed at a given upstream."""

    async def factory(upstream_host: str, **overrides):
        settings = Settings(upstream_host=upstream_host, **overrides)
        return await aiohttp_client(create_app(settings))

    return factory


@pytest.fixture
async def gateway(make_gateway, upstream_url):
    """Gateway test client forwarding to the upstream test server."""
    return await make_gateway(upstream_url)
