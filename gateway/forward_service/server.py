"""
Gateway server entry point.
Forwards every request it receives to a single upstream host.
"""

import asyncio

import aiohttp_cors
import uvloop
from aiohttp import hdrs, web

from gateway.forward_service.forwarder import Forwarder
from gateway.forward_service.handlers import FORWARDER_KEY, ForwardRequestHandler
from gateway.forward_service.middleware import plain_options_middleware
from gateway.forward_service.upstream.http.session import cleanup_session, setup_session
from gateway.forward_service.upstream.http.transport import HTTPUpstreamTransport
from gateway.shared.config import Settings, get_settings
from gateway.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)

SETTINGS_KEY = web.AppKey("settings", Settings)

FORWARDED_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE")


async def upstream_context(app: web.Application):
    """Own the shared upstream session for the lifetime of the application."""
    settings = app[SETTINGS_KEY]
    logger.info(f"Upstream host: {settings.upstream_host}")

    session = await setup_session(settings.read_timeout, settings.write_timeout)
    app[FORWARDER_KEY] = Forwarder(HTTPUpstreamTransport(session), settings.upstream_host)

    yield

    await cleanup_session(session)


def create_app(settings: Settings | None = None) -> web.Application:
    """Create and configure the gateway application."""
    handler = ForwardRequestHandler()

    # auto_decompress off: the body is forwarded exactly as received.
    app = web.Application(
        middlewares=[plain_options_middleware(handler)],
        handler_args={"auto_decompress": False},
    )
    app[SETTINGS_KEY] = settings or get_settings()
    app.cleanup_ctx.append(upstream_context)

    # Setup CORS
    cors = aiohttp_cors.setup(
        app,
        defaults={
            "*": aiohttp_cors.ResourceOptions(
                allow_credentials=True,
                expose_headers="*",
                allow_headers="*",
                allow_methods="*",
            )
        },
    )

    resource = app.router.add_resource("/{tail:.*}")
    # Explicit methods instead of "*" so the CORS preflight route can coexist.
    for method in FORWARDED_METHODS:
        resource.add_route(method, handler.handle)
    cors.add(resource)

    # Any other method. Added after cors.add, which refuses resources holding a "*" route.
    resource.add_route(hdrs.METH_ANY, handler.handle)

    return app


class GatewayServer:
    """Binds the gateway application to a TCP socket."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    async def start(self) -> None:
        """Start the gateway and serve until cancelled."""
        runner = web.AppRunner(create_app(self.settings))
        await runner.setup()

        site = web.TCPSite(runner, self.settings.host, self.settings.port)
        await site.start()

        logger.info(f"Gateway started on http://{self.settings.host}:{self.settings.port}")

        # Keep running
        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()


def main() -> None:
    """Entry point for the gateway."""
    settings = get_settings()
    setup_logging(settings.log_level)

    server = GatewayServer(settings)

    try:
        uvloop.run(server.start())
    except KeyboardInterrupt:
        logger.info("Gateway stopped by user")


if __name__ == "__main__":
    main()
