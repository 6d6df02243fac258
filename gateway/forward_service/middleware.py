"""Middleware for OPTIONS requests."""

from aiohttp import hdrs, web

from gateway.forward_service.handlers import ForwardRequestHandler
from gateway.shared.logging import get_logger

logger = get_logger(__name__)


def is_cors_preflight(request: web.Request) -> bool:
    """A preflight is an OPTIONS request carrying Origin and Access-Control-Request-Method."""
    return (
        request.method == hdrs.METH_OPTIONS
        and hdrs.ORIGIN in request.headers
        and hdrs.ACCESS_CONTROL_REQUEST_METHOD in request.headers
    )


def plain_options_middleware(forward_handler: ForwardRequestHandler):
    """
    Forward OPTIONS requests that are not CORS preflights.

    The catch-all route's OPTIONS slot belongs to the CORS preflight handler,
    which rejects anything else with 403.
    """

    @web.middleware
    async def middleware(request: web.Request, handler):
        if request.method == hdrs.METH_OPTIONS and not is_cors_preflight(request):
            logger.debug(f"Forwarding plain OPTIONS {request.rel_url.raw_path}")
            return await forward_handler.handle(request)

        return await handler(request)

    return middleware
