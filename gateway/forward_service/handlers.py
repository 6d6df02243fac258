from aiohttp import web

from gateway.forward_service.forwarder import Forwarder
from gateway.shared.logging import get_logger
from gateway.shared.models import InboundRequest, OutboundResponse

logger = get_logger(__name__)

FORWARDER_KEY = web.AppKey("forwarder", Forwarder)


class ForwardRequestHandler:
    """
    Adapts aiohttp requests to the Forwarder and its responses back to
    aiohttp.
    """

    def _get_forwarder(self, request: web.Request) -> Forwarder:
        """Get the forwarder from the application state."""
        forwarder = request.app.get(FORWARDER_KEY)
        if forwarder is None:
            raise RuntimeError("Forwarder is not initialized")
        return forwarder

    async def handle(self, request: web.Request) -> web.Response:
        """Public entry point used by the aiohttp router."""
        forwarder = self._get_forwarder(request)

        logger.debug(f"Incoming {request.method} {request.rel_url.raw_path}")

        inbound = await self._build_inbound_request(request)
        outbound = await forwarder.forward(inbound)

        return self._build_http_response(outbound)

    async def _build_inbound_request(self, request: web.Request) -> InboundRequest:
        """Convert incoming aiohttp request → InboundRequest."""
        body_bytes = await request.read()

        # Repeated query names keep the last value.
        query = {name: value for name, value in request.query.items()}

        return InboundRequest(
            method=request.method,
            path=request.rel_url.raw_path,
            headers=tuple(request.headers.items()),
            query=query,
            body=body_bytes,
        )

    def _build_http_response(self, outbound: OutboundResponse) -> web.Response:
        """Translate OutboundResponse → aiohttp Response."""
        return web.Response(
            body=outbound.body.encode("utf-8"),
            status=outbound.status_code,
            headers=outbound.headers,
        )
