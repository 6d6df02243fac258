"""Replays inbound requests against the upstream host."""

from multidict import CIMultiDict
from pydantic import ValidationError

from gateway.forward_service.upstream.base_transport import UpstreamTransport
from gateway.shared.logging import get_logger
from gateway.shared.models import (
    InboundRequest,
    OutboundRequest,
    OutboundResponse,
    TransportFailure,
    UpstreamOutcome,
)

logger = get_logger(__name__)

BAD_GATEWAY_STATUS = 502
BAD_GATEWAY_BODY = "Bad Gateway"


class Forwarder:
    """
    Turns an InboundRequest into one upstream call and maps the outcome
    back into an OutboundResponse.

    Every call to forward() yields exactly one response. Failures with no
    usable upstream status, and upstream replies that cannot be relayed,
    become a 502 gateway error.
    """

    def __init__(self, transport: UpstreamTransport, upstream_host: str):
        self._transport = transport
        self._upstream_host = upstream_host

    @property
    def upstream_host(self) -> str:
        return self._upstream_host

    async def forward(self, inbound: InboundRequest) -> OutboundResponse:
        """Forward one request. Never raises."""
        uri = self.build_uri(inbound.path)

        try:
            outbound = self.build_outbound_request(inbound)
            outcome = await self._transport.send(outbound)
            response = self._build_response(outcome)

        except Exception as exc:
            logger.exception(f"Forwarding {inbound.method} {uri} failed unexpectedly: {exc}")
            response = self._build_gateway_error()

        logger.info(f"{response.status_code} {inbound.method} {uri}")

        return response

    def build_uri(self, path: str) -> str:
        return f"{self._upstream_host}{path}"

    def build_outbound_request(self, inbound: InboundRequest) -> OutboundRequest:
        """Derive the upstream request: host header dropped, GET without body sent bodyless."""
        headers = None
        if inbound.headers:
            headers = self._strip_host(inbound.headers)

        query = None
        if inbound.query:
            query = dict(inbound.query)

        body = inbound.body
        if inbound.method.upper() == "GET" and not inbound.body:
            body = None

        return OutboundRequest(
            uri=self.build_uri(inbound.path),
            method=inbound.method,
            headers=headers,
            query=query,
            body=body,
        )

    @staticmethod
    def _strip_host(headers: tuple[tuple[str, str], ...]) -> tuple[tuple[str, str], ...]:
        stripped = CIMultiDict(headers)
        stripped.popall("host", None)
        return tuple(stripped.items())

    def _build_response(self, outcome: UpstreamOutcome) -> OutboundResponse:
        if isinstance(outcome, TransportFailure):
            logger.warning(f"Upstream unavailable: {outcome.reason}")
            return self._build_gateway_error()

        try:
            return OutboundResponse(status_code=outcome.status_code, body=outcome.body)
        except ValidationError:
            logger.warning(f"Upstream returned unusable status {outcome.status_code}")
            return self._build_gateway_error()

    @staticmethod
    def _build_gateway_error() -> OutboundResponse:
        return OutboundResponse(status_code=BAD_GATEWAY_STATUS, body=BAD_GATEWAY_BODY)
