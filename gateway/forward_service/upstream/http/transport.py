"""aiohttp implementation of the upstream transport."""

import asyncio

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from gateway.forward_service.upstream.base_transport import UpstreamTransport
from gateway.shared.logging import get_logger
from gateway.shared.models import (
    OutboundRequest,
    TransportFailure,
    UpstreamOutcome,
    UpstreamSuccess,
)

logger = get_logger(__name__)

# The inbound body arrives already de-chunked; aiohttp frames `data` itself.
FRAMING_HEADERS = ("Content-Length", "Transfer-Encoding")


class HTTPUpstreamTransport(UpstreamTransport):
    """Sends outbound requests over a shared aiohttp session."""

    def __init__(self, session: aiohttp.ClientSession):
        """
        Initialize the transport.

        Args:
            session: Long-lived client session carrying the timeout policy
        """
        self._session = session

    async def send(self, request: OutboundRequest) -> UpstreamOutcome:
        """Replay the request upstream and read the response body as text."""
        kwargs = {}
        if request.headers is not None:
            headers = CIMultiDict(request.headers)
            for name in FRAMING_HEADERS:
                headers.popall(name, None)
            kwargs["headers"] = headers
        if request.query is not None:
            kwargs["params"] = request.query
        if request.body is not None:
            kwargs["data"] = request.body

        # encoded=True keeps the inbound path byte-for-byte.
        url = URL(request.uri, encoded=True)

        logger.debug(f"Sending {request.method} upstream", extra={"uri": request.uri})

        try:
            async with self._session.request(request.method, url, **kwargs) as response:
                body = await response.text()
                return UpstreamSuccess(status_code=response.status, body=body)

        except aiohttp.ClientResponseError as exc:
            # Status-bearing failure (e.g. too many redirects).
            return UpstreamSuccess(status_code=exc.status, body=exc.message)

        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            return TransportFailure(reason=f"{type(exc).__name__}: {exc}")

        except (UnicodeDecodeError, LookupError) as exc:
            return TransportFailure(reason=f"Upstream body is not text: {exc}")
