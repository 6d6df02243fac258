"""Abstract base classes for the upstream transport."""

from abc import ABC, abstractmethod

from gateway.shared.models import OutboundRequest, UpstreamOutcome


class UpstreamTransport(ABC):
    """Abstract interface for talking to the upstream host."""

    @abstractmethod
    async def send(self, request: OutboundRequest) -> UpstreamOutcome:
        """
        Send one request upstream and wait for its response.

        Args:
            request: Request to replay upstream

        Returns:
            UpstreamSuccess when upstream answered with a status code,
            TransportFailure when no usable status came back. Transport
            problems are reported through the return value, not raised.
        """
        pass
