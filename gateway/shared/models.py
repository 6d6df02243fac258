"""Data models passed between the gateway handler, forwarder and upstream transport."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

JSON_CONTENT_TYPE = {"Content-Type": "application/json"}

Headers = tuple[tuple[str, str], ...]


class InboundRequest(BaseModel):
    """Request as received by the gateway."""

    model_config = ConfigDict(frozen=True)

    method: Annotated[str, Field(description="HTTP method")]
    path: Annotated[str, Field(description="Raw request path, without host or query")]
    headers: Annotated[Headers, Field(description="Header name/value pairs in arrival order")] = ()
    query: Annotated[dict[str, str], Field(description="Query parameters")] = {}
    body: Annotated[bytes, Field(description="Raw request body")] = b""


class OutboundRequest(BaseModel):
    """Request replayed against the upstream host."""

    model_config = ConfigDict(frozen=True)

    uri: Annotated[str, Field(description="Upstream host followed by the inbound path")]
    method: Annotated[str, Field(description="HTTP method")]
    headers: Annotated[Headers | None, Field(description="Headers to send, host removed")] = None
    query: Annotated[dict[str, str] | None, Field(description="Query parameters to attach")] = None
    body: Annotated[bytes | None, Field(description="Body to send; None sends no body")] = None


class UpstreamSuccess(BaseModel):
    """Upstream answered with a status code."""

    model_config = ConfigDict(frozen=True)

    status_code: Annotated[int, Field(description="Status reported by upstream")]
    body: Annotated[str, Field(description="Response body text")] = ""


class TransportFailure(BaseModel):
    """No usable status code came back from upstream."""

    model_config = ConfigDict(frozen=True)

    reason: Annotated[str, Field(description="Failure description for logs")]


UpstreamOutcome = UpstreamSuccess | TransportFailure


class OutboundResponse(BaseModel):
    """Response returned to the original caller."""

    model_config = ConfigDict(frozen=True)

    status_code: Annotated[int, Field(ge=100, le=999, description="HTTP status code")]
    headers: Annotated[dict[str, str], Field(description="Response headers")] = JSON_CONTENT_TYPE
    body: Annotated[str, Field(description="Response body text")] = ""
