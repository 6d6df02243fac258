"""Shared aiohttp client session for upstream calls."""

import aiohttp

from gateway.shared.logging import get_logger

logger = get_logger(__name__)


def build_timeout(read_timeout: float, write_timeout: float) -> aiohttp.ClientTimeout:
    """
    Build the per-request timeout policy.

    The socket read timer is armed as soon as the request is handed to the
    connection, so it bounds both a stalled send and a silent upstream.
    """
    return aiohttp.ClientTimeout(
        total=None,
        sock_connect=write_timeout,
        sock_read=read_timeout,
    )


async def setup_session(read_timeout: float, write_timeout: float) -> aiohttp.ClientSession:
    """Create the process-wide upstream session."""
    session = aiohttp.ClientSession(timeout=build_timeout(read_timeout, write_timeout))
    logger.info(f"Upstream session ready (read timeout {read_timeout}s, write timeout {write_timeout}s)")

    return session


async def cleanup_session(session: aiohttp.ClientSession | None):
    """Close the upstream session."""
    if session and not session.closed:
        await session.close()
        logger.info("Upstream session closed")
