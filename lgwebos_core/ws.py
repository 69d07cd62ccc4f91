"""WebSocket helpers for LG webOS device transport."""

from __future__ import annotations

import asyncio
import ssl
from typing import Any

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from .errors import (
    TransportError,
    WebOsHandshakeError,
    WebOsTimeout,
)


def insecure_ssl_context() -> ssl.SSLContext:
    """TLS context accepting the self-signed certificates webOS devices present."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


async def connect_websocket(
    url: str,
    *,
    ping_interval: float | None = None,
    timeout: float = 15.0,
    ssl_context: ssl.SSLContext | None = None,
) -> ClientConnection:
    """Connect to a webOS WebSocket endpoint.

    Library pings are off by default: the session sends its own heartbeat and
    relies on close/error events alone to detect a dead peer.

    Args:
        url: ``ws://`` or ``wss://`` endpoint
        ping_interval: Interval for library ping frames
        timeout: Connection timeout
        ssl_context: TLS context for ``wss://`` URLs (self-signed accepted
            when omitted)
    """
    kwargs: dict[str, Any] = {
        "ping_interval": ping_interval,
        "close_timeout": 5,
        "max_size": None,
    }
    if url.startswith("wss://"):
        kwargs["ssl"] = ssl_context or insecure_ssl_context()

    try:
        return await asyncio.wait_for(websockets.connect(url, **kwargs), timeout=timeout)
    except TimeoutError as err:
        raise WebOsTimeout("WebSocket connection timed out") from err
    except (InvalidHandshake, InvalidURI) as err:
        raise WebOsHandshakeError("WebSocket handshake failed") from err
    except (OSError, WebSocketException) as err:
        raise TransportError("WebSocket connection failed") from err
