"""WebSocket client wrapper for LG webOS sockets."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed

from .errors import TransportError, WebOsClientError
from .ws import connect_websocket

if TYPE_CHECKING:
    import ssl
    from collections.abc import AsyncIterator


class WebOsWsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class WebOsWsMessage:
    """Normalized WebSocket message payload."""

    type: WebOsWsMessageType
    data: str | dict[str, Any] | None = None


class WebOsWsClient:
    """Wrapper around the websockets library for one webOS socket."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(
        self,
        url: str,
        *,
        timeout: float = 15.0,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        """Connect to the device websocket."""
        self._ws = await connect_websocket(
            url,
            timeout=timeout,
            ssl_context=ssl_context,
        )

    async def close(self) -> None:
        """Close the websocket connection."""
        if self._ws is not None:
            await self._ws.close()

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Send a JSON envelope to the websocket."""
        await self.send_text(json.dumps(payload))

    async def send_text(self, data: str) -> None:
        """Send a raw text frame.

        Raises:
            TransportError: If not connected or the socket is closed
        """
        if self._ws is None:
            raise TransportError("WebSocket is not connected")
        try:
            await self._ws.send(data)
        except ConnectionClosed as err:
            raise TransportError("WebSocket is closed") from err

    async def ping(self) -> None:
        """Send a ping frame without waiting for the pong."""
        if self._ws is None:
            raise TransportError("WebSocket is not connected")
        try:
            await self._ws.ping()
        except ConnectionClosed as err:
            raise TransportError("WebSocket is closed") from err

    def __aiter__(self) -> AsyncIterator[WebOsWsMessage]:
        if self._ws is None:
            raise TransportError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[WebOsWsMessage]:
        if self._ws is None:
            raise TransportError("WebSocket is not connected")

        try:
            async for msg in self._ws:
                normalized: WebOsWsMessage | None = self._normalize_message(msg)
                if normalized is None:
                    continue
                yield normalized
        except ConnectionClosed:
            yield WebOsWsMessage(type=WebOsWsMessageType.CLOSED)
        except Exception:
            yield WebOsWsMessage(type=WebOsWsMessageType.ERROR)
        else:
            # Normal iteration completion means the peer closed gracefully.
            yield WebOsWsMessage(type=WebOsWsMessageType.CLOSED)

    @staticmethod
    def _normalize_message(msg: str | bytes) -> WebOsWsMessage | None:
        """Wrap a text frame; binary frames carry nothing webOS uses."""
        if isinstance(msg, bytes):
            return None
        return WebOsWsMessage(WebOsWsMessageType.TEXT, msg)

    @staticmethod
    def decode_json(message: WebOsWsMessage) -> dict[str, Any]:
        """Decode a TEXT message payload into a JSON envelope."""
        if message.type is not WebOsWsMessageType.TEXT:
            raise WebOsClientError("Only TEXT messages can be decoded")
        if not isinstance(message.data, str):
            raise WebOsClientError("Message data is not a string")
        result = json.loads(message.data)
        if not isinstance(result, dict):
            raise WebOsClientError("Message is not a JSON object")
        return result
