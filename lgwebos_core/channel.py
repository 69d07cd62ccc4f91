"""Specialized input socket for remote-control buttons and pointer events.

The device hands out a socket path on request; commands sent there are
fire-and-forget text blocks, never answered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from .errors import ChannelNotConnected, TransportError
from .protocol import build_button_message
from .ws_client import WebOsWsClient, WebOsWsMessageType

_LOGGER = logging.getLogger(__name__)


class SpecializedChannel:
    """At most one open input socket per session."""

    def __init__(
        self,
        device_tag: str,
        *,
        on_closed: Callable[[], None] | None = None,
        connect_timeout: float = 15.0,
    ) -> None:
        self._device_tag = device_tag
        self._on_closed = on_closed
        self._connect_timeout = connect_timeout
        self._ws: WebOsWsClient | None = None
        self._watch_task: asyncio.Task[None] | None = None
        self._socket_path: str | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    @property
    def socket_path(self) -> str | None:
        return self._socket_path

    async def open(self, socket_path: str) -> None:
        """Connect to ``socket_path``; replaces any previous socket.

        Raises:
            TransportError: If the socket could not be opened
        """
        if self._ws is not None:
            await self.close()

        ws_client = WebOsWsClient()
        await ws_client.connect(socket_path, timeout=self._connect_timeout)
        self._ws = ws_client
        self._socket_path = socket_path
        self._watch_task = asyncio.create_task(self._watch(ws_client))
        _LOGGER.info("[%s] Specialized socket connected: %s", self._device_tag, socket_path)

    async def close(self) -> None:
        """Close the socket; the close callback is not invoked."""
        ws_client = self._ws
        self._ws = None
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None
        if ws_client is not None:
            try:
                await asyncio.wait_for(ws_client.close(), timeout=2.0)
            except TimeoutError:
                _LOGGER.warning("[%s] Specialized socket close timed out", self._device_tag)

    async def send(self, msg_type: str, params: Mapping[str, Any] | None = None) -> None:
        """Send one command block.

        Raises:
            ChannelNotConnected: If the socket is not open
            TransportError: If the socket broke while sending
        """
        if self._ws is None:
            raise ChannelNotConnected("Specialized socket not connected")
        message = build_button_message(msg_type, params)
        await self._ws.send_text(message)
        _LOGGER.debug("[%s] Sent %s %s", self._device_tag, msg_type, dict(params or {}))

    async def send_button(self, name: str, params: Mapping[str, Any] | None = None) -> None:
        """Press a remote-control button (``HOME``, ``BACK``, ``UP`` ...)."""
        await self.send("button", {"name": name, **(params or {})})

    async def move(self, dx: int, dy: int, *, drag: bool = False) -> None:
        await self.send("move", {"dx": dx, "dy": dy, "down": drag})

    async def click(self) -> None:
        await self.send("click")

    async def scroll(self, dx: int, dy: int) -> None:
        await self.send("scroll", {"dx": dx, "dy": dy})

    async def _watch(self, ws_client: WebOsWsClient) -> None:
        """Drain the socket until the device closes it."""
        try:
            async for msg in ws_client:
                if msg.type in (WebOsWsMessageType.CLOSED, WebOsWsMessageType.ERROR):
                    break
        except TransportError as err:
            _LOGGER.debug("[%s] Specialized socket error: %s", self._device_tag, err)
        if self._ws is not ws_client:
            return
        self._ws = None
        self._watch_task = None
        _LOGGER.info("[%s] Specialized socket disconnected", self._device_tag)
        if self._on_closed is not None:
            self._on_closed()
