"""Pytest configuration and fixtures for lgwebos_core tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from websockets.exceptions import ConnectionClosed

from lgwebos_core.config import WebOsConfig
from lgwebos_core.protocol import (
    URI_AUDIO_STATUS,
    URI_CHANNEL_LIST,
    URI_CURRENT_CHANNEL,
    URI_FOREGROUND_APP,
    URI_INSTALLED_APPS,
    URI_POINTER_INPUT_SOCKET,
    URI_POWER_STATE,
    URI_SOFTWARE_INFO,
    URI_SYSTEM_INFO,
)

GRANTED_KEY = "a1b2c3d4e5f60718293a4b5c"
POINTER_SOCKET = "ws://192.168.1.20:3000/resources/f00d/netinput.pointer.sock"


class FakeWebSocket:
    """In-memory stand-in for a websockets ClientConnection.

    Frames queued with push() are yielded by iteration; close() ends it.
    A responder sees every JSON frame sent and returns the replies to queue.
    """

    def __init__(
        self,
        responder: Callable[[dict[str, Any]], list[dict[str, Any]]] | None = None,
    ) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.ping = AsyncMock()
        self._responder = responder
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()

    async def send(self, data: str) -> None:
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(data)
        if self._responder is None:
            return
        try:
            frame = json.loads(data)
        except ValueError:
            return
        for reply in self._responder(frame):
            self.push(reply)

    def push(self, frame: dict[str, Any] | str) -> None:
        self._queue.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(None)

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> str:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item

    @property
    def drained(self) -> bool:
        """True once every queued frame has been taken by the reader."""
        return self._queue.empty()

    @property
    def frames(self) -> list[dict[str, Any]]:
        """Sent JSON frames, in order."""
        result = []
        for raw in self.sent:
            try:
                result.append(json.loads(raw))
            except ValueError:
                continue
        return result

    def frames_of(self, msg_type: str) -> list[dict[str, Any]]:
        return [frame for frame in self.frames if frame.get("type") == msg_type]


class FakeDevice:
    """Scripted webOS device answering register, request and subscribe frames."""

    def __init__(self) -> None:
        self.client_key: str | None = GRANTED_KEY
        self.prompt = False
        self.silent_uris: set[str] = set()
        self.failing_uris: set[str] = set()
        self.responses: dict[str, dict[str, Any]] = {
            URI_SYSTEM_INFO: {"returnValue": True, "modelName": "OLED55C9PLA"},
            URI_SOFTWARE_INFO: {
                "returnValue": True,
                "product_name": "webOSTV 5.0",
                "device_id": "a8:23:fe:00:11:22",
                "major_ver": "05",
                "minor_ver": "30.40",
            },
            URI_POINTER_INPUT_SOCKET: {"returnValue": True, "socketPath": POINTER_SOCKET},
            URI_INSTALLED_APPS: {
                "returnValue": True,
                "apps": [{"id": "netflix", "title": "Netflix"}],
            },
            URI_CHANNEL_LIST: {
                "returnValue": True,
                "channelList": [{"channelId": "1_2_3", "channelName": "One"}],
            },
            URI_POWER_STATE: {"returnValue": True, "state": "Active"},
            URI_FOREGROUND_APP: {"returnValue": True, "appId": "com.webos.app.livetv"},
            URI_CURRENT_CHANNEL: {
                "returnValue": True,
                "channelId": "1_2_3",
                "channelName": "One",
                "channelNumber": "7",
            },
            URI_AUDIO_STATUS: {"returnValue": True, "volume": 12, "mute": False},
        }

    def __call__(self, frame: dict[str, Any]) -> list[dict[str, Any]]:
        msg_id = frame.get("id")
        msg_type = frame.get("type")

        if msg_type == "register":
            replies = []
            if self.prompt:
                replies.append(
                    {
                        "id": msg_id,
                        "type": "response",
                        "payload": {"pairingType": "PROMPT", "returnValue": True},
                    }
                )
            if self.client_key is not None:
                replies.append(
                    {
                        "id": msg_id,
                        "type": "registered",
                        "payload": {"client-key": self.client_key},
                    }
                )
            return replies

        uri = frame.get("uri")
        if uri in self.silent_uris:
            return []
        if uri in self.failing_uris:
            return [{"id": msg_id, "type": "error", "error": "500 Application error"}]
        payload = self.responses.get(uri, {"returnValue": True})
        return [{"id": msg_id, "type": "response", "payload": payload}]


class FakeNetwork:
    """Hands out fake sockets for every connect_websocket call."""

    def __init__(self) -> None:
        self.device = FakeDevice()
        self.main_sockets: list[FakeWebSocket] = []
        self.pointer_sockets: list[FakeWebSocket] = []
        self.connect_error: Exception | None = None
        self.urls: list[str] = []

    def connect(self, url: str, **kwargs: Any) -> FakeWebSocket:
        self.urls.append(url)
        if self.connect_error is not None:
            raise self.connect_error
        if url == POINTER_SOCKET:
            ws = FakeWebSocket()
            self.pointer_sockets.append(ws)
        else:
            ws = FakeWebSocket(self.device)
            self.main_sockets.append(ws)
        return ws

    @property
    def main(self) -> FakeWebSocket:
        return self.main_sockets[-1]

    @property
    def pointer(self) -> FakeWebSocket:
        return self.pointer_sockets[-1]


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until ``predicate`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def fake_network() -> Iterator[FakeNetwork]:
    """Patch the socket opener used by every WebOsWsClient."""
    network = FakeNetwork()
    with patch(
        "lgwebos_core.ws_client.connect_websocket",
        new=AsyncMock(side_effect=network.connect),
    ):
        yield network


@pytest.fixture
def key_file(tmp_path: Path) -> Path:
    return tmp_path / "keys" / "192.168.1.20"


@pytest.fixture
def make_config(key_file: Path) -> Callable[..., WebOsConfig]:
    def _make(**overrides: Any) -> WebOsConfig:
        values: dict[str, Any] = {
            "host": "192.168.1.20",
            "key_file": key_file,
            "name": "Living room",
            "settle_delay": 0,
        }
        values.update(overrides)
        return WebOsConfig(**values)

    return _make


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(status: int = 200) -> AsyncMock:
    """Create a configured mock response usable as an async context manager."""
    response = AsyncMock()
    response.status = status
    response.__aenter__.return_value = response
    response.__aexit__.return_value = None
    return response
