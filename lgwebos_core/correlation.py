"""Correlation of outbound frames with inbound responses.

Every outbound frame carries an id. Inbound frames are routed back to the
pending entry registered under that id:

- ``REQUEST`` entries resolve once and expire after the request window
- ``SUBSCRIBE`` entries stay installed until the socket closes
- ``REGISTER`` entries stay installed while the device is prompting the user
  (``response`` frames) and are removed on the terminal ``registered`` or
  ``error`` frame
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import RequestTimeout
from .protocol import MSG_RESPONSE

_LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 2.5


class RequestKind(Enum):
    """Lifetime policy of a pending entry."""

    REQUEST = "request"
    SUBSCRIBE = "subscribe"
    REGISTER = "register"


class HandlerTag(Enum):
    """Which handler an inbound frame for this id is routed to."""

    RESPONSE = "response"
    REGISTER = "register"
    APPS_LIST = "apps_list"
    CHANNEL_LIST = "channel_list"
    POWER = "power"
    FOREGROUND_APP = "foreground_app"
    CURRENT_CHANNEL = "current_channel"
    AUDIO = "audio"
    PICTURE = "picture"
    SOUND_MODE = "sound_mode"


@dataclass(slots=True)
class PendingRequest:
    """A waiter for inbound frames carrying ``msg_id``."""

    msg_id: str
    kind: RequestKind
    tag: HandlerTag
    handler: Callable[[dict[str, Any]], None]
    uri: str | None = None
    on_timeout: Callable[[RequestTimeout], None] | None = None
    timer: asyncio.TimerHandle | None = None


class CorrelationRegistry:
    """Id allocation and dispatch table for one connection generation.

    Usage:
        registry = CorrelationRegistry()
        msg_id = registry.next_id()
        registry.register(msg_id, RequestKind.REQUEST, on_frame, on_timeout=on_timeout)
        ...
        registry.resolve(frame["id"], frame)
    """

    def __init__(self, *, request_timeout: float = REQUEST_TIMEOUT) -> None:
        self._request_timeout = request_timeout
        self._pending: dict[str, PendingRequest] = {}
        self._prefix = secrets.token_hex(4)
        self._counter = 0

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, msg_id: object) -> bool:
        return msg_id in self._pending

    def next_id(self) -> str:
        """Allocate an id: random per-generation prefix plus a counter."""
        self._counter += 1
        return f"{self._prefix}{self._counter:04x}"

    def get(self, msg_id: str) -> PendingRequest | None:
        return self._pending.get(msg_id)

    def register(
        self,
        msg_id: str,
        kind: RequestKind,
        handler: Callable[[dict[str, Any]], None],
        *,
        tag: HandlerTag = HandlerTag.RESPONSE,
        uri: str | None = None,
        on_timeout: Callable[[RequestTimeout], None] | None = None,
    ) -> PendingRequest:
        """Install a waiter for ``msg_id``.

        REQUEST entries arm a timer; this needs a running event loop.

        Raises:
            ValueError: If ``msg_id`` is already pending
        """
        if msg_id in self._pending:
            raise ValueError(f"Correlation id already pending: {msg_id}")

        pending = PendingRequest(
            msg_id=msg_id,
            kind=kind,
            tag=tag,
            handler=handler,
            uri=uri,
            on_timeout=on_timeout,
        )
        if kind is RequestKind.REQUEST:
            loop = asyncio.get_running_loop()
            pending.timer = loop.call_later(self._request_timeout, self._expire, msg_id)

        self._pending[msg_id] = pending
        return pending

    def resolve(self, msg_id: str, message: dict[str, Any]) -> bool:
        """Route an inbound frame to its waiter.

        Returns:
            True if a waiter consumed the frame, False for unknown ids
        """
        pending = self._pending.get(msg_id)
        if pending is None:
            return False

        if pending.kind is RequestKind.REQUEST:
            self._remove(msg_id)
        elif pending.kind is RequestKind.REGISTER and message.get("type") != MSG_RESPONSE:
            self._remove(msg_id)

        pending.handler(message)
        return True

    def discard(self, msg_id: str) -> bool:
        """Drop a waiter without invoking it."""
        return self._remove(msg_id) is not None

    def clear(self) -> int:
        """Drop every waiter without invoking any callback.

        Returns:
            Number of entries dropped
        """
        count = len(self._pending)
        for pending in self._pending.values():
            if pending.timer is not None:
                pending.timer.cancel()
                pending.timer = None
        self._pending.clear()
        return count

    def reset(self) -> None:
        """Start a new connection generation."""
        self.clear()
        self._prefix = secrets.token_hex(4)
        self._counter = 0

    def _remove(self, msg_id: str) -> PendingRequest | None:
        pending = self._pending.pop(msg_id, None)
        if pending is not None and pending.timer is not None:
            pending.timer.cancel()
            pending.timer = None
        return pending

    def _expire(self, msg_id: str) -> None:
        pending = self._pending.pop(msg_id, None)
        if pending is None:
            return
        pending.timer = None
        _LOGGER.debug("Request %s (%s) timed out", msg_id, pending.uri)
        if pending.on_timeout is not None:
            pending.on_timeout(RequestTimeout(msg_id, pending.uri))
