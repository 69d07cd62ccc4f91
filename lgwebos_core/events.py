"""Outward event surface consumed by the accessory layer.

Consumers subscribe per event kind; the session publishes. Sinks never
block the session and a failing subscriber never affects the others.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

_LOGGER = logging.getLogger(__name__)


class EventKind(Enum):
    """Event names as the accessory layer knows them."""

    DEVICE_INFO = "deviceInfo"
    POWER_STATE = "powerState"
    AUDIO_STATE = "audioState"
    CURRENT_APP = "currentApp"
    CURRENT_CHANNEL = "currentChannel"
    CHANNEL_LIST = "channelList"
    APPS_LIST = "appsList"
    PICTURE_SETTINGS = "pictureSettings"
    SOUND_MODE = "soundMode"
    MESSAGE = "message"
    ERROR = "error"
    PREPARE_ACCESSORY = "prepareAccessory"


@dataclass(frozen=True)
class DeviceEvent:
    """One published event.

    Attributes:
        kind: Event kind
        data: Typed payload (state dataclass, list, str or exception)
        device: Name of the device that produced the event
    """

    kind: EventKind
    data: Any = None
    device: str | None = None


class EventSink(ABC):
    """Abstract receiver of device events."""

    @abstractmethod
    def emit(self, event: DeviceEvent) -> None:
        """Receive an event. Must not block."""


class NullSink(EventSink):
    """Discards events."""

    def emit(self, event: DeviceEvent) -> None:
        """Discard the event."""


class BufferSink(EventSink):
    """Bounded in-memory buffer (FIFO eviction) for tests and dev tools."""

    def __init__(self, max_size: int = 1000) -> None:
        self._buffer: list[DeviceEvent] = []
        self._max_size = max_size

    def emit(self, event: DeviceEvent) -> None:
        if len(self._buffer) >= self._max_size:
            self._buffer.pop(0)
        self._buffer.append(event)

    @property
    def events(self) -> list[DeviceEvent]:
        return list(self._buffer)

    def of_kind(self, kind: EventKind) -> list[DeviceEvent]:
        return [event for event in self._buffer if event.kind is kind]

    def last(self, kind: EventKind) -> DeviceEvent | None:
        matching = self.of_kind(kind)
        return matching[-1] if matching else None

    def clear(self) -> None:
        self._buffer.clear()


class CallbackSink(EventSink):
    """Forwards the event payload to a callback."""

    def __init__(self, callback: Callable[[Any], None]) -> None:
        self._callback = callback

    def emit(self, event: DeviceEvent) -> None:
        self._callback(event.data)


class EventSurface:
    """Per-kind publish/subscribe hub owned by one session.

    Usage:
        surface = EventSurface("Living room")
        unsubscribe = surface.subscribe(EventKind.POWER_STATE, on_power)
        surface.attach(BufferSink())
    """

    def __init__(self, device: str | None = None) -> None:
        self._device = device
        self._sinks: dict[EventKind, list[EventSink]] = {kind: [] for kind in EventKind}

    def subscribe(
        self, kind: EventKind, callback: Callable[[Any], None]
    ) -> Callable[[], None]:
        """Deliver the payload of every ``kind`` event to ``callback``.

        Returns:
            Callable removing the subscription
        """
        return self.attach(CallbackSink(callback), (kind,))

    def attach(
        self, sink: EventSink, kinds: Iterable[EventKind] | None = None
    ) -> Callable[[], None]:
        """Deliver full events of ``kinds`` (all kinds when omitted) to ``sink``."""
        selected = tuple(kinds) if kinds is not None else tuple(EventKind)
        for kind in selected:
            self._sinks[kind].append(sink)

        def _detach() -> None:
            for kind in selected:
                if sink in self._sinks[kind]:
                    self._sinks[kind].remove(sink)

        return _detach

    def publish(self, kind: EventKind, data: Any = None) -> DeviceEvent:
        """Send an event to every sink registered for its kind."""
        event = DeviceEvent(kind=kind, data=data, device=self._device)
        for sink in list(self._sinks[kind]):
            try:
                sink.emit(event)
            except Exception as err:
                _LOGGER.exception(
                    "[%s] Event subscriber error for %s: %s",
                    self._device,
                    kind.value,
                    err,
                )
        return event
