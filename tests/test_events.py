"""Tests for the event surface and sinks."""

from __future__ import annotations

from unittest.mock import MagicMock

from lgwebos_core.events import (
    BufferSink,
    CallbackSink,
    DeviceEvent,
    EventKind,
    EventSurface,
    NullSink,
)


class TestBufferSink:
    """Tests for BufferSink."""

    def test_bounded(self):
        sink = BufferSink(max_size=2)
        for index in range(3):
            sink.emit(DeviceEvent(EventKind.MESSAGE, str(index)))

        assert [event.data for event in sink.events] == ["1", "2"]

    def test_of_kind_and_last(self):
        sink = BufferSink()
        sink.emit(DeviceEvent(EventKind.MESSAGE, "a"))
        sink.emit(DeviceEvent(EventKind.CURRENT_APP, "netflix"))
        sink.emit(DeviceEvent(EventKind.MESSAGE, "b"))

        assert len(sink.of_kind(EventKind.MESSAGE)) == 2
        assert sink.last(EventKind.MESSAGE).data == "b"
        assert sink.last(EventKind.SOUND_MODE) is None

        sink.clear()
        assert sink.events == []


class TestEventSurface:
    """Tests for EventSurface publish/subscribe."""

    def test_subscribe_receives_payload(self):
        surface = EventSurface("Den")
        callback = MagicMock()
        surface.subscribe(EventKind.CURRENT_APP, callback)

        event = surface.publish(EventKind.CURRENT_APP, "netflix")
        surface.publish(EventKind.MESSAGE, "ignored")

        callback.assert_called_once_with("netflix")
        assert event.device == "Den"

    def test_unsubscribe(self):
        surface = EventSurface()
        callback = MagicMock()
        unsubscribe = surface.subscribe(EventKind.MESSAGE, callback)

        unsubscribe()
        surface.publish(EventKind.MESSAGE, "hello")

        callback.assert_not_called()

    def test_attach_all_kinds(self):
        surface = EventSurface()
        sink = BufferSink()
        detach = surface.attach(sink)

        surface.publish(EventKind.PREPARE_ACCESSORY)
        surface.publish(EventKind.ERROR, RuntimeError("x"))
        detach()
        surface.publish(EventKind.MESSAGE, "late")

        assert [event.kind for event in sink.events] == [
            EventKind.PREPARE_ACCESSORY,
            EventKind.ERROR,
        ]

    def test_failing_subscriber_isolated(self):
        surface = EventSurface()
        good = MagicMock()
        surface.attach(CallbackSink(MagicMock(side_effect=RuntimeError("boom"))))
        surface.subscribe(EventKind.MESSAGE, good)
        surface.attach(NullSink())

        surface.publish(EventKind.MESSAGE, "still delivered")

        good.assert_called_once_with("still delivered")
