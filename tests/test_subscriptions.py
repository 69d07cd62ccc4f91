"""Tests for the subscription chain."""

from __future__ import annotations

from unittest.mock import AsyncMock

from lgwebos_core.correlation import HandlerTag
from lgwebos_core.errors import TransportError
from lgwebos_core.subscriptions import SubscriptionOrchestrator, SubscriptionSpec


def _subscriber(fail: set[HandlerTag] | None = None) -> AsyncMock:
    async def _subscribe(spec: SubscriptionSpec) -> str:
        if fail and spec.tag in fail:
            raise TransportError("WebSocket is closed")
        return f"id-{spec.tag.value}"

    return AsyncMock(side_effect=_subscribe)


def _tags(mock: AsyncMock) -> list[HandlerTag]:
    return [call.args[0].tag for call in mock.call_args_list]


async def test_order_on_recent_firmware():
    subscribe = _subscriber()
    orchestrator = SubscriptionOrchestrator(subscribe, device_tag="Den", settle_delay=0)

    result = await orchestrator.run(6.0)

    assert _tags(subscribe) == [
        HandlerTag.APPS_LIST,
        HandlerTag.CHANNEL_LIST,
        HandlerTag.POWER,
        HandlerTag.FOREGROUND_APP,
        HandlerTag.CURRENT_CHANNEL,
        HandlerTag.AUDIO,
        HandlerTag.PICTURE,
        HandlerTag.SOUND_MODE,
    ]
    assert result.installed[HandlerTag.POWER] == "id-power"
    assert result.skipped == []


async def test_version_gating():
    subscribe = _subscriber()
    orchestrator = SubscriptionOrchestrator(subscribe, device_tag="Den", settle_delay=0)

    result = await orchestrator.run(4.0)

    assert HandlerTag.PICTURE in _tags(subscribe)
    assert HandlerTag.SOUND_MODE not in _tags(subscribe)
    assert result.skipped == [HandlerTag.SOUND_MODE]

    subscribe.reset_mock()
    result = await orchestrator.run(3.0)

    assert result.skipped == [HandlerTag.PICTURE, HandlerTag.SOUND_MODE]


async def test_failure_continues_chain():
    subscribe = _subscriber(fail={HandlerTag.CHANNEL_LIST})
    orchestrator = SubscriptionOrchestrator(subscribe, device_tag="Den", settle_delay=0)

    result = await orchestrator.run(5.0)

    assert HandlerTag.CHANNEL_LIST in result.failed
    assert HandlerTag.CHANNEL_LIST not in result.installed
    assert HandlerTag.AUDIO in result.installed
