"""Fixed subscription chain issued once a session is paired."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from .correlation import HandlerTag
from .errors import WebOsClientError
from .protocol import (
    PICTURE_SETTINGS_PAYLOAD,
    SOUND_MODE_PAYLOAD,
    URI_AUDIO_STATUS,
    URI_CHANNEL_LIST,
    URI_CURRENT_CHANNEL,
    URI_FOREGROUND_APP,
    URI_INSTALLED_APPS,
    URI_POWER_STATE,
    URI_SYSTEM_SETTINGS,
)

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionSpec:
    """One subscribe request in the chain.

    Attributes:
        tag: Handler receiving the notifications
        uri: Service URI
        payload: Optional request payload
        min_version: Lowest software generation that supports it
    """

    tag: HandlerTag
    uri: str
    payload: dict[str, Any] | None = None
    min_version: float | None = None

    def supported(self, software_version: float) -> bool:
        return self.min_version is None or software_version >= self.min_version


LIST_SUBSCRIPTIONS: tuple[SubscriptionSpec, ...] = (
    SubscriptionSpec(HandlerTag.APPS_LIST, URI_INSTALLED_APPS),
    SubscriptionSpec(HandlerTag.CHANNEL_LIST, URI_CHANNEL_LIST),
)

STATUS_SUBSCRIPTIONS: tuple[SubscriptionSpec, ...] = (
    SubscriptionSpec(HandlerTag.POWER, URI_POWER_STATE),
    SubscriptionSpec(HandlerTag.FOREGROUND_APP, URI_FOREGROUND_APP),
    SubscriptionSpec(HandlerTag.CURRENT_CHANNEL, URI_CURRENT_CHANNEL),
    SubscriptionSpec(HandlerTag.AUDIO, URI_AUDIO_STATUS),
    SubscriptionSpec(
        HandlerTag.PICTURE,
        URI_SYSTEM_SETTINGS,
        payload=PICTURE_SETTINGS_PAYLOAD,
        min_version=4.0,
    ),
    SubscriptionSpec(
        HandlerTag.SOUND_MODE,
        URI_SYSTEM_SETTINGS,
        payload=SOUND_MODE_PAYLOAD,
        min_version=6.0,
    ),
)


@dataclass
class SubscriptionResult:
    """Outcome of one chain run."""

    installed: dict[HandlerTag, str] = field(default_factory=dict)
    failed: dict[HandlerTag, WebOsClientError] = field(default_factory=dict)
    skipped: list[HandlerTag] = field(default_factory=list)


class SubscriptionOrchestrator:
    """Issues the subscription chain in strict order.

    A failing subscription is logged and the chain moves on; nothing is
    retried until the next full reconnect.
    """

    def __init__(
        self,
        subscribe: Callable[[SubscriptionSpec], Awaitable[str]],
        *,
        device_tag: str,
        settle_delay: float = 2.0,
    ) -> None:
        self._subscribe = subscribe
        self._device_tag = device_tag
        self._settle_delay = settle_delay

    async def run(self, software_version: float) -> SubscriptionResult:
        """Fire the chain; returns once the last subscribe has been sent."""
        result = SubscriptionResult()

        for spec in LIST_SUBSCRIPTIONS:
            await self._fire(spec, result)

        if self._settle_delay:
            await asyncio.sleep(self._settle_delay)

        for spec in STATUS_SUBSCRIPTIONS:
            if not spec.supported(software_version):
                result.skipped.append(spec.tag)
                continue
            await self._fire(spec, result)

        _LOGGER.info(
            "[%s] Subscriptions installed: %d, failed: %d, skipped: %d",
            self._device_tag,
            len(result.installed),
            len(result.failed),
            len(result.skipped),
        )
        return result

    async def _fire(self, spec: SubscriptionSpec, result: SubscriptionResult) -> None:
        try:
            msg_id = await self._subscribe(spec)
        except WebOsClientError as err:
            _LOGGER.warning(
                "[%s] Subscribe %s failed: %s", self._device_tag, spec.tag.value, err
            )
            result.failed[spec.tag] = err
            return
        result.installed[spec.tag] = msg_id
        _LOGGER.debug("[%s] Subscribed %s (id=%s)", self._device_tag, spec.uri, msg_id)
