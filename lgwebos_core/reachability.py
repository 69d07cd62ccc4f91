"""HTTP reachability probe for webOS devices.

Kept outside the session state machine: the session never needs it, but a
monitor can shorten the reconnect delay when a device comes back and drop a
socket that went quiet when the device vanishes from the network.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import aiohttp

if TYPE_CHECKING:
    from .session import WebOsSession

_LOGGER = logging.getLogger(__name__)


class WebOsHttpProbe:
    """Checks whether the device answers HTTP on its websocket port."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        host: str,
        port: int,
        *,
        timeout: float = 2.0,
    ) -> None:
        self._session = session
        self._host = host
        self._port = port
        self._timeout = timeout

    def _url(self) -> str:
        return f"http://{self._host}:{self._port}/"

    async def is_reachable(self) -> bool:
        """Return True when the device sends any HTTP answer."""
        try:
            async with self._session.get(
                self._url(),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                _LOGGER.debug("Probe %s answered %s", self._host, resp.status)
                return True
        except TimeoutError:
            return False
        except aiohttp.ClientError as err:
            _LOGGER.debug("Probe %s failed: %s", self._host, err)
            return False


class ReachabilityMonitor:
    """Polls a probe and nudges the session.

    Usage:
        monitor = ReachabilityMonitor(probe, session)
        monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(
        self,
        probe: WebOsHttpProbe,
        session: WebOsSession,
        interval: float = 3.0,
    ) -> None:
        self._probe = probe
        self._session = session
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._reachable: bool | None = None

    @property
    def reachable(self) -> bool | None:
        """Result of the last probe, None before the first one."""
        return self._reachable

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def check_once(self) -> bool:
        """Probe once and act on the result."""
        reachable = await self._probe.is_reachable()
        if reachable != self._reachable:
            _LOGGER.info(
                "[%s] Device %s",
                self._session.name,
                "reachable" if reachable else "unreachable",
            )
        self._reachable = reachable

        if reachable and not self._session.is_connected:
            await self._session.connect_now()
        elif not reachable and self._session.is_connected:
            await self._session.drop_connection()
        return reachable

    async def _run(self) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(self._interval)
