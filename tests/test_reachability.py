"""Tests for the HTTP reachability probe and monitor."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiohttp

from lgwebos_core.reachability import ReachabilityMonitor, WebOsHttpProbe

from .conftest import create_mock_response


class TestWebOsHttpProbe:
    """Tests for WebOsHttpProbe.is_reachable()."""

    async def test_any_answer_is_reachable(self, mock_session: MagicMock):
        mock_session.get.return_value = create_mock_response(status=404)
        probe = WebOsHttpProbe(mock_session, "192.168.1.20", 3000)

        assert await probe.is_reachable() is True
        assert mock_session.get.call_args.args[0] == "http://192.168.1.20:3000/"

    async def test_timeout_is_unreachable(self, mock_session: MagicMock):
        mock_session.get.side_effect = TimeoutError()
        probe = WebOsHttpProbe(mock_session, "192.168.1.20", 3000)

        assert await probe.is_reachable() is False

    async def test_client_error_is_unreachable(self, mock_session: MagicMock):
        mock_session.get.side_effect = aiohttp.ClientConnectionError("refused")
        probe = WebOsHttpProbe(mock_session, "192.168.1.20", 3000)

        assert await probe.is_reachable() is False


def _session(connected: bool) -> MagicMock:
    session = MagicMock()
    session.name = "Den"
    session.is_connected = connected
    session.connect_now = AsyncMock(return_value=True)
    session.drop_connection = AsyncMock()
    return session


class TestReachabilityMonitor:
    """Tests for ReachabilityMonitor.check_once()."""

    async def test_reachable_triggers_connect(self):
        probe = MagicMock(is_reachable=AsyncMock(return_value=True))
        session = _session(connected=False)
        monitor = ReachabilityMonitor(probe, session)

        assert await monitor.check_once() is True

        session.connect_now.assert_awaited_once()
        session.drop_connection.assert_not_called()

    async def test_unreachable_drops_connection(self):
        probe = MagicMock(is_reachable=AsyncMock(return_value=False))
        session = _session(connected=True)
        monitor = ReachabilityMonitor(probe, session)

        await monitor.check_once()

        session.drop_connection.assert_awaited_once()
        assert monitor.reachable is False

    async def test_steady_state_no_action(self):
        probe = MagicMock(is_reachable=AsyncMock(return_value=True))
        session = _session(connected=True)
        monitor = ReachabilityMonitor(probe, session)

        await monitor.check_once()

        session.connect_now.assert_not_called()
        session.drop_connection.assert_not_called()

    async def test_start_stop(self):
        probe = MagicMock(is_reachable=AsyncMock(return_value=True))
        session = _session(connected=True)
        monitor = ReachabilityMonitor(probe, session, interval=0.01)

        monitor.start()
        await monitor.stop()
        await monitor.stop()
