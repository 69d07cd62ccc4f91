"""Tests for the specialized input socket."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from lgwebos_core.channel import SpecializedChannel
from lgwebos_core.errors import ChannelNotConnected

from .conftest import POINTER_SOCKET, FakeNetwork, wait_for


async def test_send_requires_open_socket():
    channel = SpecializedChannel("Den")
    with pytest.raises(ChannelNotConnected):
        await channel.send_button("HOME")


async def test_commands_encoded(fake_network: FakeNetwork):
    channel = SpecializedChannel("Den")
    await channel.open(POINTER_SOCKET)

    await channel.send_button("VOLUMEUP")
    await channel.move(4, -2, drag=True)
    await channel.scroll(0, 3)

    assert channel.connected
    assert channel.socket_path == POINTER_SOCKET
    assert fake_network.pointer.sent == [
        "type:button\nname:VOLUMEUP\n\n",
        "type:move\ndx:4\ndy:-2\ndown:1\n\n",
        "type:scroll\ndx:0\ndy:3\n\n",
    ]
    await channel.close()


async def test_device_close_notifies(fake_network: FakeNetwork):
    on_closed = MagicMock()
    channel = SpecializedChannel("Den", on_closed=on_closed)
    await channel.open(POINTER_SOCKET)

    await fake_network.pointer.close()
    await wait_for(lambda: not channel.connected)

    on_closed.assert_called_once_with()


async def test_local_close_is_silent(fake_network: FakeNetwork):
    on_closed = MagicMock()
    channel = SpecializedChannel("Den", on_closed=on_closed)
    await channel.open(POINTER_SOCKET)

    await channel.close()

    assert fake_network.pointer.closed
    assert not channel.connected
    on_closed.assert_not_called()


async def test_reopen_replaces_socket(fake_network: FakeNetwork):
    channel = SpecializedChannel("Den")
    await channel.open(POINTER_SOCKET)
    first = fake_network.pointer

    await channel.open(POINTER_SOCKET)

    assert first.closed
    assert len(fake_network.pointer_sockets) == 2
    await channel.close()
