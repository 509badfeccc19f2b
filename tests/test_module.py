"""Tests for the ETHModule command codec."""

import socket
from unittest.mock import MagicMock, patch

import pytest

from ethx_mcp.exceptions import (
    ChannelRangeError,
    TransportError,
    UnsupportedCommandError,
)
from ethx_mcp.models.capabilities import ETH002_ID, ETH044_ID, ETH484_ID, ETH8020_ID
from ethx_mcp.module import ETHModule
from ethx_mcp.transport.tcp_connection import TCPConnection


def _module(device_id: int, replies=None) -> tuple[ETHModule, MagicMock]:
    """An identified module over a mocked connection.

    ``replies`` is a list of byte strings returned by successive
    send_and_receive calls after the module-info exchange.
    """
    conn = MagicMock(spec=TCPConnection)
    conn.connected = True
    conn.send_and_receive.side_effect = [bytes([device_id, 1, 4])] + list(replies or [])
    module = ETHModule(conn)
    module.get_module_info()
    conn.send_and_receive.reset_mock()
    return module, conn


def test_module_info_seeds_identity():
    module, conn = _module(ETH484_ID)
    assert module.identity.device_id == ETH484_ID
    assert module.identity.hardware_version == 1
    assert module.identity.firmware_version == 4
    assert module.name == "ETH484"


def test_identity_before_info_raises():
    module = ETHModule(MagicMock(spec=TCPConnection))
    with pytest.raises(RuntimeError):
        module.identity


def test_execute_builds_frame():
    conn = MagicMock(spec=TCPConnection)
    conn.send_and_receive.return_value = b"\x01"
    module = ETHModule(conn)
    assert module.execute(0x20, b"\x01\x00", 1) == b"\x01"
    conn.send_and_receive.assert_called_once_with(b"\x20\x01\x00", 1)


def test_execute_rejects_oversized_payload():
    conn = MagicMock(spec=TCPConnection)
    module = ETHModule(conn)
    with pytest.raises(ValueError):
        module.execute(0x79, b"x" * 127, 1)
    conn.send_and_receive.assert_not_called()


def test_digital_output_active():
    module, conn = _module(ETH002_ID, [b"\x01"])
    assert module.digital_output_active(2, 5) == 1
    conn.send_and_receive.assert_called_once_with(b"\x20\x02\x05", 1)


def test_digital_output_inactive_failure_status():
    module, conn = _module(ETH002_ID, [b"\x00"])
    assert module.digital_output_inactive(1) == 0
    conn.send_and_receive.assert_called_once_with(b"\x21\x01\x00", 1)


def test_digital_output_channel_bounds():
    """Channels 1..n are accepted; others are rejected without traffic."""
    module, conn = _module(ETH002_ID, [b"\x01", b"\x01"])
    module.digital_output_active(1)
    module.digital_output_active(8)
    conn.send_and_receive.reset_mock()
    for channel in (0, -1, 9):
        with pytest.raises(ChannelRangeError):
            module.digital_output_active(channel)
    conn.send_and_receive.assert_not_called()


def test_get_digital_output_states_length_from_model():
    module, conn = _module(ETH8020_ID, [b"\x01\x00\x80"])
    assert module.get_digital_output_states() == b"\x01\x00\x80"
    conn.send_and_receive.assert_called_once_with(b"\x24", 3)


def test_get_digital_input_states():
    module, conn = _module(ETH8020_ID, [b"\x00\x00\x00\x0f"])
    assert module.get_digital_input_states() == b"\x00\x00\x00\x0f"
    conn.send_and_receive.assert_called_once_with(b"\x25", 4)


def test_digital_inputs_unsupported():
    module, conn = _module(ETH002_ID)
    with pytest.raises(UnsupportedCommandError):
        module.get_digital_input_states()
    conn.send_and_receive.assert_not_called()


def test_unknown_module_supports_nothing():
    module, conn = _module(99)
    assert module.name == "none"
    with pytest.raises(UnsupportedCommandError):
        module.get_digital_output_states()
    with pytest.raises(UnsupportedCommandError):
        module.digital_output_active(1)
    with pytest.raises(UnsupportedCommandError):
        module.read_analogue(1)
    conn.send_and_receive.assert_not_called()


def test_read_analogue():
    module, conn = _module(ETH484_ID, [b"\x03\xff"])
    assert module.read_analogue(4) == 1023
    conn.send_and_receive.assert_called_once_with(b"\x32\x04", 2)


def test_read_analogue_12bit():
    module, conn = _module(ETH484_ID, [b"\x0f\xff"])
    assert module.read_analogue_12bit(1) == 4095
    conn.send_and_receive.assert_called_once_with(b"\x33\x01", 2)


def test_analogue_channel_bounds():
    module, conn = _module(ETH484_ID, [b"\x00\x01"])
    assert module.get_analogue_voltage(1) == b"\x00\x01"
    conn.send_and_receive.reset_mock()
    for channel in (0, 5):
        with pytest.raises(ChannelRangeError):
            module.get_analogue_voltage(channel)
    conn.send_and_receive.assert_not_called()


def test_analogue_unsupported():
    module, conn = _module(ETH002_ID)
    with pytest.raises(UnsupportedCommandError):
        module.get_analogue_voltage_12bit(1)
    conn.send_and_receive.assert_not_called()


def test_set_analogue_voltage():
    module, conn = _module(ETH044_ID, [b"\x01"])
    assert module.set_analogue_voltage(4, 128, 10) == 1
    conn.send_and_receive.assert_called_once_with(b"\x30\x04\x80\x0a", 1)


def test_set_analogue_voltage_bounds():
    module, conn = _module(ETH044_ID)
    with pytest.raises(ChannelRangeError):
        module.set_analogue_voltage(5, 0)
    conn.send_and_receive.assert_not_called()


def test_set_analogue_unsupported():
    module, conn = _module(ETH484_ID)
    with pytest.raises(UnsupportedCommandError):
        module.set_analogue_voltage(1, 0)


def test_housekeeping_commands():
    module, conn = _module(
        ETH002_ID,
        [b"\x00\x04\xa3\x11\x22\x33", b"\x7c", b"\x01", b"\x1e", b"\x01"],
    )
    assert module.get_serial_number() == b"\x00\x04\xa3\x11\x22\x33"
    assert module.get_power_supply() == 124
    assert module.send_password("pw") == 1
    assert module.get_unlock_time() == 30
    assert module.logout() == 1
    sent = [c.args for c in conn.send_and_receive.call_args_list]
    assert sent == [
        (b"\x77", 6),
        (b"\x78", 1),
        (b"\x79pw", 1),
        (b"\x7a", 1),
        (b"\x7b", 1),
    ]


def test_transport_failure_propagates():
    module, conn = _module(ETH002_ID)
    conn.send_and_receive.side_effect = TransportError("reset")
    with pytest.raises(TransportError):
        module.digital_output_active(1)


def test_broken_stream_is_transport_error():
    """A module that hangs up mid-exchange surfaces as TransportError."""
    ours, theirs = socket.socketpair()
    theirs.sendall(bytes([ETH002_ID, 1, 2]))
    module = ETHModule(TCPConnection(sock=ours, timeout=1.0))
    module.get_module_info()
    theirs.close()
    try:
        with pytest.raises(TransportError):
            module.get_power_supply()
    finally:
        module.close()


def test_connect_sends_password_then_identifies():
    conn = MagicMock(spec=TCPConnection)
    conn.send_and_receive.side_effect = [b"\x01", bytes([ETH484_ID, 2, 3])]
    with patch("ethx_mcp.module.TCPConnection", return_value=conn):
        module = ETHModule.connect("192.168.0.200", password="secret")
    conn.open.assert_called_once()
    sent = [c.args for c in conn.send_and_receive.call_args_list]
    assert sent == [(b"\x79secret", 1), (b"\x10", 3)]
    assert module.name == "ETH484"


def test_connect_closes_on_failure():
    conn = MagicMock(spec=TCPConnection)
    conn.send_and_receive.side_effect = TransportError("timed out")
    with patch("ethx_mcp.module.TCPConnection", return_value=conn):
        with pytest.raises(TransportError):
            ETHModule.connect("192.168.0.200")
    conn.close.assert_called_once()
