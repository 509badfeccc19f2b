"""Command codec for a single connected ETHx module.

Every operation is one request frame followed by one fixed-size reply.
Nothing is retried: a transport failure raises ``TransportError`` and the
caller decides what to do. Commands that depend on the module's channel
counts are checked against its capability record before anything is sent.
"""

from __future__ import annotations

import logging

from .exceptions import ChannelRangeError, UnsupportedCommandError
from .models.capabilities import ModuleCapabilities
from .models.module import ModuleIdentity
from .protocol.commands import (
    REPLY_LENGTHS,
    Command,
    build_digital_output,
    build_get_analogue,
    build_get_digital_inputs,
    build_get_digital_outputs,
    build_get_power_supply,
    build_get_serial_number,
    build_get_unlock_time,
    build_logout,
    build_module_info,
    build_set_analogue,
    build_set_password,
)
from .protocol.framing import build_frame
from .protocol.parser import parse_module_info, parse_status, parse_word
from .transport.tcp_connection import DEFAULT_PORT, READ_TIMEOUT, TCPConnection

logger = logging.getLogger(__name__)


class ETHModule:
    """A connection to one ETHx module.

    Usage::

        with ETHModule.connect("192.168.0.200", password="secret") as module:
            module.digital_output_active(1)
            print(module.read_analogue(2))
    """

    def __init__(self, connection: TCPConnection) -> None:
        self._connection = connection
        self._identity: ModuleIdentity | None = None

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        password: str | None = None,
        timeout: float | None = READ_TIMEOUT,
    ) -> ETHModule:
        """Open a connection, unlock it if a password is given, and identify
        the module.

        Raises:
            TransportError: If the module cannot be reached or does not
                answer.
        """
        connection = TCPConnection(host, port, timeout=timeout)
        connection.open()
        module = cls(connection)
        try:
            if password is not None:
                status = module.send_password(password)
                logger.info("Password sent to %s, status %d", host, status)
            module.get_module_info()
        except Exception:
            connection.close()
            raise
        return module

    def __enter__(self) -> ETHModule:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._connection.close()

    @property
    def connected(self) -> bool:
        return self._connection.connected

    @property
    def identity(self) -> ModuleIdentity:
        """The identity read by ``get_module_info()``.

        Raises:
            RuntimeError: If the module has not been identified yet.
        """
        if self._identity is None:
            raise RuntimeError("Module not identified. Call get_module_info() first.")
        return self._identity

    @property
    def name(self) -> str:
        return self.identity.name

    # ─── Codec ────────────────────────────────────────────────────────

    def execute(self, command: int, payload: bytes = b"", reply_length: int = 1) -> bytes:
        """Send one command and return its raw reply.

        Args:
            command: Opcode byte.
            payload: Argument bytes (at most 126).
            reply_length: Exact number of reply bytes to read (1-127).

        Raises:
            ValueError: If the frame or reply length is out of range.
            TransportError: On any I/O failure or timeout.
        """
        return self._send(build_frame(command, payload), reply_length)

    def _send(self, frame: bytes, reply_length: int) -> bytes:
        return self._connection.send_and_receive(frame, reply_length)

    def _capabilities(self) -> ModuleCapabilities:
        return self.identity.capabilities

    def _check_channel(self, channel: int, count: int, command: str) -> None:
        if count == 0:
            raise UnsupportedCommandError(command, self.name)
        if not 1 <= channel <= count:
            raise ChannelRangeError(channel, count)

    # ─── Identity & housekeeping ──────────────────────────────────────

    def get_module_info(self) -> ModuleIdentity:
        """Query device type and versions and resolve the capability record."""
        reply = self._send(build_module_info(), REPLY_LENGTHS[Command.GET_MODULE_INFO])
        info = parse_module_info(reply)
        self._identity = ModuleIdentity.from_info(
            info.device_id, info.hardware_version, info.firmware_version
        )
        logger.info(
            "Module %s (id %d, hw %d, fw %d)",
            self._identity.name,
            info.device_id,
            info.hardware_version,
            info.firmware_version,
        )
        return self._identity

    def get_serial_number(self) -> bytes:
        """Return the module's 6-byte MAC address."""
        return self._send(
            build_get_serial_number(), REPLY_LENGTHS[Command.GET_SERIAL_NUMBER]
        )

    def get_power_supply(self) -> int:
        """Return the supply voltage in tenths of a volt."""
        reply = self._send(
            build_get_power_supply(), REPLY_LENGTHS[Command.GET_POWER_SUPPLY]
        )
        return reply[0]

    def send_password(self, password: str) -> int:
        """Unlock the module. Returns the raw status byte (1 = accepted)."""
        reply = self._send(
            build_set_password(password), REPLY_LENGTHS[Command.SET_PASSWORD]
        )
        return parse_status(reply)

    def get_unlock_time(self) -> int:
        """Return seconds until the module locks again (0 = locked)."""
        reply = self._send(
            build_get_unlock_time(), REPLY_LENGTHS[Command.GET_UNLOCK_TIME]
        )
        return reply[0]

    def logout(self) -> int:
        reply = self._send(build_logout(), REPLY_LENGTHS[Command.LOGOUT])
        return parse_status(reply)

    # ─── Digital I/O ──────────────────────────────────────────────────

    def get_digital_output_states(self) -> bytes:
        """Return the output state bitmap (length depends on the model)."""
        count = self._capabilities().digital_output_bytes
        if count == 0:
            raise UnsupportedCommandError("digital outputs", self.name)
        return self._send(build_get_digital_outputs(), count)

    def get_digital_input_states(self) -> bytes:
        """Return the input state bitmap (length depends on the model)."""
        count = self._capabilities().digital_input_bytes
        if count == 0:
            raise UnsupportedCommandError("digital inputs", self.name)
        return self._send(build_get_digital_inputs(), count)

    def digital_output_active(self, channel: int, time: int = 0) -> int:
        """Make an output active, optionally for ``time`` x 100ms.

        Returns:
            The status byte: 1 for success, 0 for failure.
        """
        return self._set_digital_output(channel, True, time)

    def digital_output_inactive(self, channel: int, time: int = 0) -> int:
        return self._set_digital_output(channel, False, time)

    def _set_digital_output(self, channel: int, active: bool, time: int) -> int:
        self._check_channel(
            channel, self._capabilities().digital_output_count, "digital outputs"
        )
        command = Command.DIGITAL_ACTIVE if active else Command.DIGITAL_INACTIVE
        reply = self._send(
            build_digital_output(channel, active, time), REPLY_LENGTHS[command]
        )
        return parse_status(reply)

    # ─── Analogue I/O ─────────────────────────────────────────────────

    def get_analogue_voltage(self, channel: int) -> bytes:
        """Read an analogue input; returns the two raw reply bytes."""
        return self._get_analogue(channel, twelve_bit=False)

    def get_analogue_voltage_12bit(self, channel: int) -> bytes:
        """Read an analogue input with the 12-bit conversion."""
        return self._get_analogue(channel, twelve_bit=True)

    def read_analogue(self, channel: int) -> int:
        return parse_word(self.get_analogue_voltage(channel))

    def read_analogue_12bit(self, channel: int) -> int:
        return parse_word(self.get_analogue_voltage_12bit(channel))

    def _get_analogue(self, channel: int, twelve_bit: bool) -> bytes:
        self._check_channel(
            channel, self._capabilities().analogue_input_count, "analogue inputs"
        )
        command = (
            Command.GET_ANALOGUE_VOLTAGE_12BIT
            if twelve_bit
            else Command.GET_ANALOGUE_VOLTAGE
        )
        return self._send(
            build_get_analogue(channel, twelve_bit), REPLY_LENGTHS[command]
        )

    def set_analogue_voltage(self, channel: int, value: int, time: int = 0) -> int:
        """Set an analogue output to ``value`` (0-255).

        Returns:
            The status byte: 1 for success, 0 for failure.
        """
        self._check_channel(
            channel, self._capabilities().analogue_output_count, "analogue outputs"
        )
        reply = self._send(
            build_set_analogue(channel, value, time),
            REPLY_LENGTHS[Command.SET_ANALOGUE_VOLTAGE],
        )
        return parse_status(reply)
