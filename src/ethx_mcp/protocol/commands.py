"""Opcode constants and high-level command builders.

Each command is a single opcode byte, optionally followed by one-byte
arguments. Builders validate argument ranges and return the frame bytes;
they know nothing about which module is connected.
"""

from __future__ import annotations

from enum import IntEnum

from .framing import MAX_PAYLOAD, build_frame


class Command(IntEnum):
    """ETHx command opcodes."""

    GET_MODULE_INFO = 0x10
    DIGITAL_ACTIVE = 0x20
    DIGITAL_INACTIVE = 0x21
    GET_DIGITAL_OUTPUTS = 0x24
    GET_DIGITAL_INPUTS = 0x25
    SET_ANALOGUE_VOLTAGE = 0x30
    GET_ANALOGUE_VOLTAGE = 0x32
    GET_ANALOGUE_VOLTAGE_12BIT = 0x33
    GET_SERIAL_NUMBER = 0x77
    GET_POWER_SUPPLY = 0x78
    SET_PASSWORD = 0x79
    GET_UNLOCK_TIME = 0x7A
    LOGOUT = 0x7B


# Number of reply bytes for commands whose reply size never varies.
# Digital I/O state replies depend on the module and are looked up in
# the capability table instead.
REPLY_LENGTHS: dict[Command, int] = {
    Command.GET_MODULE_INFO: 3,
    Command.DIGITAL_ACTIVE: 1,
    Command.DIGITAL_INACTIVE: 1,
    Command.SET_ANALOGUE_VOLTAGE: 1,
    Command.GET_ANALOGUE_VOLTAGE: 2,
    Command.GET_ANALOGUE_VOLTAGE_12BIT: 2,
    Command.GET_SERIAL_NUMBER: 6,
    Command.GET_POWER_SUPPLY: 1,
    Command.SET_PASSWORD: 1,
    Command.GET_UNLOCK_TIME: 1,
    Command.LOGOUT: 1,
}


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")


def build_command(command: Command, payload: bytes = b"") -> bytes:
    """Build a request frame for a command."""
    return build_frame(command.value, payload)


def build_module_info() -> bytes:
    """Build a module-info query (device type, hardware and firmware)."""
    return build_command(Command.GET_MODULE_INFO)


def build_digital_output(channel: int, active: bool, time: int = 0) -> bytes:
    """Build a command to switch a digital output.

    Args:
        channel: Output number (1-based, as printed on the module).
        active: True to make the output active, False for inactive.
        time: Pulse time in units of 100ms; 0 leaves the output latched.
    """
    _check_byte("Channel", channel)
    _check_byte("Time", time)
    command = Command.DIGITAL_ACTIVE if active else Command.DIGITAL_INACTIVE
    return build_command(command, bytes([channel, time]))


def build_get_digital_outputs() -> bytes:
    return build_command(Command.GET_DIGITAL_OUTPUTS)


def build_get_digital_inputs() -> bytes:
    return build_command(Command.GET_DIGITAL_INPUTS)


def build_get_analogue(channel: int, twelve_bit: bool = False) -> bytes:
    """Build an analogue input read.

    Args:
        channel: Analogue input number (1-based).
        twelve_bit: Use the 12-bit conversion (ETH484b and later firmware).
    """
    _check_byte("Channel", channel)
    command = (
        Command.GET_ANALOGUE_VOLTAGE_12BIT
        if twelve_bit
        else Command.GET_ANALOGUE_VOLTAGE
    )
    return build_command(command, bytes([channel]))


def build_set_analogue(channel: int, value: int, time: int = 0) -> bytes:
    """Build a command to set an analogue output.

    Args:
        channel: Analogue output number (1-based).
        value: Output level 0-255.
        time: Time to hold the level in units of 100ms; 0 for permanent.
    """
    _check_byte("Channel", channel)
    _check_byte("Value", value)
    _check_byte("Time", time)
    return build_command(Command.SET_ANALOGUE_VOLTAGE, bytes([channel, value, time]))


def build_get_serial_number() -> bytes:
    return build_command(Command.GET_SERIAL_NUMBER)


def build_get_power_supply() -> bytes:
    return build_command(Command.GET_POWER_SUPPLY)


def build_set_password(password: str) -> bytes:
    """Build a password unlock command.

    The password is sent as plain single-byte characters with no
    terminator.
    """
    try:
        data = password.encode("latin-1")
    except UnicodeEncodeError as e:
        raise ValueError(f"Password must be single-byte characters: {e}") from e
    if len(data) > MAX_PAYLOAD:
        raise ValueError(
            f"Password must be at most {MAX_PAYLOAD} characters, got {len(data)}"
        )
    return build_command(Command.SET_PASSWORD, data)


def build_get_unlock_time() -> bytes:
    return build_command(Command.GET_UNLOCK_TIME)


def build_logout() -> bytes:
    return build_command(Command.LOGOUT)
