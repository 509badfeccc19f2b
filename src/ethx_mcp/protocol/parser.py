"""Reply decoding for module responses.

Replies carry no header: the caller knows which command it sent and how
many bytes came back. These helpers only turn those raw bytes into values.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Status(IntEnum):
    """Single-byte status replies."""

    FAILURE = 0
    SUCCESS = 1


@dataclass(frozen=True)
class ModuleInfoResponse:
    """Parsed module-info (0x10) reply."""

    device_id: int
    hardware_version: int
    firmware_version: int


def parse_module_info(reply: bytes) -> ModuleInfoResponse:
    """Parse the 3-byte module-info reply: device type, hardware, firmware."""
    if len(reply) < 3:
        raise ValueError(f"Module info reply must be 3 bytes, got {len(reply)}")
    return ModuleInfoResponse(
        device_id=reply[0],
        hardware_version=reply[1],
        firmware_version=reply[2],
    )


def parse_status(reply: bytes) -> int:
    """Return the status byte of a single-byte reply.

    The value is returned as-is; 1 means success and 0 failure, but some
    modules use other codes (e.g. 2 for a rejected password).
    """
    if len(reply) < 1:
        raise ValueError("Empty status reply")
    return reply[0]


def parse_word(reply: bytes) -> int:
    """Combine the first two reply bytes big-endian: ``(b0 << 8) | b1``."""
    if len(reply) < 2:
        raise ValueError(f"Word reply must be 2 bytes, got {len(reply)}")
    return (reply[0] << 8) | reply[1]


def format_mac(data: bytes) -> str:
    """Format six bytes as a lower-case colon separated MAC address."""
    return ":".join(f"{b:02x}" for b in data)


def format_ipv4(data: bytes) -> str:
    """Format four bytes as a dotted-quad IPv4 address."""
    return ".".join(str(b) for b in data)


def output_states(reply: bytes) -> list[bool]:
    """Expand a digital state bitmap into per-channel booleans.

    Channel 1 is bit 0 of the first byte.
    """
    states = []
    for byte in reply:
        for bit in range(8):
            states.append(bool(byte & (1 << bit)))
    return states
