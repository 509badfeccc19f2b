"""Request frame builder and parser for the ETHx TCP command protocol.

Frame layout::

    +---------+---------------------+
    | Opcode  |       Payload       |
    | 1 byte  |  0-126 bytes        |
    +---------+---------------------+

There is no length prefix, preamble or checksum: the module knows from the
opcode how many payload bytes follow, and replies with a fixed number of
raw bytes implied by the opcode.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_FRAME_SIZE = 127
MAX_PAYLOAD = MAX_FRAME_SIZE - 1  # 127 - 1(opcode)
MAX_REPLY_SIZE = 127


@dataclass(frozen=True)
class Frame:
    """A single command request."""

    command: int
    payload: bytes = b""

    def __repr__(self) -> str:
        return (
            f"Frame(command=0x{self.command:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def build_frame(command: int, payload: bytes = b"") -> bytes:
    """Build the wire bytes for a command.

    Args:
        command: Single-byte opcode.
        payload: Command-specific payload bytes, sent verbatim.

    Returns:
        ``bytes`` of length ``1 + len(payload)``.

    Raises:
        ValueError: If the opcode is not a byte or the frame would exceed
            127 bytes.
    """
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Opcode must be 0-255, got {command}")
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(
            f"Payload must be at most {MAX_PAYLOAD} bytes, got {len(payload)}"
        )
    return bytes([command]) + bytes(payload)


def parse_frame(data: bytes) -> Frame | None:
    """Split raw request bytes back into opcode and payload.

    Returns:
        A ``Frame``, or ``None`` if ``data`` is empty or longer than a
        single frame.
    """
    if not 1 <= len(data) <= MAX_FRAME_SIZE:
        return None
    return Frame(command=data[0], payload=bytes(data[1:]))
