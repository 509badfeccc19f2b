"""TCP connection to an ETHx module.

Each module accepts command connections on a single TCP port (17494 by
default). Requests and replies are raw bytes with no framing, so the
reader must be told how many bytes to expect.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass

from ..exceptions import TransportError
from ..protocol.framing import MAX_REPLY_SIZE

logger = logging.getLogger(__name__)

DEFAULT_PORT = 17494
READ_TIMEOUT = 5.0  # seconds


@dataclass
class ConnectionInfo:
    """Where the connection points."""

    host: str = ""
    port: int = DEFAULT_PORT


class TCPConnection:
    """Manages the TCP stream to one module.

    Usage::

        conn = TCPConnection("192.168.0.200")
        conn.open()
        reply = conn.send_and_receive(frame_bytes, 1)
        conn.close()

    An already-connected socket can be passed as ``sock`` instead of
    dialling ``host:port``.
    """

    def __init__(
        self,
        host: str = "",
        port: int = DEFAULT_PORT,
        timeout: float | None = READ_TIMEOUT,
        sock: socket.socket | None = None,
    ) -> None:
        self._info = ConnectionInfo(host=host, port=port)
        self._timeout = timeout
        self._sock = sock
        self._connected = sock is not None
        if sock is not None:
            sock.settimeout(timeout)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    def open(self) -> ConnectionInfo:
        """Connect to the module.

        Raises:
            TransportError: If the connection is refused or times out.
        """
        if self._connected:
            return self._info

        try:
            sock = socket.create_connection(
                (self._info.host, self._info.port), timeout=self._timeout
            )
        except OSError as e:
            raise TransportError(
                f"Could not connect to {self._info.host}:{self._info.port}: {e}"
            ) from e

        self._sock = sock
        self._connected = True
        logger.info("Connected to %s:%d", self._info.host, self._info.port)
        return self._info

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._sock is None:
            return

        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing connection: %s", e)
        finally:
            self._sock = None
            self._connected = False
            logger.info("Disconnected from %s:%d", self._info.host, self._info.port)

    def write(self, data: bytes) -> int:
        """Write a whole request frame.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If not connected or the write fails.
        """
        if not self._connected:
            raise TransportError("Not connected to module")

        try:
            self._sock.sendall(data)
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e
        logger.debug("TX %s", data.hex(" "))
        return len(data)

    def read(self, length: int) -> bytes:
        """Read exactly ``length`` reply bytes.

        Raises:
            ValueError: If ``length`` is not 1-127.
            TransportError: If not connected, the module closes the stream
                early, or the read times out.
        """
        if not 1 <= length <= MAX_REPLY_SIZE:
            raise ValueError(f"Reply length must be 1-{MAX_REPLY_SIZE}, got {length}")
        if not self._connected:
            raise TransportError("Not connected to module")

        buf = bytearray()
        try:
            while len(buf) < length:
                chunk = self._sock.recv(length - len(buf))
                if not chunk:
                    raise TransportError(
                        f"Connection closed after {len(buf)} of {length} bytes"
                    )
                buf += chunk
        except TransportError:
            raise
        except socket.timeout as e:
            raise TransportError(f"Timed out waiting for {length} byte reply") from e
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

        logger.debug("RX %s", buf.hex(" "))
        return bytes(buf)

    def send_and_receive(self, data: bytes, reply_length: int) -> bytes:
        """Send a request frame and read its fixed-size reply."""
        if not 1 <= reply_length <= MAX_REPLY_SIZE:
            raise ValueError(
                f"Reply length must be 1-{MAX_REPLY_SIZE}, got {reply_length}"
            )
        self.write(data)
        return self.read(reply_length)
