"""UDP broadcast discovery of ETHx modules on the local network.

A single probe is broadcast on the discovery port; every module on the
segment answers with a tagged record (see ``protocol.discovery``). A
background thread receives the replies and notifies registered observers
of each ETHx module found.

Usage::

    scanner = ETHScanner()
    scanner.add_observer(my_observer)
    scanner.udp_action()
    ...
    scanner.close_action()
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from enum import Enum
from typing import Callable, Protocol

from ..exceptions import TransportError
from ..models.scan import ScanResult
from ..protocol.discovery import (
    DISCOVERY_PROBE,
    MIN_PACKET_LENGTH,
    parse_discovery_packet,
    should_parse,
)

logger = logging.getLogger(__name__)

DISCOVERY_PORT = 30303
BROADCAST_ADDRESS = "255.255.255.255"
RECEIVE_TIMEOUT = 1.0  # seconds per recvfrom call
RECEIVE_BUFFER_SIZE = 1500 - 28  # Ethernet MTU minus IP and UDP headers


class ScanState(Enum):
    IDLE = "idle"
    PROBING = "probing"
    LISTENING = "listening"
    STOPPED = "stopped"


class ScanObserver(Protocol):
    """Receives modules found by an ``ETHScanner``."""

    def module_found(self, result: ScanResult) -> None:
        ...


class ETHScanner:
    """Broadcasts a discovery probe and reports the modules that answer.

    Observers are called on the receive thread, in registration order.
    """

    def __init__(
        self,
        port: int = DISCOVERY_PORT,
        broadcast_address: str = BROADCAST_ADDRESS,
        receive_timeout: float | None = RECEIVE_TIMEOUT,
        min_packet_length: int = MIN_PACKET_LENGTH,
        socket_factory: Callable[..., socket.socket] = socket.socket,
    ) -> None:
        self._port = port
        self._broadcast_address = broadcast_address
        self._receive_timeout = receive_timeout
        self._min_packet_length = min_packet_length
        self._socket_factory = socket_factory

        self._observers: list[ScanObserver] = []
        self._observers_lock = threading.Lock()
        # Serialises parse + dispatch of received packets
        self._lock = threading.RLock()

        self._state = ScanState.IDLE
        self._sock: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._results: list[ScanResult] = []

    def __enter__(self) -> ETHScanner:
        return self

    def __exit__(self, *exc) -> None:
        self.close_action()

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def results(self) -> list[ScanResult]:
        """Modules reported since the last ``udp_action()``."""
        with self._lock:
            return list(self._results)

    # ─── Observers ────────────────────────────────────────────────────

    def add_observer(self, observer: ScanObserver) -> None:
        """Register an observer. Adding the same observer twice is a no-op."""
        with self._observers_lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def remove_observer(self, observer: ScanObserver) -> None:
        with self._observers_lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def _update_observers(self, result: ScanResult) -> None:
        with self._observers_lock:
            observers = list(self._observers)
        for observer in observers:
            observer.module_found(result)

    # ─── Scan lifecycle ───────────────────────────────────────────────

    def udp_action(self) -> None:
        """Broadcast the discovery probe and start listening for replies.

        Raises:
            TransportError: If the socket cannot be bound or the probe
                cannot be sent.
        """
        if self._state in (ScanState.PROBING, ScanState.LISTENING):
            logger.warning("Discovery scan already running")
            return

        self._state = ScanState.PROBING
        with self._lock:
            self._results = []

        try:
            sock = self._socket_factory(socket.AF_INET, socket.SOCK_DGRAM)
            self._sock = sock
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind(("", self._port))
            sock.settimeout(self._receive_timeout)
            sock.sendto(DISCOVERY_PROBE, (self._broadcast_address, self._port))
        except OSError as e:
            self.close_action()
            raise TransportError(f"Discovery probe failed: {e}") from e

        logger.info(
            "Discovery probe sent to %s:%d", self._broadcast_address, self._port
        )

        self._thread = threading.Thread(
            target=self._receive_loop,
            args=(sock,),
            name="ethx-discovery",
            daemon=True,
        )
        self._state = ScanState.LISTENING
        self._thread.start()

    def scan(self, duration: float) -> list[ScanResult]:
        """Run a scan for ``duration`` seconds and return what was found."""
        self.udp_action()
        try:
            time.sleep(duration)
        finally:
            self.close_action()
        return self.results

    def close_action(self) -> None:
        """Stop scanning and close the socket. Safe to call in any state."""
        sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.close()
            except OSError as e:
                logger.warning("Error closing discovery socket: %s", e)

        thread, self._thread = self._thread, None
        if (
            thread is not None
            and thread is not threading.current_thread()
            and thread.is_alive()
            and self._receive_timeout is not None
        ):
            # The pending recvfrom returns within one receive timeout
            thread.join(self._receive_timeout + 1.0)

        if self._state is not ScanState.STOPPED:
            self._state = ScanState.STOPPED
            logger.info("Discovery stopped")

    # ─── Receive thread ───────────────────────────────────────────────

    def _receive(self, sock: socket.socket) -> bytes:
        """Block until a datagram arrives; receive timeouts are not errors."""
        while True:
            try:
                data, _addr = sock.recvfrom(RECEIVE_BUFFER_SIZE)
                return data
            except socket.timeout:
                continue

    def _receive_loop(self, sock: socket.socket) -> None:
        try:
            # The first datagram is our own probe looped back
            self._receive(sock)
            while True:
                self._handle_datagram(self._receive(sock))
        except OSError as e:
            logger.debug("Discovery receive ended: %s", e)
        finally:
            if self._sock is sock:
                self.close_action()

    def _handle_datagram(self, data: bytes) -> None:
        if not should_parse(data, self._min_packet_length):
            logger.debug("Ignoring %d byte datagram", len(data))
            return

        with self._lock:
            result = parse_discovery_packet(data)
            if result is None:
                return
            self._results.append(result)
            logger.debug("Found %s at %s", result.host_name, result.ip_address)
            try:
                self._update_observers(result)
            except Exception:
                logger.exception("Scan observer failed for %s", result.ip_address)
