"""Network transports: TCP command connection and UDP discovery."""

from .tcp_connection import TCPConnection, DEFAULT_PORT
from .udp_scanner import ETHScanner, ScanObserver, ScanState, DISCOVERY_PORT
