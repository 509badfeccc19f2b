"""Discovery and control of Devantech ETHx network I/O modules."""

from .exceptions import (
    ETHError,
    TransportError,
    UnsupportedCommandError,
    ChannelRangeError,
)
from .models import ModuleCapabilities, ModuleIdentity, ScanResult
from .module import ETHModule
from .transport.udp_scanner import ETHScanner, ScanObserver, ScanState

__version__ = "0.1.0"
