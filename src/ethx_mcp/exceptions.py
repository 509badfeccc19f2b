"""Exceptions raised by the ETHx protocol layer."""


class ETHError(Exception):
    """Base class for all ETHx errors."""


class TransportError(ETHError, ConnectionError):
    """The TCP or UDP transport failed (refused, reset, closed or timed out).

    Raised for any I/O failure while talking to a module. The request is
    never retried.
    """


class UnsupportedCommandError(ETHError):
    """The connected module has no channels of the kind a command needs."""

    def __init__(self, command: str, module_name: str):
        super().__init__(f"{module_name} does not support {command}")
        self.command = command
        self.module_name = module_name


class ChannelRangeError(ETHError, ValueError):
    """A channel index is outside the range the module provides."""

    def __init__(self, channel: int, count: int):
        super().__init__(f"Channel must be 1-{count}, got {channel}")
        self.channel = channel
        self.count = count
