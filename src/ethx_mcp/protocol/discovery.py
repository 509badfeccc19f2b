"""Decoder for UDP discovery replies.

Modules answer the discovery probe with a tag-prefixed record::

    02 <6 byte MAC> CR LF
    03 <MAC type ...> CR LF
    04 <host name, space padded> CR LF
    05 <4 byte IPv4> CR LF
    40 <device type> ... CR LF

Fixed-length fields (MAC, IPv4) are followed by an optional CR LF;
variable-length fields run up to a CR immediately followed by LF.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from ..models.scan import ScanResult
from .parser import format_ipv4, format_mac

logger = logging.getLogger(__name__)

CR = 0x0D
LF = 0x0A

DISCOVERY_PROBE = b"Discovery: Who is out there?\x00\n"
MIN_PACKET_LENGTH = 35

# Device types that belong to the dS product line, not ETHx.
EXCLUDED_DEVICE_IDS = frozenset({30, 31, 34, 35})

ETHX_DEVICE_IDS = frozenset({
    18,   # ETH002
    19,   # ETH008
    20,   # ETH484
    21,   # ETH8020
    51,   # ETH1620
    52,   # ETH1610
    54,   # ETH24V008
    200,  # ETH-UPLOADER
})


class Tag(IntEnum):
    """Field tags in a discovery reply."""

    END = 0x01
    MAC_ADDRESS = 0x02
    MAC_TYPE = 0x03
    HOST_NAME = 0x04
    IPV4_ADDRESS = 0x05
    IPV6_UNICAST = 0x06
    IPV6_MULTICAST = 0x07
    IPV6_ROUTER = 0x08
    IPV6_GATEWAY = 0x09
    DEVICE_TYPE = 0x40
    TERMINATOR = 0x41


IPV6_TAGS = frozenset({
    Tag.IPV6_UNICAST, Tag.IPV6_MULTICAST, Tag.IPV6_ROUTER, Tag.IPV6_GATEWAY,
})

MAC_LENGTH = 6
IPV4_LENGTH = 4


def _host_name(field: bytes) -> str:
    # Firmware pads the name with trailing spaces
    return field.split(b" ", 1)[0].decode("ascii", errors="replace")


def parse_discovery_packet(data: bytes) -> ScanResult | None:
    """Decode a discovery reply into a ``ScanResult``.

    Returns:
        The module described by the packet, or ``None`` if the packet ends,
        hits an end/terminator or unknown tag, is truncated, or describes a
        device that is not an ETHx module. Nothing is returned for partially
        decoded packets.
    """
    mac_address = ""
    host_name = ""
    ip_address = ""

    length = len(data)
    pos = 0
    while pos < length:
        tag = data[pos]

        if tag == Tag.MAC_ADDRESS:
            field = data[pos + 1 : pos + 1 + MAC_LENGTH]
            if len(field) < MAC_LENGTH:
                logger.debug("Truncated MAC address at offset %d", pos)
                return None
            mac_address = format_mac(field)
            pos += 1 + MAC_LENGTH

        elif tag == Tag.IPV4_ADDRESS:
            field = data[pos + 1 : pos + 1 + IPV4_LENGTH]
            if len(field) < IPV4_LENGTH:
                logger.debug("Truncated IPv4 address at offset %d", pos)
                return None
            ip_address = format_ipv4(field)
            pos += 1 + IPV4_LENGTH

        elif tag in (Tag.MAC_TYPE, Tag.HOST_NAME, Tag.DEVICE_TYPE):
            end = data.find(b"\r\n", pos + 1)
            if end < 0:
                logger.debug("Unterminated field 0x%02X at offset %d", tag, pos)
                return None
            field = data[pos + 1 : end]
            pos = end

            if tag == Tag.HOST_NAME:
                host_name = _host_name(field)
            elif tag == Tag.DEVICE_TYPE:
                if not field:
                    return None
                device_id = field[0]
                if device_id in EXCLUDED_DEVICE_IDS:
                    logger.debug("Ignoring non-ETH device type %d", device_id)
                    return None
                if device_id not in ETHX_DEVICE_IDS:
                    logger.debug("Unknown device type %d", device_id)
                    return None
                return ScanResult(
                    ip_address=ip_address,
                    host_name=host_name,
                    device_id=device_id,
                    mac_address=mac_address,
                )

        elif tag in IPV6_TAGS:
            # Not decoded; step over the tag only
            pos += 1

        else:
            # END, TERMINATOR or a tag we cannot interpret
            return None

        if pos < length and data[pos] == CR:
            pos += 1
        if pos < length and data[pos] == LF:
            pos += 1

    return None


def is_blank(data: bytes) -> bool:
    """True if the datagram holds nothing but whitespace/control bytes."""
    return all(b <= 0x20 for b in data)


def should_parse(data: bytes, min_length: int = MIN_PACKET_LENGTH) -> bool:
    """Filter out datagrams that cannot hold a discovery record."""
    if is_blank(data):
        return False
    return len(data) >= min_length
