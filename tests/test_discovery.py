"""Tests for the discovery reply decoder."""

from ethx_mcp.models.scan import ScanResult
from ethx_mcp.protocol.discovery import (
    DISCOVERY_PROBE,
    Tag,
    parse_discovery_packet,
    should_parse,
    is_blank,
)

CRLF = b"\r\n"
MAC = bytes([0xDE, 0xAD, 0xBE, 0xEF, 0x00, 0x01])
IP = bytes([192, 168, 0, 10])


def _record(device_id: int = 18, host: bytes = b"MYDEVICE ") -> bytes:
    """Build a discovery reply the way module firmware lays it out."""
    return (
        bytes([Tag.MAC_ADDRESS]) + MAC
        + bytes([Tag.HOST_NAME]) + host + CRLF
        + bytes([Tag.IPV4_ADDRESS]) + IP
        + bytes([Tag.DEVICE_TYPE, device_id]) + CRLF
    )


def test_probe_payload():
    assert DISCOVERY_PROBE == b"Discovery: Who is out there?\x00\n"


def test_parse_eth002_record():
    result = parse_discovery_packet(_record())
    assert result == ScanResult(
        ip_address="192.168.0.10",
        host_name="MYDEVICE",
        device_id=18,
        mac_address="de:ad:be:ef:00:01",
    )


def test_parse_with_crlf_after_fixed_fields():
    packet = (
        bytes([Tag.MAC_ADDRESS]) + MAC + CRLF
        + bytes([Tag.MAC_TYPE]) + b"Ethernet" + CRLF
        + bytes([Tag.HOST_NAME]) + b"RELAYS     " + CRLF
        + bytes([Tag.IPV4_ADDRESS]) + IP + CRLF
        + bytes([Tag.DEVICE_TYPE, 21, 0x05]) + CRLF
    )
    result = parse_discovery_packet(packet)
    assert result is not None
    assert result.host_name == "RELAYS"
    assert result.device_id == 21
    assert result.mac_address == "de:ad:be:ef:00:01"
    assert result.ip_address == "192.168.0.10"


def test_mac_containing_cr_lf_bytes():
    """Fixed-length fields are taken by length, not by terminator."""
    mac = bytes([0x0D, 0x0A, 0x0D, 0x0A, 0x00, 0x01])
    packet = (
        bytes([Tag.MAC_ADDRESS]) + mac
        + bytes([Tag.IPV4_ADDRESS]) + IP
        + bytes([Tag.DEVICE_TYPE, 19]) + CRLF
    )
    result = parse_discovery_packet(packet)
    assert result.mac_address == "0d:0a:0d:0a:00:01"


def test_all_ethx_ids_accepted():
    for device_id in (18, 19, 20, 21, 51, 52, 54, 200):
        result = parse_discovery_packet(_record(device_id))
        assert result is not None
        assert result.device_id == device_id


def test_excluded_family_discarded():
    for device_id in (30, 31, 34, 35):
        assert parse_discovery_packet(_record(device_id)) is None


def test_unlisted_device_discarded():
    assert parse_discovery_packet(_record(23)) is None
    assert parse_discovery_packet(_record(0)) is None


def test_end_marker_aborts():
    packet = _record()
    packet = packet[:7] + bytes([Tag.END]) + packet[7:]
    assert parse_discovery_packet(packet) is None


def test_terminator_aborts():
    packet = _record()
    packet = packet[:7] + bytes([Tag.TERMINATOR]) + packet[7:]
    assert parse_discovery_packet(packet) is None


def test_end_marker_at_start():
    assert parse_discovery_packet(bytes([Tag.END]) + _record()) is None


def test_unknown_tag_aborts():
    assert parse_discovery_packet(b"\x7f" + _record()) is None


def test_ipv6_tag_skipped():
    packet = bytes([Tag.IPV6_UNICAST]) + CRLF + _record()
    result = parse_discovery_packet(packet)
    assert result is not None
    assert result.ip_address == "192.168.0.10"


def test_unterminated_host_name():
    """Running off the end while looking for CR LF aborts the parse."""
    packet = bytes([Tag.MAC_ADDRESS]) + MAC + bytes([Tag.HOST_NAME]) + b"HOST  \r"
    assert parse_discovery_packet(packet) is None


def test_unterminated_device_type():
    packet = bytes([Tag.MAC_ADDRESS]) + MAC + bytes([Tag.DEVICE_TYPE, 18])
    assert parse_discovery_packet(packet) is None


def test_truncated_mac():
    assert parse_discovery_packet(bytes([Tag.MAC_ADDRESS]) + MAC[:3]) is None


def test_truncated_ipv4():
    packet = bytes([Tag.MAC_ADDRESS]) + MAC + bytes([Tag.IPV4_ADDRESS, 10, 0])
    assert parse_discovery_packet(packet) is None


def test_empty_device_type_field():
    packet = bytes([Tag.MAC_ADDRESS]) + MAC + bytes([Tag.DEVICE_TYPE]) + CRLF
    assert parse_discovery_packet(packet) is None


def test_record_without_device_type():
    packet = bytes([Tag.MAC_ADDRESS]) + MAC + bytes([Tag.IPV4_ADDRESS]) + IP
    assert parse_discovery_packet(packet) is None


def test_host_name_without_padding():
    result = parse_discovery_packet(_record(host=b"ETH8020"))
    assert result.host_name == "ETH8020"


def test_is_blank():
    assert is_blank(b"")
    assert is_blank(b"    \r\n\t")
    assert is_blank(b"\x00" * 40)
    assert not is_blank(b"   x   ")


def test_should_parse_length():
    assert not should_parse(b"x" * 34)
    assert should_parse(b"x" * 35)
    assert not should_parse(b" " * 100)
