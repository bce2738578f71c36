"""Tests for crafting UDP headers."""

from packetcraft.diagnostics import RecordingSink, Severity
from packetcraft.models import IPv4, RawLayer, UDP
from packetcraft.protocol.layer import FieldState
from packetcraft.protocol.packet import Packet


def _reference_checksum(data: bytes) -> int:
    """Straightforward RFC 1071 checksum, kept separate from the engine."""
    if len(data) % 2:
        data += b"\x00"
    total = sum(int.from_bytes(data[i : i + 2], "big") for i in range(0, len(data), 2))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


def _udp_packet(payload: bytes = b"", **udp_fields) -> Packet:
    packet = Packet(
        IPv4(source_ip="10.0.0.1", destination_ip="10.0.0.2"),
        UDP(**udp_fields),
    )
    if payload:
        packet.push(RawLayer(payload))
    return packet


def test_scenario_dns_port_with_payload():
    """Source port default, destination pinned to 53, 4-byte payload."""
    packet = _udp_packet(b"\x01\x02\x03\x04", dst_port=53)
    packet.craft()
    udp = packet[1]

    assert udp.src_port == 0
    assert udp.dst_port == 53
    assert udp.is_set("dst_port")
    assert udp.length == 12
    # pseudo: 0a00 0001 0a00 0002 0011 000c, udp: 0000 0035 000c 0000 0102 0304
    assert udp.checksum == 0xE798


def test_checksum_matches_reference_algorithm():
    packet = _udp_packet(b"hello world!", src_port=4444, dst_port=8080)
    packet.craft()
    udp = packet[1]

    data = bytearray(udp.data())
    data[6:8] = b"\x00\x00"
    pseudo = bytes.fromhex("0a000001 0a000002 0011") + udp.length.to_bytes(2, "big")
    assert udp.checksum == _reference_checksum(pseudo + bytes(data))


def test_checksum_odd_payload_padding():
    """Odd-length datagrams are padded with one zero byte for the sum."""
    packet = _udp_packet(b"\x01\x02\x03", dst_port=53)
    packet.craft()
    udp = packet[1]
    assert udp.length == 11
    assert udp.checksum == 0xE79E


def test_length_without_payload():
    udp = UDP()
    with RecordingSink():
        udp.craft()
    assert udp.length == 8


def test_length_with_payload():
    packet = Packet(UDP(), RawLayer(b"x" * 10))
    with RecordingSink():
        packet.craft()
    assert packet[0].length == 18


def test_pinned_fields_are_preserved():
    """Explicit values win, even when they are wrong."""
    packet = _udp_packet(b"abcd", length=100, checksum=0xBEEF)
    packet.craft()
    udp = packet[1]
    assert udp.length == 100
    assert udp.checksum == 0xBEEF


def test_craft_is_idempotent():
    packet = _udp_packet(b"abc")
    packet.craft()
    first = packet.to_bytes()
    packet.craft()
    assert packet.to_bytes() == first


def test_crafted_fields_are_not_pinned():
    packet = _udp_packet()
    packet.craft()
    udp = packet[1]
    assert udp.field_state("length") is FieldState.CRAFTED
    assert udp.field_state("checksum") is FieldState.CRAFTED
    assert not udp.is_set("length")


def test_crafted_values_kept_until_reset():
    """A second craft keeps earlier computed values until they are reset."""
    packet = _udp_packet(b"ab")
    packet.craft()
    raw = packet[2]
    udp = packet[1]
    raw.load = b"abcdef"

    packet.craft()
    assert udp.length == 10

    udp.reset_field("length")
    udp.reset_field("checksum")
    packet.craft()
    assert udp.length == 14


def test_degraded_checksum_without_network_layer():
    """No layer below: checksum 0, exactly one warning, craft completes."""
    udp = UDP(dst_port=53)
    with RecordingSink() as sink:
        udp.craft()

    assert udp.checksum == 0
    assert udp.length == 8
    assert len(sink.records) == 1
    assert sink.records[0].severity is Severity.WARNING
    assert sink.records[0].component == "UDP.craft()"


def test_degraded_checksum_on_unknown_layer():
    """An unrecognised layer below is treated like no layer at all."""
    packet = Packet(RawLayer(b"\xaa\xbb"), UDP(), RawLayer(b"data"))
    with RecordingSink() as sink:
        packet.craft()

    assert packet[1].checksum == 0
    assert len(sink.warnings) == 1


def test_no_diagnostic_over_ipv4():
    with RecordingSink() as sink:
        _udp_packet(b"abc").craft()
    assert sink.records == []


def test_header_wire_layout():
    """Ports, length and checksum sit at bytes 0, 2, 4 and 6."""
    udp = UDP(src_port=0x1234, dst_port=0x5678, checksum=0xABCD)
    udp.craft()
    assert udp.header_bytes() == bytes.fromhex("1234 5678 0008 abcd")
