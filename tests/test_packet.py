"""Tests for packet assembly."""

import pytest

from packetcraft.models import IPv4, RawLayer, UDP
from packetcraft.protocol.packet import Packet


def test_slash_operator_builds_stack():
    packet = IPv4() / UDP() / b"abc"
    assert isinstance(packet, Packet)
    assert [layer.NAME for layer in packet] == ["IPv4", "UDP", "RawLayer"]
    assert packet[2].load == b"abc"


def test_packet_slash_packet():
    lower = Packet(IPv4())
    upper = Packet(UDP(), RawLayer(b"x"))
    combined = lower / upper
    assert len(combined) == 3
    assert len(upper) == 0
    assert combined[1].bottom_layer() is combined[0]


def test_layer_cannot_join_two_packets():
    udp = UDP()
    Packet(IPv4(), udp)
    with pytest.raises(ValueError):
        Packet(IPv4(), udp)


def test_find_by_id():
    packet = Packet(IPv4(), UDP())
    assert packet.find(UDP.PROTO_ID) is packet[1]
    assert packet.find(0x86DD) is None


def test_size():
    assert Packet(IPv4(), UDP(), RawLayer(b"abcd")).size == 32


def test_to_bytes_crafts():
    packet = Packet(
        IPv4(source_ip="10.0.0.1", destination_ip="10.0.0.2", identification=0),
        UDP(dst_port=53),
        RawLayer(b"\x01\x02\x03\x04"),
    )
    wire = packet.to_bytes()
    assert len(wire) == 32
    assert wire[:4] == bytes.fromhex("4500 0020")
    assert wire[9] == 0x11
    assert wire[20:28] == bytes.fromhex("0000 0035 000c e798")
    assert wire[28:] == b"\x01\x02\x03\x04"


def test_empty_packet():
    packet = Packet()
    assert packet.to_bytes() == b""
    assert repr(packet) == "Packet()"


def test_copy_preserves_values():
    packet = Packet(IPv4(), UDP(src_port=9))
    packet.craft()
    clone = packet.copy()
    assert clone.to_bytes() == packet.to_bytes()
    assert clone[1].bottom_layer() is clone[0]
    assert clone[0] is not packet[0]


def test_to_dict():
    packet = Packet(IPv4(), UDP())
    packet.craft()
    d = packet.to_dict()
    assert d["size"] == 28
    assert [layer["layer"] for layer in d["layers"]] == ["IPv4", "UDP"]
    assert d["hex"] == packet.to_bytes().hex()
