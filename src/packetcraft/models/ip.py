"""IPv4 (RFC 791) header without options.

Stored as five 32-bit words so that each address fits a single word::

    0       4       8           14  16                              31
    +-------+-------+-----------+---+-------------------------------+
    |Version|  IHL  |   DSCP    |ECN|         Total Length          |
    +-------+-------+-----------+---+-----+-------------------------+
    |        Identification         |Flags|     Fragment Offset     |
    +---------------+---------------+-----+-------------------------+
    |      TTL      |   Protocol    |        Header Checksum        |
    +---------------+---------------+-------------------------------+
    |                        Source Address                         |
    +---------------------------------------------------------------+
    |                      Destination Address                      |
    +---------------------------------------------------------------+
"""

from __future__ import annotations

import ipaddress

from ..protocol.fields import HexField, IPv4Field, NumericField
from ..protocol.layer import Layer, field_property

IPV4_ETHERTYPE = 0x0800
IPV4_HEADER_WORDS = 5
DEFAULT_TTL = 64
DEFAULT_ADDRESS = "127.0.0.1"
DONT_FRAGMENT = 0x2
MORE_FRAGMENTS = 0x1


class IPv4(Layer):
    NAME = "IPv4"
    PROTO_ID = IPV4_ETHERTYPE
    WORDS = IPV4_HEADER_WORDS
    WORD_BITS = 32
    FIELDS = (
        NumericField("version", 0, 0, 3),
        NumericField("ihl", 0, 4, 7),
        NumericField("dscp", 0, 8, 13),
        NumericField("ecn", 0, 14, 15),
        NumericField("total_length", 0, 16, 31),
        HexField("identification", 1, 0, 15),
        NumericField("flags", 1, 16, 18),
        NumericField("fragment_offset", 1, 19, 31),
        NumericField("ttl", 2, 0, 7),
        HexField("protocol", 2, 8, 15),
        HexField("checksum", 2, 16, 31),
        IPv4Field("source_ip", 3),
        IPv4Field("destination_ip", 4),
    )
    DEFAULTS = {
        "version": 4,
        "ihl": IPV4_HEADER_WORDS,
        "flags": DONT_FRAGMENT,
        "ttl": DEFAULT_TTL,
        "protocol": 0x06,
        "source_ip": DEFAULT_ADDRESS,
        "destination_ip": DEFAULT_ADDRESS,
    }
    CHECKSUM_FIELD = "checksum"
    PROVIDES_ADDRESSES = True

    version = field_property("version")
    ihl = field_property("ihl", "Header length in 32-bit words.")
    dscp = field_property("dscp")
    ecn = field_property("ecn")
    total_length = field_property("total_length")
    identification = field_property("identification")
    flags = field_property("flags")
    fragment_offset = field_property("fragment_offset")
    ttl = field_property("ttl")
    protocol = field_property("protocol")
    checksum = field_property("checksum")

    @property
    def source_ip(self) -> str:
        return str(ipaddress.IPv4Address(self.get("source_ip")))

    @source_ip.setter
    def source_ip(self, value) -> None:
        self.set("source_ip", value)

    @property
    def destination_ip(self) -> str:
        return str(ipaddress.IPv4Address(self.get("destination_ip")))

    @destination_ip.setter
    def destination_ip(self, value) -> None:
        self.set("destination_ip", value)

    def is_fragment(self) -> bool:
        """True for any piece of a fragmented datagram, including the first."""
        return bool(self.flags & MORE_FRAGMENTS) or self.fragment_offset != 0

    def addresses(self) -> tuple[int, int]:
        return self.get("source_ip"), self.get("destination_ip")

    def _craft(self) -> None:
        if self._needs_craft("ihl"):
            self._write_crafted("ihl", self.WORDS)

        self._craft_length("total_length")

        # Only transport protocols have ids that fit the 8-bit protocol field.
        top = self.top_layer()
        if self._needs_craft("protocol") and top is not None and top.layer_id <= 0xFF:
            self._write_crafted("protocol", top.layer_id)

        self._craft_header_checksum("checksum")
