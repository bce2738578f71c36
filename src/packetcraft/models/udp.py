"""UDP (RFC 768) header.

Layout::

    0                   15 16                  31
    +---------------------+---------------------+
    |     Source Port     |  Destination Port   |
    +---------------------+---------------------+
    |       Length        |      Checksum       |
    +---------------------+---------------------+

Stored as four 16-bit words. ``length`` and ``checksum`` are computed on
craft unless the caller sets them.
"""

from __future__ import annotations

from ..protocol.fields import HexField, NumericField
from ..protocol.layer import Layer, field_property

UDP_PROTO = 0x11
UDP_HEADER_SIZE = 8


class UDP(Layer):
    NAME = "UDP"
    PROTO_ID = UDP_PROTO
    WORDS = 4
    FIELDS = (
        NumericField("src_port", 0, 0, 15),
        NumericField("dst_port", 1, 0, 15),
        NumericField("length", 2, 0, 15),
        HexField("checksum", 3, 0, 15),
    )
    DEFAULTS = {
        "src_port": 0,
        "dst_port": 53,
        "length": 0,
        "checksum": 0,
    }
    CHECKSUM_FIELD = "checksum"
    OPTIONAL_CHECKSUM = True

    src_port = field_property("src_port")
    dst_port = field_property("dst_port")
    length = field_property("length", "Header plus payload size in bytes.")
    checksum = field_property("checksum")

    def _craft(self) -> None:
        self._craft_length("length")
        self._craft_pseudo_header_checksum("checksum")
