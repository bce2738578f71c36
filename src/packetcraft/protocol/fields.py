"""Field descriptors: where a named field lives inside a layer's storage words.

Bits are numbered from the most significant bit of a word, so bit 0 is the
first bit transmitted. A 16-bit word holding two byte-wide fields looks like::

    bit:   0               7 8              15
          +-----------------+----------------+
          |     field A     |     field B    |
          +-----------------+----------------+

Descriptors are immutable and shared by every instance of a layer class.
Values and "set" state live in the layer instance, not here.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum


class FieldLayoutError(ValueError):
    """A field descriptor does not fit the storage it was declared against."""


class FieldKind(Enum):
    """How a field value is presented. Storage is the same for every kind."""

    NUMERIC = "numeric"
    HEX = "hex"
    IPV4 = "ipv4"


def truncate(value: int, width: int) -> int:
    """Mask ``value`` to its low ``width`` bits.

    This is the documented overflow behaviour for every field write: bits
    that do not fit are dropped, no error is raised.
    """
    return value & ((1 << width) - 1)


@dataclass(frozen=True)
class Field:
    """Location of one named field inside a layer's word buffer."""

    name: str
    word: int
    bit_start: int
    bit_end: int
    kind: FieldKind = FieldKind.NUMERIC

    def __post_init__(self) -> None:
        if self.word < 0:
            raise FieldLayoutError(
                f"Field '{self.name}': word index must be >= 0, got {self.word}"
            )
        if self.bit_start < 0 or self.bit_start > self.bit_end:
            raise FieldLayoutError(
                f"Field '{self.name}': invalid bit range "
                f"[{self.bit_start}, {self.bit_end}]"
            )

    @property
    def width(self) -> int:
        return self.bit_end - self.bit_start + 1

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    def shift(self, word_bits: int) -> int:
        """Left shift that places this field inside a ``word_bits`` word."""
        return word_bits - 1 - self.bit_end

    def overlaps(self, other: Field) -> bool:
        if self.word != other.word:
            return False
        return self.bit_start <= other.bit_end and other.bit_start <= self.bit_end

    def format(self, value: int) -> str | int:
        """Render a value according to the field kind."""
        if self.kind is FieldKind.HEX:
            digits = (self.width + 3) // 4
            return f"0x{value:0{digits}x}"
        if self.kind is FieldKind.IPV4:
            return str(ipaddress.IPv4Address(value))
        return value


def NumericField(name: str, word: int, bit_start: int, bit_end: int) -> Field:
    return Field(name, word, bit_start, bit_end, FieldKind.NUMERIC)


def HexField(name: str, word: int, bit_start: int, bit_end: int) -> Field:
    return Field(name, word, bit_start, bit_end, FieldKind.HEX)


def IPv4Field(name: str, word: int) -> Field:
    """A full 32-bit word holding an IPv4 address."""
    return Field(name, word, 0, 31, FieldKind.IPV4)
