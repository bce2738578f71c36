"""Fixed-width word storage backing a layer header.

A header of ``count`` words of ``width`` bits is ``count * width // 8``
bytes long and is serialized big-endian, word by word.
"""

from __future__ import annotations

from .fields import Field, FieldLayoutError, truncate

DEFAULT_WORD_BITS = 16
VALID_WORD_BITS = (8, 16, 32)


class WordBuffer:
    """Zero-initialised sequence of fixed-width words."""

    def __init__(self, count: int, width: int = DEFAULT_WORD_BITS) -> None:
        if count < 0:
            raise FieldLayoutError(f"Word count must be >= 0, got {count}")
        if width not in VALID_WORD_BITS:
            raise FieldLayoutError(
                f"Word width must be one of {VALID_WORD_BITS}, got {width}"
            )
        self._width = width
        self._words = [0] * count

    @property
    def width(self) -> int:
        return self._width

    @property
    def count(self) -> int:
        return len(self._words)

    @property
    def size(self) -> int:
        """Size in bytes."""
        return len(self._words) * self._width // 8

    def fits(self, field: Field) -> bool:
        return field.word < len(self._words) and field.bit_end < self._width

    def read(self, field: Field) -> int:
        word = self._words[field.word]
        return (word >> field.shift(self._width)) & field.mask

    def write(self, field: Field, value: int) -> int:
        """Store ``value`` into ``field``, truncated to the field width.

        Returns:
            The value actually stored.
        """
        stored = truncate(value, field.width)
        shift = field.shift(self._width)
        word = self._words[field.word] & ~(field.mask << shift)
        self._words[field.word] = word | (stored << shift)
        return stored

    def to_bytes(self) -> bytes:
        nbytes = self._width // 8
        return b"".join(w.to_bytes(nbytes, "big") for w in self._words)

    @classmethod
    def from_bytes(
        cls, data: bytes, count: int, width: int = DEFAULT_WORD_BITS
    ) -> WordBuffer:
        buf = cls(count, width)
        nbytes = width // 8
        if len(data) < buf.size:
            raise ValueError(
                f"Need {buf.size} bytes for {count} x {width}-bit words, "
                f"got {len(data)}"
            )
        buf._words = [
            int.from_bytes(data[i * nbytes : (i + 1) * nbytes], "big")
            for i in range(count)
        ]
        return buf

    def copy(self) -> WordBuffer:
        clone = WordBuffer(len(self._words), self._width)
        clone._words = list(self._words)
        return clone

    def __repr__(self) -> str:
        return f"WordBuffer({self.to_bytes().hex(' ') or '(empty)'})"
