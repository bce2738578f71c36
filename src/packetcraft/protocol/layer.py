"""Generic protocol layer: field storage, stack links, and the craft step.

A concrete protocol only declares its layout::

    class UDP(Layer):
        NAME = "UDP"
        PROTO_ID = 0x11
        WORDS = 4
        FIELDS = (
            NumericField("src_port", 0, 0, 15),
            ...
        )

and overrides :meth:`Layer._craft` to fill in the fields it can compute.
The layout is validated once, when the class is defined, into an immutable
:class:`LayerSchema` shared by every instance. Each instance owns its own
:class:`WordBuffer`, so no mutable state is shared between packets.
"""

from __future__ import annotations

import ipaddress
import logging
from enum import Enum
from typing import Any, ClassVar, Iterator

from ..diagnostics import Severity, emit
from ..transport.context import TransmitContext, TransmitError
from ..utils.checksum import internet_checksum, pseudo_header
from .fields import Field, FieldKind, FieldLayoutError
from .words import DEFAULT_WORD_BITS, WordBuffer

logger = logging.getLogger(__name__)

# Protocol ids of layers that can answer ``addresses()``. Filled in as
# subclasses with ``PROVIDES_ADDRESSES = True`` are defined.
NETWORK_LAYER_IDS: set[int] = set()


class LayerTypeError(TypeError):
    """A protocol-specific query was made on a layer that cannot answer it."""


class FieldState(Enum):
    """Where the current value of a field came from."""

    UNSET = "unset"  # default value, craft may overwrite it
    CRAFTED = "crafted"  # computed by craft(), kept on later crafts
    PINNED = "pinned"  # set explicitly by the caller


class CraftState(Enum):
    UNSET = "unset"
    COMPUTING = "computing"
    FINALIZED = "finalized"


class LayerSchema:
    """Immutable field table for one layer class."""

    def __init__(
        self,
        name: str,
        words: int,
        word_bits: int,
        fields: tuple[Field, ...],
        aliases: tuple[str, ...] = (),
    ) -> None:
        storage = WordBuffer(words, word_bits)
        table: dict[str, Field] = {}
        for f in fields:
            if f.name in table:
                raise FieldLayoutError(f"{name}: duplicate field '{f.name}'")
            if not storage.fits(f):
                raise FieldLayoutError(
                    f"{name}: field '{f.name}' (word {f.word}, bits "
                    f"{f.bit_start}-{f.bit_end}) is outside {words} x "
                    f"{word_bits}-bit words"
                )
            for other in table.values():
                aliased = f.name in aliases or other.name in aliases
                if f.overlaps(other) and not aliased:
                    raise FieldLayoutError(
                        f"{name}: field '{f.name}' overlaps '{other.name}'"
                    )
            table[f.name] = f

        self.name = name
        self.words = words
        self.word_bits = word_bits
        self.size = storage.size
        self._fields = table

    @property
    def names(self) -> list[str]:
        return list(self._fields)

    def __getitem__(self, name: str) -> Field:
        try:
            return self._fields[name]
        except KeyError:
            raise ValueError(
                f"Unknown field '{name}' for {self.name}. Valid: {self.names}"
            ) from None

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)


class Layer:
    """Base class for every protocol layer."""

    NAME: ClassVar[str] = "Layer"
    PROTO_ID: ClassVar[int] = 0
    WORDS: ClassVar[int] = 0
    WORD_BITS: ClassVar[int] = DEFAULT_WORD_BITS
    FIELDS: ClassVar[tuple[Field, ...]] = ()
    DEFAULTS: ClassVar[dict[str, Any]] = {}
    ALIASES: ClassVar[tuple[str, ...]] = ()
    CHECKSUM_FIELD: ClassVar[str | None] = None
    OPTIONAL_CHECKSUM: ClassVar[bool] = False
    PROVIDES_ADDRESSES: ClassVar[bool] = False

    schema: ClassVar[LayerSchema]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.schema = LayerSchema(
            cls.NAME, cls.WORDS, cls.WORD_BITS, tuple(cls.FIELDS), tuple(cls.ALIASES)
        )
        for name in cls.DEFAULTS:
            if name not in cls.schema:
                raise FieldLayoutError(f"{cls.NAME}: default for unknown field '{name}'")
        if cls.CHECKSUM_FIELD is not None and cls.CHECKSUM_FIELD not in cls.schema:
            raise FieldLayoutError(
                f"{cls.NAME}: checksum field '{cls.CHECKSUM_FIELD}' is not defined"
            )
        if cls.PROVIDES_ADDRESSES:
            NETWORK_LAYER_IDS.add(cls.PROTO_ID)

    def __init__(self, **fields: Any) -> None:
        self._words = WordBuffer(self.schema.words, self.schema.word_bits)
        self._states = {name: FieldState.UNSET for name in self.schema.names}
        self.state = CraftState.UNSET
        self._bottom: Layer | None = None
        self._top: Layer | None = None
        self._stacked = False

        for name, value in self.DEFAULTS.items():
            field = self.schema[name]
            self._words.write(field, self._coerce(field, value))
        for name, value in fields.items():
            self.set(name, value)

    # ── field access ────────────────────────────────────────────────

    @staticmethod
    def _coerce(field: Field, value: Any) -> int:
        if field.kind is FieldKind.IPV4 and not isinstance(value, int):
            return int(ipaddress.IPv4Address(value))
        return int(value)

    def field(self, name: str) -> Field:
        return self.schema[name]

    def get(self, name: str) -> int:
        return self._words.read(self.schema[name])

    def set(self, name: str, value: Any) -> int:
        """Write a field and pin it so crafting leaves it alone.

        Values wider than the field are truncated to its bit width.

        Returns:
            The value actually stored.
        """
        field = self.schema[name]
        stored = self._words.write(field, self._coerce(field, value))
        self._states[name] = FieldState.PINNED
        self.state = CraftState.UNSET
        return stored

    def is_set(self, name: str) -> bool:
        """True if the field is pinned by the caller."""
        return self._states[self.schema[name].name] is FieldState.PINNED

    def field_state(self, name: str) -> FieldState:
        return self._states[self.schema[name].name]

    def reset_field(self, name: str) -> None:
        """Forget how a field got its value so the next craft recomputes it."""
        self._states[self.schema[name].name] = FieldState.UNSET
        self.state = CraftState.UNSET

    def reset_fields(self) -> None:
        for name in self._states:
            self._states[name] = FieldState.UNSET
        self.state = CraftState.UNSET

    def fields(self) -> dict[str, int]:
        """Logical field values, in declaration order."""
        return {f.name: self._words.read(f) for f in self.schema}

    # ── crafting helpers for subclasses ─────────────────────────────

    def _needs_craft(self, name: str) -> bool:
        return self._states[name] is FieldState.UNSET

    def _write_crafted(self, name: str, value: int) -> int:
        stored = self._words.write(self.schema[name], value)
        self._states[name] = FieldState.CRAFTED
        return stored

    def _craft_length(self, name: str) -> None:
        if self._needs_craft(name):
            self._write_crafted(name, self.remaining_size())

    def _craft_pseudo_header_checksum(self, name: str) -> None:
        """Compute a transport checksum over pseudo-header + header + payload.

        The addresses come from the layer below. If that layer is missing or
        is not a network layer, a warning is emitted and the checksum is 0.
        """
        if not self._needs_craft(name):
            return

        self._words.write(self.schema[name], 0)
        bottom = self.bottom_layer()
        bottom_id = bottom.layer_id if bottom is not None else None

        if bottom is not None and bottom_id in NETWORK_LAYER_IDS:
            src, dst = bottom.addresses()
            length = self.remaining_size()
            buffer = pseudo_header(src, dst, self.PROTO_ID, length) + self.data()
            checksum = internet_checksum(buffer)
        else:
            emit(
                Severity.WARNING,
                f"{self.NAME}.craft()",
                f"Bottom layer of {self.NAME} packet is not a network layer. "
                f"Cannot calculate {self.NAME} checksum.",
            )
            checksum = 0

        self._write_crafted(name, checksum)

    def _craft_header_checksum(self, name: str) -> None:
        """Checksum over this layer's own header only (IPv4 style)."""
        if not self._needs_craft(name):
            return
        self._words.write(self.schema[name], 0)
        self._write_crafted(name, internet_checksum(self.header_bytes()))

    # ── crafting ────────────────────────────────────────────────────

    def craft(self) -> None:
        """Fill in every unset field this layer knows how to compute.

        Pinned and previously crafted fields are never touched, so calling
        ``craft()`` again is a no-op until :meth:`reset_field` is used.
        """
        self.state = CraftState.COMPUTING
        self._craft()
        self.state = CraftState.FINALIZED

    def _craft(self) -> None:
        """Per-protocol craft step. The base layer has nothing to compute."""

    # ── stack geometry ──────────────────────────────────────────────

    @property
    def layer_id(self) -> int:
        return self.PROTO_ID

    @property
    def header_size(self) -> int:
        return self.schema.size

    def header_bytes(self) -> bytes:
        return self._words.to_bytes()

    def bottom_layer(self) -> Layer | None:
        return self._bottom

    def top_layer(self) -> Layer | None:
        return self._top

    def _above(self) -> Iterator[Layer]:
        layer = self._top
        while layer is not None:
            yield layer
            layer = layer._top

    def remaining_size(self) -> int:
        """Size of this header plus everything stacked above it."""
        return self.header_size + sum(layer.header_size for layer in self._above())

    def payload_size(self) -> int:
        return sum(layer.header_size for layer in self._above())

    def payload(self) -> bytes:
        """Everything above this layer, as one opaque blob."""
        return b"".join(layer.header_bytes() for layer in self._above())

    def data(self) -> bytes:
        """This header followed by its payload."""
        return self.header_bytes() + self.payload()

    def addresses(self) -> tuple[int, int]:
        """Source and destination address of a network layer.

        Raises:
            LayerTypeError: If this layer carries no addresses. Callers are
                expected to check ``layer_id`` against ``NETWORK_LAYER_IDS``
                first.
        """
        raise LayerTypeError(
            f"{self.NAME} (id {self.PROTO_ID:#06x}) does not carry network addresses"
        )

    # ── transmission ────────────────────────────────────────────────

    def build(self, context: TransmitContext) -> None:
        """Hand this layer's logical fields and payload to ``context``.

        Raises:
            TransmitError: If the layer was not crafted, or the context
                failed to build the header.
        """
        if self.state is not CraftState.FINALIZED:
            raise TransmitError(f"{self.NAME} must be crafted before it is built")

        logger.debug("Building %s header (%d payload bytes)", self.NAME, self.payload_size())
        self._hand_over(context, self.fields(), self.payload())

    def _hand_over(
        self, context: TransmitContext, fields: dict[str, int], payload: bytes
    ) -> None:
        try:
            context.build(self.NAME, fields, payload)
        except TransmitError:
            raise
        except Exception as e:
            message = f"Unable to build {self.NAME} header: {e}"
            emit(Severity.ERROR, f"{self.NAME}.build()", message)
            raise TransmitError(message) from e

    # ── (de)serialization ───────────────────────────────────────────

    @classmethod
    def from_bytes(cls, data: bytes) -> Layer:
        """Decode a header. Every decoded field is pinned."""
        layer = cls()
        layer._words = WordBuffer.from_bytes(
            data[: cls.schema.size], cls.schema.words, cls.schema.word_bits
        )
        for name in layer._states:
            layer._states[name] = FieldState.PINNED
        return layer

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> Layer:
        """Build a layer with every given field pinned."""
        return cls(**fields)

    def copy(self) -> Layer:
        """Unlinked copy with the same values and field states."""
        clone = type(self).__new__(type(self))
        clone._words = self._words.copy()
        clone._states = dict(self._states)
        clone.state = self.state
        clone._bottom = None
        clone._top = None
        clone._stacked = False
        return clone

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"layer": self.NAME, "id": f"0x{self.PROTO_ID:04x}"}
        for f in self.schema:
            d[f.name] = f.format(self._words.read(f))
        return d

    def __truediv__(self, other):
        from .packet import Packet

        return Packet(self) / other

    def __repr__(self) -> str:
        values = ", ".join(
            f"{f.name}={f.format(self._words.read(f))}" for f in self.schema
        )
        return f"{self.NAME}({values})"


Layer.schema = LayerSchema(Layer.NAME, 0, DEFAULT_WORD_BITS, ())


def field_property(name: str, doc: str | None = None) -> property:
    """Attribute access to a named field. Assigning pins the field."""

    def getter(self: Layer) -> int:
        return self.get(name)

    def setter(self: Layer, value: Any) -> None:
        self.set(name, value)

    return property(getter, setter, doc=doc)
