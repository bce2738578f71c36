"""Opaque payload layer."""

from __future__ import annotations

from typing import Any

from ..protocol.layer import CraftState, Layer
from ..transport.context import TransmitContext, TransmitError

RAW_LAYER_ID = 0xFFF1


class RawLayer(Layer):
    """Arbitrary bytes with no fields. Its size is the size of its data."""

    NAME = "RawLayer"
    PROTO_ID = RAW_LAYER_ID

    def __init__(self, load: bytes | str = b"") -> None:
        super().__init__()
        self.load = load

    @property
    def load(self) -> bytes:
        return self._load

    @load.setter
    def load(self, value: bytes | str) -> None:
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._load = bytes(value)
        self.state = CraftState.UNSET

    @property
    def header_size(self) -> int:
        return len(self._load)

    def header_bytes(self) -> bytes:
        return self._load

    def build(self, context: TransmitContext) -> None:
        """Raw data travels as the payload of the layer below, if any."""
        if self.bottom_layer() is not None:
            return
        if self.state is not CraftState.FINALIZED:
            raise TransmitError(f"{self.NAME} must be crafted before it is built")
        self._hand_over(context, {}, self._load + self.payload())

    @classmethod
    def from_bytes(cls, data: bytes) -> RawLayer:
        return cls(bytes(data))

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> RawLayer:
        return cls()

    def copy(self) -> RawLayer:
        clone = type(self)(self._load)
        clone.state = self.state
        return clone

    def to_dict(self) -> dict[str, Any]:
        return {
            "layer": self.NAME,
            "id": f"0x{self.PROTO_ID:04x}",
            "size": len(self._load),
            "load": self._load.hex(),
        }

    def __repr__(self) -> str:
        return f"RawLayer(load={self._load!r})"
