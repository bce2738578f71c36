"""Packet: an ordered stack of layers, bottom (network-facing) layer first."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from ..transport.context import TransmitContext
from .layer import Layer

logger = logging.getLogger(__name__)


class Packet:
    """A stack of linked layers.

    Usage::

        packet = IPv4(source_ip="10.0.0.1", destination_ip="10.0.0.2") / UDP(dst_port=53) / b"data"
        wire = packet.to_bytes()
    """

    def __init__(self, *layers: Layer | bytes) -> None:
        self._layers: list[Layer] = []
        for layer in layers:
            self.push(layer)

    def push(self, layer: Layer | bytes) -> Layer:
        """Stack ``layer`` on top of the current top layer.

        Raw bytes are wrapped in a ``RawLayer``.

        Raises:
            ValueError: If the layer already belongs to a packet.
        """
        if isinstance(layer, (bytes, bytearray)):
            from ..models.raw import RawLayer

            layer = RawLayer(bytes(layer))
        if layer._stacked:
            raise ValueError(f"{layer.NAME} layer already belongs to a packet")

        if self._layers:
            below = self._layers[-1]
            below._top = layer
            layer._bottom = below
        layer._stacked = True
        self._layers.append(layer)
        return layer

    def _release(self) -> list[Layer]:
        layers = self._layers
        for layer in layers:
            layer._bottom = None
            layer._top = None
            layer._stacked = False
        self._layers = []
        return layers

    def __truediv__(self, other: Layer | Packet | bytes) -> Packet:
        if isinstance(other, Packet):
            for layer in other._release():
                self.push(layer)
        else:
            self.push(other)
        return self

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def __getitem__(self, index: int) -> Layer:
        return self._layers[index]

    def find(self, layer_id: int) -> Layer | None:
        """First layer (bottom-up) with the given protocol id."""
        for layer in self._layers:
            if layer.layer_id == layer_id:
                return layer
        return None

    @property
    def size(self) -> int:
        return sum(layer.header_size for layer in self._layers)

    def craft(self) -> None:
        """Craft every layer, top-most first.

        Upper layers are finalized before any checksum below covers them.
        Addresses borrowed from lower layers are never crafted, so they are
        already stable.
        """
        for layer in reversed(self._layers):
            layer.craft()
        logger.debug("Crafted %s", self)

    def to_bytes(self) -> bytes:
        self.craft()
        if not self._layers:
            return b""
        return self._layers[0].data()

    def build(self, context: TransmitContext) -> None:
        """Craft, then hand every layer to ``context`` top-most first.

        Raises:
            TransmitError: If any layer fails to build.
        """
        self.craft()
        for layer in reversed(self._layers):
            layer.build(context)

    def copy(self) -> Packet:
        return Packet(*(layer.copy() for layer in self._layers))

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "layers": [layer.to_dict() for layer in self._layers],
            "hex": self._layers[0].data().hex() if self._layers else "",
        }

    def __repr__(self) -> str:
        return " / ".join(repr(layer) for layer in self._layers) or "Packet()"
