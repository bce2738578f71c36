"""Transmit contexts: the boundary where crafted layers leave the engine.

A context receives each layer's *logical* fields plus the payload above it,
top-most layer first, and is responsible for turning them into wire bytes.
Putting those bytes on a NIC is outside this package; :class:`BufferContext`
assembles them in memory.

Failures never terminate the process. They surface as :class:`TransmitError`
to the caller of ``Layer.build`` / ``Packet.build``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class TransmitError(RuntimeError):
    """A layer could not be handed to, or built by, a transmit context."""


class TransmitContext(ABC):
    """Receives crafted layers, top-most first."""

    @abstractmethod
    def build(self, name: str, fields: dict[str, int], payload: bytes) -> int:
        """Build one header.

        Args:
            name: Layer name (e.g. ``"UDP"``).
            fields: Logical field values of the crafted layer.
            payload: Everything stacked above the layer. Owned by the caller.

        Returns:
            A tag identifying the built header inside this context.
        """


@dataclass
class BuiltHeader:
    """One header recorded by a :class:`BufferContext`."""

    tag: int
    name: str
    header: bytes
    payload: bytes

    def __repr__(self) -> str:
        return (
            f"BuiltHeader(tag={self.tag}, name={self.name!r}, "
            f"header={self.header.hex(' ')}, payload_len={len(self.payload)})"
        )


class BufferContext(TransmitContext):
    """In-memory context that serializes headers from their logical fields.

    Usage::

        ctx = BufferContext()
        packet.build(ctx)
        wire = ctx.wire()
    """

    def __init__(self, registry: dict[str, type] | None = None) -> None:
        if registry is None:
            from ..models import LAYER_CLASSES

            registry = LAYER_CLASSES
        self._registry = registry
        self.headers: list[BuiltHeader] = []

    def build(self, name: str, fields: dict[str, int], payload: bytes) -> int:
        if name not in self._registry:
            raise TransmitError(
                f"Unknown layer '{name}'. Valid: {list(self._registry)}"
            )
        layer = self._registry[name].from_fields(fields)
        tag = len(self.headers) + 1
        self.headers.append(
            BuiltHeader(tag=tag, name=name, header=layer.header_bytes(), payload=bytes(payload))
        )
        logger.debug("Built %s header (tag %d, payload %d bytes)", name, tag, len(payload))
        return tag

    def wire(self) -> bytes:
        """Bytes of the last (bottom-most) header built, with its payload."""
        if not self.headers:
            return b""
        last = self.headers[-1]
        return last.header + last.payload

    def clear(self) -> None:
        self.headers.clear()
