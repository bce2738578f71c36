"""Diagnostic sink for non-fatal conditions raised while crafting.

Every diagnostic is a ``(severity, component, message)`` triple. By default
they go to the standard ``logging`` module; callers can install another sink
with :func:`set_sink` or capture them with :class:`RecordingSink`.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable

logger = logging.getLogger(__name__)


class Severity(IntEnum):
    """Diagnostic severity, aligned with ``logging`` levels."""

    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    component: str
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.name}] {self.component}: {self.message}"


Sink = Callable[[Diagnostic], None]


def log_sink(diagnostic: Diagnostic) -> None:
    """Default sink: forward to the ``packetcraft.diagnostics`` logger."""
    logger.log(diagnostic.severity, "%s: %s", diagnostic.component, diagnostic.message)


# Active sink of the current thread or task.
_sink: ContextVar[Sink] = ContextVar("packetcraft_diagnostic_sink", default=log_sink)


def current_sink() -> Sink:
    return _sink.get()


def set_sink(sink: Sink | None) -> Token:
    """Install ``sink`` in the current context (``None`` restores logging).

    Returns:
        A token for :func:`reset_sink`.
    """
    return _sink.set(sink if sink is not None else log_sink)


def reset_sink(token: Token) -> None:
    """Restore the sink that was active before the matching ``set_sink``."""
    _sink.reset(token)


def emit(severity: Severity, component: str, message: str) -> Diagnostic:
    diagnostic = Diagnostic(severity, component, message)
    _sink.get()(diagnostic)
    return diagnostic


@dataclass
class RecordingSink:
    """Sink that keeps every diagnostic in memory.

    Usage::

        with RecordingSink() as sink:
            packet.craft()
        assert not sink.warnings
    """

    records: list[Diagnostic] = field(default_factory=list)
    _token: Token | None = field(default=None, repr=False)

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.records.append(diagnostic)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.records if d.severity == Severity.WARNING]

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.records if d.severity == Severity.ERROR]

    def __enter__(self) -> RecordingSink:
        self._token = set_sink(self)
        return self

    def __exit__(self, *exc) -> None:
        if self._token is not None:
            reset_sink(self._token)
            self._token = None
