"""Thread-safe, ordered log of non-fatal generation diagnostics."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hexrules.core.enums import DiagnosticKind

if TYPE_CHECKING:
    from hexrules.core.hex import Hex


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One rejected action, conflict, capacity stop, or notable evaluation."""

    seq: int                       # position of the rule in the pass schedule
    rule: str
    kind: DiagnosticKind
    message: str
    cell: Hex | None = None
    action_index: int | None = None

    def __str__(self) -> str:
        where = f" at {self.cell}" if self.cell is not None else ""
        action = f" action#{self.action_index}" if self.action_index is not None else ""
        return f"[{self.kind.name}] {self.rule}{action}{where}: {self.message}"


class DiagnosticLog:
    """Append-only log. Entries keep insertion order, which the engine makes deterministic."""

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []
        self._lock = threading.Lock()

    def append(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._entries.append(diagnostic)

    def entries(self) -> tuple[Diagnostic, ...]:
        with self._lock:
            return tuple(self._entries)
