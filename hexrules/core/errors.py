"""Generation error taxonomy.

``LoadError`` is fatal and aborts a pass before any mutation. The others are
local to one action at one candidate: the executor turns them into outcomes
and the engine records them as diagnostics.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from hexrules.core.enums import DiagnosticKind

if TYPE_CHECKING:
    from hexrules.core.hex import Hex


class GenerationError(Exception):
    """Base class for everything the generator raises."""

    kind: DiagnosticKind = DiagnosticKind.VALIDATION


class LoadError(GenerationError):
    """Malformed rule set: unknown tag, unknown template, template cycle."""

    kind = DiagnosticKind.LOAD


class ValidationError(GenerationError):
    """An action violates an elevation, terrain or connection-graph constraint."""

    kind = DiagnosticKind.VALIDATION


class ConflictError(GenerationError):
    """Cells already claimed by a higher-priority rule in the same pass."""

    kind = DiagnosticKind.CONFLICT

    def __init__(self, message: str, cells: Iterable[Hex] = ()) -> None:
        super().__init__(message)
        self.cells: tuple[Hex, ...] = tuple(sorted(cells))


class CapacityError(GenerationError):
    """A scan cap or ``max_count`` was reached; the rule stops early."""

    kind = DiagnosticKind.CAPACITY
