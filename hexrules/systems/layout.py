"""Structure layout generator — interior rooms, corridors, entrances, connections.

The purpose graph is checked before any geometry is computed, so an
inconsistent layout fails fast without touching the world.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable

from hexrules.core.enums import ConnectionType
from hexrules.core.errors import ValidationError
from hexrules.core.hex import Hex
from hexrules.core.structures import InteriorLayout, Structure

ENTRANCE = "entrance"


@dataclass(frozen=True, slots=True)
class StructureLayout:
    """Concrete, absolute placement of a structure's interior plan."""

    rooms: tuple[tuple[str, tuple[Hex, ...]], ...] = ()
    corridors: tuple[tuple[Hex, ...], ...] = ()
    entrances: tuple[Hex, ...] = ()
    connections: tuple[tuple[Hex, ConnectionType], ...] = ()

    def stamps(self) -> dict[Hex, str]:
        """Markers to write, later kinds overriding earlier ones on the same cell."""
        marks: dict[Hex, str] = {}
        for corridor in self.corridors:
            for pos in corridor:
                marks[pos] = "corridor"
        for pos in self.entrances:
            marks[pos] = ENTRANCE
        for pos, kind in self.connections:
            marks[pos] = kind.name.lower()
        return marks

    def room_cells(self, purpose: str) -> tuple[Hex, ...]:
        for name, cells in self.rooms:
            if name == purpose:
                return cells
        return ()


def purpose_order(layout: InteriorLayout) -> list[str]:
    """Check the required-connection graph and return rooms in BFS order.

    Raises ValidationError when a required purpose is missing or when some
    room cannot be reached through required connections.
    """
    nodes: list[str] = []
    for room in layout.rooms:
        if room.purpose not in nodes:
            nodes.append(room.purpose)
    if layout.entrances:
        nodes.append(ENTRANCE)

    edges: dict[str, set[str]] = {n: set() for n in nodes}
    for room in layout.rooms:
        for target in room.required_connections:
            if target not in edges:
                raise ValidationError(
                    f"room {room.purpose!r} requires a connection to {target!r}, "
                    "which is not part of the layout"
                )
            edges[room.purpose].add(target)
            edges[target].add(room.purpose)

    if not nodes:
        return []
    start = ENTRANCE if ENTRANCE in edges else nodes[0]
    seen = {start}
    order: list[str] = []
    queue: deque[str] = deque([start])
    while queue:
        node = queue.popleft()
        order.append(node)
        for nxt in sorted(edges[node]):
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    missing = [n for n in nodes if n not in seen]
    if missing:
        raise ValidationError(f"purposes not reachable from {start!r}: {', '.join(missing)}")
    return [n for n in order if n != ENTRANCE]


def _widen(cells: Iterable[Hex], width: int) -> tuple[Hex, ...]:
    out: set[Hex] = set()
    for pos in cells:
        out.update(pos.within(max(width - 1, 0)))
    return tuple(sorted(out))


class LayoutGenerator:
    """Expands a resolved structure's interior and connections at an anchor."""

    __slots__ = ()

    def generate(self, structure: Structure, anchor: Hex, footprint: Iterable[Hex]) -> StructureLayout:
        cells = frozenset(footprint)
        interior = structure.interior_layout
        rooms: list[tuple[str, tuple[Hex, ...]]] = []
        corridors: list[tuple[Hex, ...]] = []
        entrances: list[Hex] = []

        if interior is not None:
            order = purpose_order(interior)
            cursor = 0
            for purpose in order:
                for room in interior.rooms:
                    if room.purpose != purpose:
                        continue
                    w, h = room.size
                    if w <= 0 or h <= 0:
                        raise ValidationError(f"room {purpose!r} has invalid size {room.size}")
                    plan = tuple(anchor + Hex(cursor + dq, dr) for dq in range(w) for dr in range(h))
                    rooms.append((purpose, plan))
                    cursor += w

            for corridor in interior.corridors:
                if corridor.width < 1:
                    raise ValidationError(f"corridor width must be >= 1, got {corridor.width}")
                line = (anchor + corridor.start).line_to(anchor + corridor.end)
                corridors.append(_widen(line, corridor.width))

            for offset in interior.entrances:
                pos = anchor + offset
                if pos not in cells:
                    raise ValidationError(f"entrance {offset} lies outside the footprint")
                if all(n in cells for n in pos.neighbors()):
                    raise ValidationError(f"entrance {offset} is not on the footprint boundary")
                entrances.append(pos)

        connections: list[tuple[Hex, ConnectionType]] = []
        for conn in structure.connections or ():
            pos = anchor + conn.position
            if conn.required and pos not in cells:
                raise ValidationError(
                    f"required {conn.connection_type.name} connection at {conn.position} "
                    "falls outside the footprint"
                )
            connections.append((pos, conn.connection_type))

        return StructureLayout(
            rooms=tuple(rooms),
            corridors=tuple(corridors),
            entrances=tuple(entrances),
            connections=tuple(connections),
        )
