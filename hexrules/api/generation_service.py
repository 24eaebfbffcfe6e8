"""GenerationService — builds worlds for API requests and keeps the latest result.

Each request runs a complete, synchronous pass on its own world. The most
recent result is swapped in under a lock so ``/map`` never sees a world that
is still being written.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from hexrules.core.enums import Terrain
from hexrules.core.errors import LoadError, ValidationError
from hexrules.core.hex import Hex
from hexrules.core.rules import TemplateLibrary
from hexrules.core.world_state import ElevationBands, HexCell, WorldState
from hexrules.engine.rule_engine import apply_rules
from hexrules.loader import load_builtin_library
from hexrules.systems.spatial_index import SpatialIndex

if TYPE_CHECKING:
    from hexrules.api.schemas import GenerateRequest
    from hexrules.config import GenerationConfig
    from hexrules.core.rules import Rule
    from hexrules.engine.rule_engine import GenerationResult

logger = logging.getLogger(__name__)


class GenerationService:
    """Owns the built-in template library and the latest generation result."""

    def __init__(self, config: GenerationConfig, library: TemplateLibrary | None = None) -> None:
        self._config = config
        self._library = library if library is not None else load_builtin_library()
        self._lock = threading.Lock()
        self._latest: GenerationResult | None = None
        self._latest_size: tuple[int, int] = (0, 0)

    @property
    def config(self) -> GenerationConfig:
        return self._config

    @property
    def library(self) -> TemplateLibrary:
        return self._library

    def latest(self) -> tuple[GenerationResult | None, tuple[int, int]]:
        with self._lock:
            return self._latest, self._latest_size

    def build_world(self, request: GenerateRequest, seed: int) -> WorldState:
        try:
            base = Terrain.parse(request.base_terrain)
            cells = {
                Hex(q, r): HexCell(terrain=base, elevation=request.base_elevation)
                for q in range(request.width)
                for r in range(request.height)
            }
            for override in request.cells:
                pos = Hex(override.q, override.r)
                if pos not in cells:
                    raise ValidationError(f"{pos} lies outside the {request.width}x{request.height} region")
                cells[pos] = HexCell(terrain=Terrain.parse(override.terrain), elevation=override.elevation)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return WorldState(seed, cells, SpatialIndex(self._config.spatial_cell_size), ElevationBands.from_config(self._config))

    def request_library(self, request: GenerateRequest) -> TemplateLibrary:
        """Built-in templates overlaid with the request's own templates and structures."""
        library = TemplateLibrary(self._library.templates.values(), self._library.structures.values())
        for doc in request.structures:
            library.add_structure(doc.to_model())
        for doc in request.templates:
            library.add_template(doc.to_model())
        return library

    def request_rules(self, request: GenerateRequest, library: TemplateLibrary) -> list[Rule]:
        rules = [doc.to_model() for doc in request.rules]
        for name in request.run:
            template = library.template(name)
            if template is None:
                raise LoadError(f"unknown template {name!r}")
            rules.extend(template.rules)
        return rules

    def generate(self, request: GenerateRequest) -> GenerationResult:
        seed = self._config.world_seed if request.seed is None else request.seed
        library = self.request_library(request)
        rules = self.request_rules(request, library)
        world = self.build_world(request, seed)
        logger.info("Generating %dx%d region with %d rule(s), seed=%d", request.width, request.height, len(rules), seed)
        result = apply_rules(world, rules, seed, templates=library, config=self._config)
        with self._lock:
            self._latest = result
            self._latest_size = (request.width, request.height)
        return result
