"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hexrules.api.dependencies import use_generation_service
from hexrules.api.generation_service import GenerationService
from hexrules.api.routes import api_router
from hexrules.config import GenerationConfig
from hexrules.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: GenerationConfig | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    if config is None:
        config = GenerationConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        with use_generation_service(GenerationService(_config)) as service:
            logger.info("API server started — %d template(s) available.", len(service.library))
            yield
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Hex Rules Generator",
        description=(
            "Deterministic rule-driven procedural generation for hex grid worlds.\n\n"
            "## API Groups\n\n"
            "- **Generate** — Run a generation pass over a fresh region\n"
            "- **Map** — Terrain and elevation of the last generated world\n"
            "- **Config** — Read-only generation configuration\n"
            "- **Metadata** — Terrains, rule vocabulary and built-in templates\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Generate", "description": "Run rules or named templates over a parallelogram region and return mutated cells, structures and diagnostics."},
            {"name": "Map", "description": "RLE-encoded terrain and elevation of the most recent generated world."},
            {"name": "Config", "description": "Read-only generation configuration (seed, region size, bands, scheduling limits)."},
            {"name": "Metadata", "description": "Terrains, condition and action tags, diagnostic kinds, and the built-in template library."},
        ],
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
