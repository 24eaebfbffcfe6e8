"""Versioned API route modules."""

from fastapi import APIRouter

from hexrules.api.routes.config import router as config_router
from hexrules.api.routes.generate import router as generate_router
from hexrules.api.routes.map import router as map_router
from hexrules.api.routes.metadata import router as metadata_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(generate_router, tags=["Generate"])
api_router.include_router(map_router, tags=["Map"])
api_router.include_router(config_router, tags=["Config"])
api_router.include_router(metadata_router)

__all__ = ["api_router"]
