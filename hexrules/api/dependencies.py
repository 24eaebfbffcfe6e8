"""Route dependency for the process-wide GenerationService.

The app lifespan installs the service with ``use_generation_service``; route
functions receive it through ``Depends(get_generation_service)``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from hexrules.api.generation_service import GenerationService

_service: GenerationService | None = None


def set_generation_service(service: GenerationService | None) -> None:
    global _service
    _service = service


@contextmanager
def use_generation_service(service: GenerationService) -> Iterator[GenerationService]:
    """Install ``service`` for the duration of the block, then restore the previous one."""
    previous = _service
    set_generation_service(service)
    try:
        yield service
    finally:
        set_generation_service(previous)


def get_generation_service() -> GenerationService:
    if _service is None:
        raise RuntimeError("no GenerationService installed; start the app through create_app() or use_generation_service()")
    return _service
