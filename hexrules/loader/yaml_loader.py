"""Reads rule documents from YAML files or already-parsed data.

Every malformed document surfaces as ``LoadError``; pydantic and YAML
errors never leak to callers.
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Sequence

import yaml
from pydantic import TypeAdapter
from pydantic import ValidationError as DocumentError

from hexrules.core.errors import LoadError
from hexrules.core.rules import Rule, Template, TemplateLibrary
from hexrules.core.structures import Structure
from hexrules.loader.documents import LibraryDoc, RuleDoc, StructureDoc, TemplateDoc

logger = logging.getLogger(__name__)

_RULES = TypeAdapter(list[RuleDoc])


def _describe(exc: DocumentError) -> str:
    first = exc.errors()[0]
    where = ".".join(str(part) for part in first["loc"]) or "<root>"
    more = f" (+{exc.error_count() - 1} more)" if exc.error_count() > 1 else ""
    return f"{where}: {first['msg']}{more}"


def parse_rules(data: Sequence[Any]) -> list[Rule]:
    try:
        docs = _RULES.validate_python(data)
    except DocumentError as exc:
        raise LoadError(f"invalid rule list: {_describe(exc)}") from exc
    return [doc.to_model() for doc in docs]


def parse_template(data: Any) -> Template:
    try:
        doc = TemplateDoc.model_validate(data)
    except DocumentError as exc:
        raise LoadError(f"invalid template: {_describe(exc)}") from exc
    return doc.to_model()


def parse_library(data: Any) -> TemplateLibrary:
    """Accept a single template document or a ``templates``/``structures`` library."""
    if isinstance(data, dict) and "rules" in data:
        return TemplateLibrary([parse_template(data)])
    try:
        doc = LibraryDoc.model_validate(data)
    except DocumentError as exc:
        raise LoadError(f"invalid template library: {_describe(exc)}") from exc
    return doc.to_model()


def parse_structures(data: Sequence[Any]) -> list[Structure]:
    try:
        return [StructureDoc.model_validate(item).to_model() for item in data]
    except DocumentError as exc:
        raise LoadError(f"invalid structure: {_describe(exc)}") from exc


def read_yaml(path: str | Path) -> Any:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise LoadError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise LoadError(f"{path} is not valid YAML: {exc}") from exc


def load_template(path: str | Path) -> Template:
    template = parse_template(read_yaml(path))
    logger.info("Loaded template %r (%d rules) from %s", template.name, len(template.rules), path)
    return template


def load_library(paths: Iterable[str | Path]) -> TemplateLibrary:
    """Merge every file into one library; a later template of the same name wins."""
    library = TemplateLibrary()
    for path in paths:
        partial = parse_library(read_yaml(path))
        for structure in partial.structures.values():
            library.add_structure(structure)
        for template in partial.templates.values():
            library.add_template(template)
    logger.info("Loaded %d template(s), %d structure(s)", len(library), len(library.structures))
    return library


def builtin_template_paths() -> list[Path]:
    """The sample templates shipped inside the package."""
    folder = resources.files("hexrules") / "templates"
    return sorted(Path(str(entry)) for entry in folder.iterdir() if entry.name.endswith(".yaml"))


def load_builtin_library() -> TemplateLibrary:
    return load_library(builtin_template_paths())
