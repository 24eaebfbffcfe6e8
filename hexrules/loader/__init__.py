"""Rule loader: YAML and JSON documents to the typed rule model."""

from hexrules.loader.yaml_loader import (
    builtin_template_paths,
    load_builtin_library,
    load_library,
    load_template,
    parse_library,
    parse_rules,
    parse_structures,
    parse_template,
)

__all__ = [
    "builtin_template_paths",
    "load_builtin_library",
    "load_library",
    "load_template",
    "parse_library",
    "parse_rules",
    "parse_structures",
    "parse_template",
]
