"""Static rule-set validation and template expansion.

Everything here runs before the first mutation of a pass: a ``LoadError``
raised during validation leaves the world untouched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Iterable

from hexrules.core.errors import LoadError
from hexrules.core.structures import resolve_structure

if TYPE_CHECKING:
    from hexrules.core.rules import Rule, Template, TemplateLibrary


def schedule_order(rules: Iterable[Rule]) -> list[Rule]:
    """Priority descending, declaration order breaking ties."""
    indexed = list(enumerate(rules))
    indexed.sort(key=lambda item: (-item[1].priority, item[0]))
    return [rule for _, rule in indexed]


def child_rules(template: Template) -> list[Rule]:
    """The template's rules in schedule order, renamed ``"<template>/<rule>"``."""
    return [replace(rule, name=f"{template.name}/{rule.name}") for rule in schedule_order(template.rules)]


class RuleSetValidator:
    """Resolves every template reference and structure the rules can reach.

    Template expansion is followed depth-first with the current expansion
    path, so direct and transitive self-reference are both caught.
    """

    __slots__ = ("_library", "_verified")

    def __init__(self, library: TemplateLibrary) -> None:
        self._library = library
        self._verified: set[str] = set()

    def validate(self, rules: Iterable[Rule]) -> None:
        for rule in rules:
            self._check_rule(rule, ())

    def _check_rule(self, rule: Rule, path: tuple[str, ...]) -> None:
        if not rule.name:
            raise LoadError("rule without a name")
        for structure in rule.structures():
            resolve_structure(structure, self._library.structures)
        for name in rule.template_references():
            self._check_template(name, path, rule.name)

    def _check_template(self, name: str, path: tuple[str, ...], referrer: str) -> None:
        if name in path:
            cycle = " -> ".join(path + (name,))
            raise LoadError(f"template cycle: {cycle}")
        template = self._library.template(name)
        if template is None:
            raise LoadError(f"rule {referrer!r} applies unknown template {name!r}")
        if name in self._verified:
            return
        for rule in template.rules:
            self._check_rule(rule, path + (name,))
        self._verified.add(name)
