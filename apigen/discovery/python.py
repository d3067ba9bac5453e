"""Python entity discovery from decorated classes."""

from __future__ import annotations

import re
from typing import List, Set

from ..models import EntityProperty, Language
from .base import SourceDiscoveryStrategy

_DECLARATION = re.compile(r"^(?P<indent>[ \t]*)class\s+(?P<name>\w+)", re.MULTILINE)
_INIT = re.compile(r"^(?P<indent>[ \t]+)def\s+__init__\s*\(", re.MULTILINE)
_SELF_ASSIGN = re.compile(r"\bself\.(?P<name>\w+)\s*(?::\s*(?P<type>[^=\n]+?))?\s*=(?!=)")
_CLASS_FIELD = re.compile(r"^[ \t]+(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>[^=\n]+?)\s*(?:=.*)?$", re.MULTILINE)


class PythonDiscovery(SourceDiscoveryStrategy):
    """Collects `self.<name>` assignments made in `__init__`.

    Classes without an `__init__` fall back to class-level annotations so
    dataclass-style entities are still described.
    """

    language = Language.PYTHON
    suffixes = (".py",)
    fallback_dirs = ("src", "app", "lib")
    declaration_pattern = _DECLARATION

    def build_marker_pattern(self, escaped_marker: str) -> re.Pattern[str]:
        return re.compile(
            rf"^[ \t]*@(?:[\w.]+\.)?{escaped_marker}\b(?:\([^)]*\))?[ \t]*$",
            re.MULTILINE | re.IGNORECASE,
        )

    def is_public(self, declaration: re.Match[str]) -> bool:
        return not declaration.group("name").startswith("_")

    def extract_properties(
        self, content: str, declaration: re.Match[str]
    ) -> List[EntityProperty]:
        class_indent = len(declaration.group("indent").expandtabs())
        body = _indented_block(content, content.find("\n", declaration.end()), class_indent)

        init = _INIT.search(body)
        if init is not None:
            init_indent = len(init.group("indent").expandtabs())
            init_body = _indented_block(body, body.find("\n", init.end()), init_indent)
            return _unique(_from_assignments(init_body))
        return _unique(_from_annotations(body))


def _from_assignments(body: str) -> List[EntityProperty]:
    properties: List[EntityProperty] = []
    for match in _SELF_ASSIGN.finditer(body):
        annotation = (match.group("type") or "").strip()
        properties.append(_property(match.group("name"), annotation))
    return properties


def _from_annotations(body: str) -> List[EntityProperty]:
    properties: List[EntityProperty] = []
    lines = body.splitlines()
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    member_indent = min(indents) if indents else 0
    for match in _CLASS_FIELD.finditer(body):
        line = match.group(0)
        if len(line) - len(line.lstrip()) != member_indent:
            continue
        properties.append(_property(match.group("name"), match.group("type").strip()))
    return properties


def _property(name: str, annotation: str) -> EntityProperty:
    if not annotation:
        return EntityProperty(name=name, source_type="object", is_nullable=True)
    nullable = (
        annotation.startswith("Optional[")
        or annotation.startswith("typing.Optional[")
        or re.search(r"\|\s*None\b|\bNone\s*\|", annotation) is not None
    )
    return EntityProperty(name=name, source_type=annotation, is_nullable=nullable)


def _unique(properties: List[EntityProperty]) -> List[EntityProperty]:
    seen: Set[str] = set()
    result: List[EntityProperty] = []
    for prop in properties:
        if prop.name in seen:
            continue
        seen.add(prop.name)
        result.append(prop)
    return result


def _indented_block(content: str, start: int, parent_indent: int) -> str:
    """Return the lines after `start` indented deeper than `parent_indent`."""
    if start == -1:
        return ""
    lines: List[str] = []
    for line in content[start + 1 :].splitlines():
        if not line.strip():
            lines.append(line)
            continue
        indent = len(line) - len(line.lstrip())
        if indent <= parent_indent:
            break
        lines.append(line)
    return "\n".join(lines)


__all__ = ["PythonDiscovery"]
