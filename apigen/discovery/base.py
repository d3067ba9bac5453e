"""Base class for regex-driven source discovery strategies."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Set, Tuple

from ..models import DiscoveredEntity, EntityProperty, Language

# Maximum distance between a marker and the declaration it applies to.
LOOKAHEAD_WINDOW = 400


class SourceDiscoveryStrategy(ABC):
    """Finds marked type declarations in one language's source files.

    Subclasses provide the file suffixes, the marker and declaration
    patterns, and member extraction. The declaration pattern must expose
    a ``name`` group and may expose ``kind`` and ``modifiers`` groups.
    """

    language: Language
    suffixes: Tuple[str, ...] = ()
    fallback_dirs: Tuple[str, ...] = ("src", "lib")
    declaration_pattern: re.Pattern[str]

    def __init__(self, marker: str, *, ignore_marker: bool = False) -> None:
        self.marker = marker.strip()
        self.ignore_marker = ignore_marker
        self._marker_pattern = self.build_marker_pattern(re.escape(self.marker))

    @abstractmethod
    def build_marker_pattern(self, escaped_marker: str) -> re.Pattern[str]:
        """Return the compiled pattern that recognises the tracking marker."""

    @abstractmethod
    def extract_properties(
        self, content: str, declaration: re.Match[str]
    ) -> List[EntityProperty]:
        """Return the members of the declared type in declaration order."""

    def extract_namespace(self, content: str, path: Path) -> str:
        return path.stem

    def is_public(self, declaration: re.Match[str]) -> bool:
        modifiers = _group(declaration, "modifiers") or ""
        return "public" in modifiers.split()

    def discover(self, path: Path, content: str) -> List[DiscoveredEntity]:
        """Return the entities declared in one file, in source order."""
        namespace = self.extract_namespace(content, path)
        entities: List[DiscoveredEntity] = []
        for declaration, markers in self._iter_declarations(content):
            name = declaration.group("name")
            kind = (_group(declaration, "kind") or "class").lower()
            full_name = f"{namespace}.{name}" if namespace else name
            entities.append(
                DiscoveredEntity(
                    name=name,
                    full_name=full_name,
                    namespace=namespace,
                    language=self.language,
                    source_location=str(path),
                    properties=tuple(self.extract_properties(content, declaration)),
                    markers=frozenset(markers),
                    is_public=self.is_public(declaration),
                    is_class=kind != "interface",
                    is_interface=kind == "interface",
                )
            )
        return entities

    def _iter_declarations(self, content: str):
        if self.ignore_marker:
            for declaration in self.declaration_pattern.finditer(content):
                if self.is_public(declaration):
                    markers = (self.marker,) if self._marked(content, declaration) else ()
                    yield declaration, markers
            return

        seen: Set[int] = set()
        for marker in self._marker_pattern.finditer(content):
            end = min(len(content), marker.end() + LOOKAHEAD_WINDOW)
            declaration = self.declaration_pattern.search(content, marker.end(), end)
            if declaration is None or declaration.start() in seen:
                continue
            seen.add(declaration.start())
            yield declaration, (self.marker,)

    def _marked(self, content: str, declaration: re.Match[str]) -> bool:
        start = max(0, declaration.start() - LOOKAHEAD_WINDOW)
        return self._marker_pattern.search(content, start, declaration.start()) is not None


def find_block(content: str, start: int) -> Optional[Tuple[int, int]]:
    """Return the (open, close) offsets of the first brace block at or after `start`."""
    open_index = content.find("{", start)
    if open_index == -1:
        return None
    depth = 0
    for index in range(open_index, len(content)):
        char = content[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return open_index, index
    return open_index, len(content)


def block_body(content: str, start: int) -> str:
    """Return the text inside the first brace block at or after `start`."""
    bounds = find_block(content, start)
    if bounds is None:
        return ""
    return content[bounds[0] + 1 : bounds[1]]


def top_level(body: str) -> str:
    """Blank out nested brace blocks so only the outermost statements remain."""
    parts: List[str] = []
    depth = 0
    for char in body:
        if char == "{":
            depth += 1
            continue
        if char == "}":
            depth = max(0, depth - 1)
            parts.append(";")
            continue
        if depth == 0:
            parts.append(char)
        elif char == "\n":
            parts.append(char)
    return "".join(parts)


def _group(match: re.Match[str], name: str) -> Optional[str]:
    try:
        return match.group(name)
    except IndexError:
        return None


__all__ = [
    "LOOKAHEAD_WINDOW",
    "SourceDiscoveryStrategy",
    "block_body",
    "find_block",
    "top_level",
]
