"""Go entity discovery from comment-marked struct types."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from ..models import EntityProperty, Language
from .base import SourceDiscoveryStrategy, block_body

_PACKAGE = re.compile(r"^\s*package\s+(\w+)", re.MULTILINE)
_DECLARATION = re.compile(r"\btype\s+(?P<name>\w+)\s+(?P<kind>struct)\b")
_FIELD = re.compile(
    r"^[ \t]*(?P<names>[A-Za-z_]\w*(?:\s*,\s*[A-Za-z_]\w*)*)[ \t]+"
    r"(?P<pointer>\*?)(?P<type>(?:\[\]|\[\d+\]|map\[[^\]]+\])*\*?[\w.]+)"
    r"(?:[ \t]+`(?P<tag>[^`]*)`)?",
    re.MULTILINE,
)


class GoDiscovery(SourceDiscoveryStrategy):
    language = Language.GO
    suffixes = (".go",)
    fallback_dirs = ("pkg", "internal", "models")
    declaration_pattern = _DECLARATION

    def build_marker_pattern(self, escaped_marker: str) -> re.Pattern[str]:
        return re.compile(rf"//[ \t]*@?{escaped_marker}\b[^\n]*", re.IGNORECASE)

    def extract_namespace(self, content: str, path: Path) -> str:
        match = _PACKAGE.search(content)
        return match.group(1) if match else "main"

    def is_public(self, declaration: re.Match[str]) -> bool:
        return declaration.group("name")[:1].isupper()

    def extract_properties(
        self, content: str, declaration: re.Match[str]
    ) -> List[EntityProperty]:
        body = block_body(content, declaration.end())
        properties: List[EntityProperty] = []
        for match in _FIELD.finditer(body):
            tag = match.group("tag")
            for name in (item.strip() for item in match.group("names").split(",")):
                properties.append(
                    EntityProperty(
                        name=name,
                        source_type=match.group("type"),
                        is_nullable=bool(match.group("pointer")),
                        markers=(tag,) if tag else (),
                    )
                )
        return properties


__all__ = ["GoDiscovery"]
