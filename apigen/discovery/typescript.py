"""TypeScript entity discovery from decorated or doc-commented declarations."""

from __future__ import annotations

import re
from typing import List, Set

from ..models import EntityProperty, Language
from .base import SourceDiscoveryStrategy, block_body, top_level
from .javascript import comment_marker_pattern

_DECLARATION = re.compile(
    r"(?P<modifiers>(?:export\s+(?:default\s+)?)?(?:declare\s+)?(?:abstract\s+)?)"
    r"\b(?P<kind>interface|class|type)\s+(?P<name>\w+)"
)
_MEMBER = re.compile(
    r"(?:^|(?<=[;,]))\s*(?P<modifiers>(?:(?:public|private|protected|readonly|static|declare)\s+)*)"
    r"(?P<name>\w+)(?P<optional>\?)?\s*!?\s*:\s*(?P<type>(?:<[^>]*>|[^;,\n<])+)",
    re.MULTILINE,
)
_NULLISH = re.compile(r"\|\s*(?:null|undefined)\b|\b(?:null|undefined)\s*\|")


class TypeScriptDiscovery(SourceDiscoveryStrategy):
    language = Language.TYPESCRIPT
    suffixes = (".ts", ".tsx")
    fallback_dirs = ("src", "lib", "types")
    declaration_pattern = _DECLARATION

    def build_marker_pattern(self, escaped_marker: str) -> re.Pattern[str]:
        decorator = rf"@{escaped_marker}\b(?:\s*\([^)]*\))?"
        return re.compile(
            decorator + "|" + comment_marker_pattern(escaped_marker).pattern,
            re.IGNORECASE | re.DOTALL,
        )

    def is_public(self, declaration: re.Match[str]) -> bool:
        return "export" in declaration.group("modifiers")

    def extract_properties(
        self, content: str, declaration: re.Match[str]
    ) -> List[EntityProperty]:
        body = top_level(block_body(content, declaration.end()))
        properties: List[EntityProperty] = []
        seen: Set[str] = set()
        for match in _MEMBER.finditer(body):
            modifiers = match.group("modifiers").split()
            name = match.group("name")
            type_text = match.group("type").split("//")[0].strip() or "object"
            if "private" in modifiers or "static" in modifiers or name in seen:
                continue
            # parameter lists of methods and constructors
            if "(" in type_text or ")" in type_text:
                continue
            seen.add(name)
            nullable = bool(match.group("optional")) or _NULLISH.search(type_text) is not None
            properties.append(EntityProperty(name=name, source_type=type_text, is_nullable=nullable))
        return properties


__all__ = ["TypeScriptDiscovery"]
