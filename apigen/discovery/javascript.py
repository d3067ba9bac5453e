"""JavaScript entity discovery from comment-marked classes."""

from __future__ import annotations

import re
from typing import List, Set

from ..models import EntityProperty, Language
from .base import SourceDiscoveryStrategy, block_body, find_block

_DECLARATION = re.compile(
    r"(?P<modifiers>(?:export\s+(?:default\s+)?)?)"
    r"\b(?P<kind>class|function)\s+(?P<name>\w+)"
)
_CONSTRUCTOR = re.compile(r"\bconstructor\s*\(")
_THIS_ASSIGN = re.compile(r"\bthis\.(?P<name>\w+)\s*=(?!=)")


def comment_marker_pattern(escaped_marker: str) -> re.Pattern[str]:
    """Match `// Marker` line comments and `/** ... Marker ... */` doc blocks."""
    return re.compile(
        rf"//[ \t]*@?{escaped_marker}\b[^\n]*"
        rf"|/\*\*(?:(?!\*/).)*?@?\b{escaped_marker}\b(?:(?!\*/).)*\*/",
        re.IGNORECASE | re.DOTALL,
    )


class JavaScriptDiscovery(SourceDiscoveryStrategy):
    language = Language.JAVASCRIPT
    suffixes = (".js", ".mjs")
    fallback_dirs = ("src", "lib", "dist", "build")
    declaration_pattern = _DECLARATION

    def build_marker_pattern(self, escaped_marker: str) -> re.Pattern[str]:
        return comment_marker_pattern(escaped_marker)

    def is_public(self, declaration: re.Match[str]) -> bool:
        return True

    def extract_properties(
        self, content: str, declaration: re.Match[str]
    ) -> List[EntityProperty]:
        if declaration.group("kind") == "function":
            body = block_body(content, declaration.end())
        else:
            bounds = find_block(content, declaration.end())
            if bounds is None:
                return []
            class_body = content[bounds[0] + 1 : bounds[1]]
            constructor = _CONSTRUCTOR.search(class_body)
            if constructor is None:
                return []
            params_end = class_body.find(")", constructor.end())
            body = block_body(class_body, params_end if params_end != -1 else constructor.end())

        properties: List[EntityProperty] = []
        seen: Set[str] = set()
        for match in _THIS_ASSIGN.finditer(body):
            name = match.group("name")
            if name in seen:
                continue
            seen.add(name)
            properties.append(EntityProperty(name=name, source_type="any", is_nullable=True))
        return properties


__all__ = ["JavaScriptDiscovery", "comment_marker_pattern"]
