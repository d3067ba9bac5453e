"""Java entity discovery from annotated source files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from ..models import EntityProperty, Language
from .base import SourceDiscoveryStrategy, block_body, top_level

_PACKAGE = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)
_DECLARATION = re.compile(
    r"(?P<modifiers>(?:(?:public|protected|private|abstract|final|static|sealed)\s+)*)"
    r"\b(?P<kind>class|interface|enum|record)\s+(?P<name>\w+)"
)
_FIELD = re.compile(
    r"^\s*(?P<annotations>(?:@[\w.]+(?:\([^)]*\))?\s+)*)"
    r"(?P<modifiers>(?:(?:private|public|protected|static|final|transient|volatile)\s+)*)"
    r"(?P<type>[\w.]+(?:<[\w<>,.?\s\[\]]*>)?(?:\[\])*)\s+"
    r"(?P<name>\w+)\s*(?:=[^;]*)?;",
    re.MULTILINE,
)
_KEYWORDS = {"return", "throw", "package", "import", "new", "else", "break", "continue"}


class JavaDiscovery(SourceDiscoveryStrategy):
    language = Language.JAVA
    suffixes = (".java",)
    fallback_dirs = ("src", "src/main/java", "lib")
    declaration_pattern = _DECLARATION

    def build_marker_pattern(self, escaped_marker: str) -> re.Pattern[str]:
        return re.compile(rf"@(?:[\w.]+\.)?{escaped_marker}\b(?:\s*\([^)]*\))?", re.IGNORECASE)

    def extract_namespace(self, content: str, path: Path) -> str:
        match = _PACKAGE.search(content)
        return match.group(1) if match else ""

    def extract_properties(
        self, content: str, declaration: re.Match[str]
    ) -> List[EntityProperty]:
        body = top_level(block_body(content, declaration.end()))
        properties: List[EntityProperty] = []
        for match in _FIELD.finditer(body):
            field_type = match.group("type")
            if field_type in _KEYWORDS or "static" in match.group("modifiers").split():
                continue
            annotations = tuple(
                item.strip() for item in re.findall(r"@[\w.]+", match.group("annotations"))
            )
            properties.append(
                EntityProperty(
                    name=match.group("name"),
                    source_type=re.sub(r"\s+", "", field_type),
                    is_nullable=any(item.lower().endswith("nullable") for item in annotations),
                    markers=annotations,
                )
            )
        return properties


__all__ = ["JavaDiscovery"]
