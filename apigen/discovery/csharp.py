"""C# entity discovery.

Compiled assemblies cannot be inspected from Python, so this strategy reads
``*.cs`` sources instead and looks for the tracking attribute on type
declarations. Only auto-properties (``public T Name { get; ... }``) are
reported as members.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Tuple

from ..models import EntityProperty, Language
from .base import SourceDiscoveryStrategy, block_body

_NAMESPACE = re.compile(r"^\s*namespace\s+([\w.]+)", re.MULTILINE)
_DECLARATION = re.compile(
    r"(?P<modifiers>(?:(?:public|internal|private|protected|sealed|abstract|static|partial|readonly)\s+)*)"
    r"\b(?P<kind>class|interface|record|struct)\s+(?P<name>\w+)"
)
_PROPERTY = re.compile(
    r"\bpublic\s+(?:(?:virtual|override|required|new)\s+)*"
    r"(?P<type>[\w.]+(?:<[\w<>,.?\s\[\]]*>)?(?:\[\])*\??)\s+"
    r"(?P<name>\w+)\s*\{\s*get\b"
)

_CLR_NAMES = {
    "String": "string",
    "Int32": "int",
    "Int64": "long",
    "Boolean": "bool",
    "Decimal": "decimal",
    "Double": "double",
    "Single": "float",
    "DateTime": "DateTime",
    "Guid": "Guid",
}


class CSharpDiscovery(SourceDiscoveryStrategy):
    language = Language.CSHARP
    suffixes = (".cs",)
    fallback_dirs = ("src", "Models", "Entities")
    declaration_pattern = _DECLARATION

    def build_marker_pattern(self, escaped_marker: str) -> re.Pattern[str]:
        # Matches [Marker], [MarkerAttribute(...)] and stacked lists such as [Serializable, Marker].
        return re.compile(
            rf"\[[^\]]*?\b{escaped_marker}(?:Attribute)?\b[^\]]*\]",
            re.IGNORECASE,
        )

    def extract_namespace(self, content: str, path: Path) -> str:
        match = _NAMESPACE.search(content)
        return match.group(1) if match else ""

    def extract_properties(
        self, content: str, declaration: re.Match[str]
    ) -> List[EntityProperty]:
        body = block_body(content, declaration.end())
        properties: List[EntityProperty] = []
        for match in _PROPERTY.finditer(body):
            type_name, nullable = normalize_type(match.group("type"))
            properties.append(
                EntityProperty(name=match.group("name"), source_type=type_name, is_nullable=nullable)
            )
        return properties


def normalize_type(raw: str) -> Tuple[str, bool]:
    """Return the friendly type name and whether it is nullable."""
    text = re.sub(r"\s+", "", raw)
    nullable = False
    if text.endswith("?"):
        text = text[:-1]
        nullable = True
    outer, args = _split_generic(text)
    if outer in {"Nullable", "System.Nullable"} and len(args) == 1:
        inner, _ = normalize_type(args[0])
        return inner, True
    return _friendly(text), nullable


def _friendly(text: str) -> str:
    suffix = ""
    while text.endswith("[]"):
        text = text[:-2]
        suffix += "[]"
    outer, args = _split_generic(text)
    if outer.startswith("System."):
        outer = outer[len("System.") :]
    if args:
        rendered = ", ".join(_friendly(arg) for arg in args)
        return f"{outer}<{rendered}>{suffix}"
    return _CLR_NAMES.get(outer, outer) + suffix


def _split_generic(text: str) -> Tuple[str, List[str]]:
    if "<" not in text or not text.endswith(">"):
        return text, []
    outer, _, inner = text.partition("<")
    inner = inner[:-1]
    args: List[str] = []
    depth = 0
    current = ""
    for char in inner:
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        if char == "," and depth == 0:
            args.append(current)
            current = ""
            continue
        current += char
    if current:
        args.append(current)
    return outer, args


__all__ = ["CSharpDiscovery", "normalize_type"]
