"""Token substitution, identifier sanitising and text-file detection."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Mapping

# One allow-list for both template copying and project generation so the two
# never disagree about what gets substituted.
TEXT_FILE_SUFFIXES = frozenset(
    {
        ".txt",
        ".json",
        ".yaml",
        ".yml",
        ".xml",
        ".cs",
        ".csproj",
        ".java",
        ".py",
        ".js",
        ".mjs",
        ".ts",
        ".go",
        ".mod",
        ".bicep",
        ".tf",
        ".md",
        ".sql",
        ".ps1",
        ".sh",
        ".bat",
        ".cmd",
        ".config",
        ".template",
        ".tmpl",
        ".mustache",
        ".handlebars",
        ".toml",
        ".ini",
        ".properties",
        ".gradle",
    }
)

_TOKEN_PATTERN = re.compile(r"\{([A-Za-z0-9_.\-]+)\}")
_IDENTIFIER_STRIP = re.compile(r"[^A-Za-z0-9_]")
_SNAKE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def is_text_file(path: Path | str) -> bool:
    """Return True when the file should be token-substituted rather than byte-copied."""
    return Path(path).suffix.lower() in TEXT_FILE_SUFFIXES


def replace_tokens(content: str, replacements: Mapping[str, str]) -> str:
    """Replace `{name}` placeholders that have a mapping entry; leave the rest verbatim.

    Substitution happens in a single pass, so values that themselves contain
    placeholders are not expanded again.
    """
    if not replacements:
        return content

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in replacements:
            value = replacements[key]
            return "" if value is None else str(value)
        return match.group(0)

    return _TOKEN_PATTERN.sub(_substitute, content)


def find_tokens(content: str) -> List[str]:
    """Return distinct placeholder names in order of first appearance."""
    seen: List[str] = []
    for match in _TOKEN_PATTERN.finditer(content):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen


def sanitize_identifier(value: str | None) -> str:
    """Strip characters outside `[A-Za-z0-9_]` and guard against a leading digit."""
    if value is None or not value.strip():
        return "Generated"
    sanitized = _IDENTIFIER_STRIP.sub("", value)
    if not sanitized:
        return "Generated"
    if sanitized[0].isdigit():
        return f"_{sanitized}"
    return sanitized


def sanitize_namespace(value: str | None) -> str:
    if value is None or not value.strip():
        return "Generated.API"
    return ".".join(sanitize_identifier(part) for part in value.split(".") if part)


def capitalize(value: str) -> str:
    return value[:1].upper() + value[1:] if value else value


def to_camel_case(value: str) -> str:
    if not value:
        return value
    if "_" in value:
        parts = [part for part in value.split("_") if part]
        if not parts:
            return value
        head, rest = parts[0], parts[1:]
        return head[:1].lower() + head[1:] + "".join(capitalize(part) for part in rest)
    return value[:1].lower() + value[1:]


def to_pascal_case(value: str) -> str:
    if not value:
        return value
    if "_" in value:
        return "".join(capitalize(part) for part in value.split("_") if part)
    return capitalize(value)


def to_snake_case(value: str) -> str:
    if not value:
        return value
    return _SNAKE_BOUNDARY.sub("_", value).lower()


__all__ = [
    "TEXT_FILE_SUFFIXES",
    "capitalize",
    "find_tokens",
    "is_text_file",
    "replace_tokens",
    "sanitize_identifier",
    "sanitize_namespace",
    "to_camel_case",
    "to_pascal_case",
    "to_snake_case",
]
