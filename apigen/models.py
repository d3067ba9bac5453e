"""Core data models shared across apigen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


class Language(str, Enum):
    """Target languages supported by discovery and emission."""

    CSHARP = "csharp"
    JAVA = "java"
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    GO = "go"

    @classmethod
    def parse(cls, value: str) -> "Language":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported language: {value}") from None


@dataclass(frozen=True)
class EntityProperty:
    """A single member of a discovered entity."""

    name: str
    source_type: str
    is_nullable: bool = False
    markers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DiscoveredEntity:
    """A type flagged for API generation in the scanned code base."""

    name: str
    full_name: str
    namespace: str
    language: Language
    source_location: str
    properties: Tuple[EntityProperty, ...] = ()
    markers: FrozenSet[str] = frozenset()
    is_public: bool = True
    is_class: bool = True
    is_interface: bool = False

    def to_summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "fullName": self.full_name,
            "namespace": self.namespace,
            "language": self.language.value,
            "sourceFile": self.source_location,
            "propertyCount": len(self.properties),
            "properties": [
                {
                    "name": prop.name,
                    "type": prop.source_type,
                    "isNullable": prop.is_nullable,
                }
                for prop in self.properties
            ],
        }


@dataclass
class EmittedFile:
    """File content produced by a language emitter before it is written."""

    relative_path: str
    content: str
    type: str = "model"


@dataclass
class GeneratedFile:
    """Metadata for a file written into the generated project."""

    relative_path: str
    full_path: Path
    type: str
    size_bytes: int
    entity: Optional[str] = None


@dataclass
class GeneratedProject:
    """Aggregate result of one generation run."""

    output_path: Path
    language: str
    cloud: str
    version: str
    template_path: Path
    generated_at: datetime
    entities: List[DiscoveredEntity] = field(default_factory=list)
    generated_files: List[GeneratedFile] = field(default_factory=list)
    token_replacements: Dict[str, str] = field(default_factory=dict)

    @property
    def total_size_bytes(self) -> int:
        return sum(item.size_bytes for item in self.generated_files)


@dataclass
class TemplateCacheEntry:
    """One cached fetch of a template repository."""

    local_path: Path
    fetched_at: datetime
    repository_url: str
    branch: str
    sub_path: str

    def is_expired(self, ttl_seconds: float, now: datetime) -> bool:
        return now - self.fetched_at > timedelta(seconds=ttl_seconds)


__all__ = [
    "DiscoveredEntity",
    "EmittedFile",
    "EntityProperty",
    "GeneratedFile",
    "GeneratedProject",
    "Language",
    "TemplateCacheEntry",
]
