"""Base class for per-language model emitters."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import DiscoveredEntity, EmittedFile, EntityProperty

_TEMPLATES_DIR = Path(__file__).with_name("templates")

# Source type names from every supported language, folded to one kind each.
CANONICAL_TYPES: Dict[str, str] = {
    "string": "string",
    "str": "string",
    "char": "string",
    "rune": "string",
    "int": "int",
    "int32": "int",
    "integer": "int",
    "short": "int",
    "int16": "int",
    "byte": "int",
    "uint": "int",
    "uint32": "int",
    "long": "long",
    "int64": "long",
    "uint64": "long",
    "bigint": "long",
    "float": "float",
    "single": "float",
    "float32": "float",
    "double": "double",
    "float64": "double",
    "number": "double",
    "decimal": "decimal",
    "bigdecimal": "decimal",
    "decimal.decimal": "decimal",
    "bool": "bool",
    "boolean": "bool",
    "datetime": "datetime",
    "datetimeoffset": "datetime",
    "datetime.datetime": "datetime",
    "date": "datetime",
    "localdatetime": "datetime",
    "instant": "datetime",
    "time.time": "datetime",
    "guid": "uuid",
    "uuid": "uuid",
    "uuid.uuid": "uuid",
}

# Type names that mean "sequence of the inner type" across the supported source languages.
_SEQUENCE_PATTERNS = (
    re.compile(r"^(?P<inner>.+)\[\]$"),
    re.compile(r"^\[\](?P<inner>.+)$"),
    re.compile(r"^(?:List|IList|IEnumerable|ICollection|Collection|ArrayList|Set|HashSet|Array|ReadonlyArray|list|typing\.List|Sequence)\s*[<\[](?P<inner>.+)[>\]]$"),
)


@lru_cache(maxsize=1)
def template_environment() -> Environment:
    loader = FileSystemLoader([str(_TEMPLATES_DIR)])
    return Environment(
        loader=loader,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


class Emitter(ABC):
    """Renders model files for one target language.

    Subclasses declare a type table, the language's fallback type and the
    Jinja template used for the model body.
    """

    template_name: str
    # Keyed by the kinds in CANONICAL_TYPES.
    type_map: Mapping[str, str] = {}
    fallback_type: str = "object"

    @abstractmethod
    def property_line(self, prop: EntityProperty) -> str:
        """Return the declaration line(s) for one property."""

    @abstractmethod
    def relative_path(self, entity: DiscoveredEntity, tokens: Mapping[str, str]) -> str:
        """Return the posix path of the model file inside the generated project."""

    def generate_properties(self, properties: Sequence[EntityProperty]) -> str:
        return "\n".join(self.property_line(prop) for prop in properties)

    def template_context(
        self, entity: DiscoveredEntity, tokens: Mapping[str, str]
    ) -> Dict[str, object]:
        return {
            "entity": entity,
            "name": entity.name,
            "namespace": tokens.get("namespace", ""),
            "properties": self.generate_properties(entity.properties),
            "tokens": dict(tokens),
        }

    def generate_entity_files(
        self, entity: DiscoveredEntity, tokens: Mapping[str, str]
    ) -> List[EmittedFile]:
        template = template_environment().get_template(self.template_name)
        content = template.render(**self.template_context(entity, tokens))
        return [EmittedFile(relative_path=self.relative_path(entity, tokens), content=content)]

    def map_type(self, source_type: str) -> str:
        """Map a source type name through the table, falling back to the language's any-type."""
        normalized = _strip_nullable(source_type.strip())
        kind = CANONICAL_TYPES.get(normalized.lower())
        if kind is not None and kind in self.type_map:
            return self.type_map[kind]
        inner = sequence_element(normalized)
        if inner is not None:
            return self.sequence_type(self.map_type(inner))
        return self.fallback_type

    def sequence_type(self, element: str) -> str:
        return self.fallback_type


def sequence_element(type_name: str) -> Optional[str]:
    """Return the element type when `type_name` denotes a list-like collection."""
    for pattern in _SEQUENCE_PATTERNS:
        match = pattern.match(type_name)
        if match:
            return match.group("inner").strip()
    return None


def _strip_nullable(type_name: str) -> str:
    if type_name.endswith("?"):
        return type_name[:-1]
    if type_name.startswith("*"):
        return type_name[1:]
    for prefix, suffix in (("Optional[", "]"), ("typing.Optional[", "]"), ("Nullable<", ">")):
        if type_name.startswith(prefix) and type_name.endswith(suffix):
            return type_name[len(prefix) : -len(suffix)].strip()
    parts: Tuple[str, ...] = tuple(
        part.strip() for part in type_name.split("|") if part.strip() not in {"None", "null", "undefined"}
    )
    if len(parts) == 1:
        return parts[0]
    return type_name


__all__ = ["CANONICAL_TYPES", "Emitter", "sequence_element", "template_environment"]
