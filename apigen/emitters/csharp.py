"""C# model emitter."""

from __future__ import annotations

from typing import Mapping

from ..models import DiscoveredEntity, EntityProperty
from ..text import sanitize_identifier, to_pascal_case
from .base import Emitter


class CSharpEmitter(Emitter):
    template_name = "csharp_model.cs.j2"
    fallback_type = "object"
    type_map = {
        "string": "string",
        "int": "int",
        "long": "long",
        "float": "float",
        "double": "double",
        "decimal": "decimal",
        "bool": "bool",
        "datetime": "DateTime",
        "uuid": "Guid",
    }

    def property_line(self, prop: EntityProperty) -> str:
        nullable = "?" if prop.is_nullable else ""
        name = sanitize_identifier(to_pascal_case(prop.name))
        return f"        public {self.map_type(prop.source_type)}{nullable} {name} {{ get; set; }}"

    def sequence_type(self, element: str) -> str:
        return f"List<{element}>"

    def relative_path(self, entity: DiscoveredEntity, tokens: Mapping[str, str]) -> str:
        return f"Models/{entity.name}.cs"


__all__ = ["CSharpEmitter"]
