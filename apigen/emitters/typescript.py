"""TypeScript interface emitter."""

from __future__ import annotations

from typing import Mapping

from ..models import DiscoveredEntity, EntityProperty
from ..text import sanitize_identifier, to_camel_case
from .base import Emitter


class TypeScriptEmitter(Emitter):
    template_name = "typescript_model.ts.j2"
    fallback_type = "any"
    type_map = {
        "string": "string",
        "int": "number",
        "long": "number",
        "float": "number",
        "double": "number",
        "decimal": "number",
        "bool": "boolean",
        "datetime": "Date",
        "uuid": "string",
    }

    def property_line(self, prop: EntityProperty) -> str:
        optional = "?" if prop.is_nullable else ""
        name = sanitize_identifier(to_camel_case(prop.name))
        return f"    {name}{optional}: {self.map_type(prop.source_type)};"

    def sequence_type(self, element: str) -> str:
        return f"{element}[]"

    def relative_path(self, entity: DiscoveredEntity, tokens: Mapping[str, str]) -> str:
        return f"models/{entity.name}.ts"


__all__ = ["TypeScriptEmitter"]
