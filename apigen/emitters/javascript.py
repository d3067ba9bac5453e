"""JavaScript class model emitter."""

from __future__ import annotations

from typing import Mapping, Sequence

from ..models import DiscoveredEntity, EntityProperty
from ..text import sanitize_identifier, to_camel_case
from .base import Emitter


class JavaScriptEmitter(Emitter):
    """Emits an ES class whose constructor initialises every field to null.

    Field types are carried as JSDoc annotations.
    """

    template_name = "javascript_model.js.j2"
    fallback_type = "*"
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

    def generate_properties(self, properties: Sequence[EntityProperty]) -> str:
        lines = ["    constructor() {"]
        lines.extend(self.property_line(prop) for prop in properties)
        lines.append("    }")
        return "\n".join(lines)

    def property_line(self, prop: EntityProperty) -> str:
        name = sanitize_identifier(to_camel_case(prop.name))
        js_type = self.map_type(prop.source_type)
        return f"        /** @type {{{js_type}|null}} */\n        this.{name} = null;"

    def sequence_type(self, element: str) -> str:
        return f"Array<{element}>"

    def relative_path(self, entity: DiscoveredEntity, tokens: Mapping[str, str]) -> str:
        return f"models/{entity.name}.js"


__all__ = ["JavaScriptEmitter"]
