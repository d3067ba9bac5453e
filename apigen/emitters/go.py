"""Go struct emitter with JSON tags."""

from __future__ import annotations

from typing import Dict, Mapping

from ..models import DiscoveredEntity, EntityProperty
from ..text import sanitize_identifier, to_pascal_case, to_snake_case
from .base import Emitter


class GoEmitter(Emitter):
    template_name = "go_model.go.j2"
    fallback_type = "interface{}"
    type_map = {
        "string": "string",
        "int": "int",
        "long": "int64",
        "float": "float32",
        "double": "float64",
        "decimal": "float64",
        "bool": "bool",
        "datetime": "time.Time",
        "uuid": "string",
    }

    def property_line(self, prop: EntityProperty) -> str:
        go_type = self.map_type(prop.source_type)
        pointer = "*" if prop.is_nullable and go_type != self.fallback_type else ""
        name = sanitize_identifier(to_pascal_case(prop.name))
        return f'\t{name} {pointer}{go_type} `json:"{to_snake_case(prop.name)}"`'

    def sequence_type(self, element: str) -> str:
        return f"[]{element}"

    def relative_path(self, entity: DiscoveredEntity, tokens: Mapping[str, str]) -> str:
        return f"models/{to_snake_case(entity.name)}.go"

    def template_context(
        self, entity: DiscoveredEntity, tokens: Mapping[str, str]
    ) -> Dict[str, object]:
        context = super().template_context(entity, tokens)
        context["package"] = "models"
        uses_time = any("time.Time" in self.map_type(prop.source_type) for prop in entity.properties)
        context["imports"] = ["time"] if uses_time else []
        return context


__all__ = ["GoEmitter"]
