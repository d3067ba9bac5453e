"""Java model emitter producing boxed fields with accessors."""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

from ..models import DiscoveredEntity, EntityProperty
from ..text import capitalize, sanitize_identifier, sanitize_namespace, to_camel_case
from .base import Emitter

_IMPORTS = {
    "BigDecimal": "java.math.BigDecimal",
    "LocalDateTime": "java.time.LocalDateTime",
    "UUID": "java.util.UUID",
    "List": "java.util.List",
}


class JavaEmitter(Emitter):
    template_name = "java_model.java.j2"
    fallback_type = "Object"
    type_map = {
        "string": "String",
        "int": "Integer",
        "long": "Long",
        "float": "Float",
        "double": "Double",
        "decimal": "BigDecimal",
        "bool": "Boolean",
        "datetime": "LocalDateTime",
        "uuid": "UUID",
    }

    def property_line(self, prop: EntityProperty) -> str:
        java_type = self.map_type(prop.source_type)
        field = sanitize_identifier(to_camel_case(prop.name))
        accessor = capitalize(field)
        return "\n".join(
            [
                f"    private {java_type} {field};",
                f"    public {java_type} get{accessor}() {{ return {field}; }}",
                f"    public void set{accessor}({java_type} {field}) {{ this.{field} = {field}; }}",
            ]
        )

    def sequence_type(self, element: str) -> str:
        return f"List<{element}>"

    def relative_path(self, entity: DiscoveredEntity, tokens: Mapping[str, str]) -> str:
        package_path = java_package(tokens).replace(".", "/")
        return f"src/main/java/{package_path}/models/{entity.name}.java"

    def template_context(
        self, entity: DiscoveredEntity, tokens: Mapping[str, str]
    ) -> Dict[str, object]:
        context = super().template_context(entity, tokens)
        context["package"] = java_package(tokens)
        context["imports"] = self._imports(entity.properties)
        return context

    def _imports(self, properties: Sequence[EntityProperty]) -> List[str]:
        needed = set()
        for prop in properties:
            java_type = self.map_type(prop.source_type)
            for simple_name, qualified in _IMPORTS.items():
                if simple_name in java_type.replace("<", " ").replace(">", " ").split():
                    needed.add(qualified)
        return sorted(needed)


def java_package(tokens: Mapping[str, str]) -> str:
    return sanitize_namespace(tokens.get("namespace", "")).lower()


__all__ = ["JavaEmitter", "java_package"]
