"""Python dataclass model emitter."""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

from ..models import DiscoveredEntity, EntityProperty
from ..text import sanitize_identifier, to_snake_case
from .base import Emitter

_IMPORTS = (
    ("Decimal", "from decimal import Decimal"),
    ("datetime", "from datetime import datetime"),
    ("UUID", "from uuid import UUID"),
)


class PythonEmitter(Emitter):
    template_name = "python_model.py.j2"
    fallback_type = "Any"
    type_map = {
        "string": "str",
        "int": "int",
        "long": "int",
        "float": "float",
        "double": "float",
        "decimal": "Decimal",
        "bool": "bool",
        "datetime": "datetime",
        "uuid": "UUID",
    }

    def generate_properties(self, properties: Sequence[EntityProperty]) -> str:
        lines = ["    def __init__(self) -> None:"]
        if not properties:
            lines.append("        pass")
        lines.extend(self.property_line(prop) for prop in properties)
        return "\n".join(lines)

    def property_line(self, prop: EntityProperty) -> str:
        name = sanitize_identifier(to_snake_case(prop.name))
        return f"        self.{name}: Optional[{self.map_type(prop.source_type)}] = None"

    def sequence_type(self, element: str) -> str:
        return f"List[{element}]"

    def relative_path(self, entity: DiscoveredEntity, tokens: Mapping[str, str]) -> str:
        return f"models/{to_snake_case(entity.name)}.py"

    def template_context(
        self, entity: DiscoveredEntity, tokens: Mapping[str, str]
    ) -> Dict[str, object]:
        context = super().template_context(entity, tokens)
        context["imports"] = self._imports(entity.properties)
        return context

    def _imports(self, properties: Sequence[EntityProperty]) -> List[str]:
        types = " ".join(self.map_type(prop.source_type) for prop in properties)
        words = set(types.replace("[", " ").replace("]", " ").split())
        typing_names = ["Optional"] if properties else []
        typing_names.extend(name for name in ("Any", "List") if name in words)
        lines = [line for name, line in _IMPORTS if name in words]
        if typing_names:
            lines.append(f"from typing import {', '.join(sorted(typing_names))}")
        return lines


__all__ = ["PythonEmitter"]
