"""Tests for Python source discovery."""

from __future__ import annotations

import textwrap
from pathlib import Path

from apigen.discovery.python import PythonDiscovery

SOURCE = textwrap.dedent(
    '''
    from dataclasses import dataclass
    from typing import Optional


    @api_entity
    class Customer:
        """A customer."""

        def __init__(self, b: str, a: int) -> None:
            self.b: str = b
            self.a: Optional[int] = a
            self.c = []
            self.b = b.strip()
            if self.c == []:
                pass

        def rename(self, value: str) -> None:
            self.renamed = value


    class Helper:
        def __init__(self) -> None:
            self.value = 1


    @registry.api_entity()
    @dataclass
    class Address:
        street: str
        unit: int | None = None
        country: "str" = "NL"

        def label(self) -> str:
            local: str = self.street
            return local


    @api_entity
    class _Hidden:
        pass
    '''
)


def test_discovers_decorated_classes_with_module_namespace() -> None:
    entities = PythonDiscovery("api_entity").discover(Path("models/crm.py"), SOURCE)

    assert [entity.full_name for entity in entities] == ["crm.Customer", "crm.Address", "crm._Hidden"]
    assert entities[2].is_public is False


def test_init_assignments_in_order_with_annotations() -> None:
    customer = PythonDiscovery("api_entity").discover(Path("crm.py"), SOURCE)[0]

    assert [(prop.name, prop.source_type, prop.is_nullable) for prop in customer.properties] == [
        ("b", "str", False),
        ("a", "Optional[int]", True),
        ("c", "object", True),
    ]


def test_class_annotations_used_without_init() -> None:
    address = PythonDiscovery("api_entity").discover(Path("crm.py"), SOURCE)[1]

    assert [(prop.name, prop.source_type, prop.is_nullable) for prop in address.properties] == [
        ("street", "str", False),
        ("unit", "int | None", True),
        ("country", '"str"', False),
    ]


def test_ignore_marker_returns_public_classes() -> None:
    entities = PythonDiscovery("api_entity", ignore_marker=True).discover(Path("crm.py"), SOURCE)

    assert [entity.name for entity in entities] == ["Customer", "Helper", "Address"]
    assert [prop.name for prop in entities[1].properties] == ["value"]
