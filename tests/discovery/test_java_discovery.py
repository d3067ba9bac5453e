"""Tests for Java source discovery."""

from __future__ import annotations

import textwrap
from pathlib import Path

from apigen.discovery.java import JavaDiscovery

SOURCE = textwrap.dedent(
    """
    package com.contoso.orders;

    import javax.annotation.Nullable;

    @ExportToApi(name = "customers")
    public class Customer {
        private String b;
        @Nullable
        private Integer a;
        protected List<Address> c = new ArrayList<>();
        private static final long serialVersionUID = 1L;

        public String getB() {
            String local = b;
            return local;
        }
    }

    class Internal {
        private String value;
    }

    @ExportToApi
    public interface Shippable {
    }
    """
)


def test_discovers_annotated_types_with_package_namespace() -> None:
    entities = JavaDiscovery("ExportToApi").discover(Path("Customer.java"), SOURCE)

    assert [entity.full_name for entity in entities] == [
        "com.contoso.orders.Customer",
        "com.contoso.orders.Shippable",
    ]
    assert entities[1].is_interface is True
    assert entities[1].is_class is False


def test_fields_keep_declaration_order_and_skip_statics_and_locals() -> None:
    customer = JavaDiscovery("ExportToApi").discover(Path("Customer.java"), SOURCE)[0]

    assert [(prop.name, prop.source_type, prop.is_nullable) for prop in customer.properties] == [
        ("b", "String", False),
        ("a", "Integer", True),
        ("c", "List<Address>", False),
    ]
    assert customer.properties[1].markers == ("@Nullable",)


def test_marker_match_is_case_insensitive() -> None:
    entities = JavaDiscovery("exporttoapi").discover(Path("Customer.java"), SOURCE)

    assert [entity.name for entity in entities] == ["Customer", "Shippable"]


def test_ignore_marker_skips_package_private_types() -> None:
    entities = JavaDiscovery("ExportToApi", ignore_marker=True).discover(Path("Customer.java"), SOURCE)

    assert [entity.name for entity in entities] == ["Customer", "Shippable"]
