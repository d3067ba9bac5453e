"""Tests for JavaScript source discovery."""

from __future__ import annotations

import textwrap
from pathlib import Path

from apigen.discovery.javascript import JavaScriptDiscovery

SOURCE = textwrap.dedent(
    """
    const helpers = require('./helpers');

    // ApiEntity
    class Product {
        constructor(b, a = { nested: true }) {
            this.b = b;
            this.a = a;
            if (this.b === null) {
                this.c = helpers.defaultC();
            }
            this.a = a || {};
        }

        describe() {
            this.described = true;
        }
    }

    /**
     * Order aggregate.
     * @ApiEntity
     */
    export function Order(id) {
        this.id = id;
        this.lines = [];
    }

    class Untracked {}
    """
)


def test_discovers_comment_marked_class_and_function() -> None:
    entities = JavaScriptDiscovery("ApiEntity").discover(Path("src/catalog.js"), SOURCE)

    assert [entity.full_name for entity in entities] == ["catalog.Product", "catalog.Order"]
    assert all(entity.is_public for entity in entities)


def test_constructor_assignments_keep_order_and_are_untyped() -> None:
    product, order = JavaScriptDiscovery("ApiEntity").discover(Path("catalog.js"), SOURCE)

    assert [prop.name for prop in product.properties] == ["b", "a", "c"]
    assert {(prop.source_type, prop.is_nullable) for prop in product.properties} == {("any", True)}
    assert [prop.name for prop in order.properties] == ["id", "lines"]


def test_ignore_marker_includes_every_declaration() -> None:
    entities = JavaScriptDiscovery("ApiEntity", ignore_marker=True).discover(Path("catalog.js"), SOURCE)

    assert [entity.name for entity in entities] == ["Product", "Order", "Untracked"]
    assert entities[2].properties == ()
