from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from apigen import http
from apigen.config import Configuration
from tests._fixtures.fake_http import FakeUrlopen
from tests._fixtures.source_builder import SourceTreeBuilder


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTreeBuilder:
    """Provide a reusable source tree builder rooted at the pytest tmp_path."""
    return SourceTreeBuilder(tmp_path)


@pytest.fixture
def make_config() -> Callable[..., Configuration]:
    """Return a factory for a valid TypeScript/Azure configuration with overrides applied."""

    def _factory(**overrides: Any) -> Configuration:
        values: dict[str, Any] = {
            "language_typescript": True,
            "cloud_azure": True,
            "track_attribute": "Entity",
            "repo_url": "https://github.com/acme/orders.git",
            "branch": "main",
            "template_repo": "https://github.com/acme/api-templates",
            "azure_subscription": "sub-123",
            "azure_resource_group": "rg-orders",
            "azure_region": "westeurope",
        }
        # Selecting another language or cloud replaces the default one.
        if any(key.startswith("language_") for key in overrides):
            values.pop("language_typescript")
        if any(key.startswith("cloud_") for key in overrides):
            values.pop("cloud_azure")
        values.update(overrides)
        return Configuration(**values)

    return _factory


@pytest.fixture
def fake_urlopen(monkeypatch: pytest.MonkeyPatch) -> FakeUrlopen:
    """Replace the transport's urlopen so no test reaches the network."""
    fake = FakeUrlopen()
    monkeypatch.setattr(http, "urlopen", fake)
    return fake
