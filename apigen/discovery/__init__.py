"""Entity discovery strategies and the dispatcher that runs them."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List

from ..config import Configuration
from ..errors import EntityDiscoveryError
from ..logging import get_logger, log_structured, timed_operation
from ..models import DiscoveredEntity, Language
from .base import LOOKAHEAD_WINDOW, SourceDiscoveryStrategy
from .csharp import CSharpDiscovery
from .go import GoDiscovery
from .java import JavaDiscovery
from .javascript import JavaScriptDiscovery
from .paths import iter_source_files, resolve_search_paths
from .python import PythonDiscovery
from .typescript import TypeScriptDiscovery

StrategyFactory = Callable[..., SourceDiscoveryStrategy]

_STRATEGY_FACTORIES: Dict[Language, StrategyFactory] = {
    Language.CSHARP: CSharpDiscovery,
    Language.JAVA: JavaDiscovery,
    Language.PYTHON: PythonDiscovery,
    Language.JAVASCRIPT: JavaScriptDiscovery,
    Language.TYPESCRIPT: TypeScriptDiscovery,
    Language.GO: GoDiscovery,
}


def register_strategy(language: Language, factory: StrategyFactory) -> None:
    """Register (or replace) the discovery strategy for `language`.

    `factory` is called as ``factory(marker, ignore_marker=...)``.
    """
    _STRATEGY_FACTORIES[language] = factory


class EntityDiscovery:
    """Scans the configured search paths for entities in the selected language."""

    def __init__(self, config: Configuration, *, cwd: Path | None = None) -> None:
        self.config = config
        self.cwd = cwd
        self._logger = get_logger("discovery")

    def discover_entities(self) -> List[DiscoveredEntity]:
        language = self.config.language
        if language is None:
            raise EntityDiscoveryError("No language selected for entity discovery")
        factory = _STRATEGY_FACTORIES.get(language)
        if factory is None:
            raise EntityDiscoveryError(f"Unsupported language: {language.value}")

        self._logger.info(
            "Discovering %s entities marked with '%s'", language.value, self.config.track_attribute
        )
        try:
            with timed_operation(self._logger, "EntityDiscovery"):
                strategy = factory(
                    self.config.track_attribute, ignore_marker=self.config.ignore_marker
                )
                entities = self._scan(strategy)
        except EntityDiscoveryError:
            raise
        except Exception as exc:
            raise EntityDiscoveryError(f"Entity discovery failed: {exc}", cause=exc) from exc

        log_structured(
            self._logger,
            "EntityDiscovery",
            "Complete",
            "SUCCESS",
            language=language.value,
            entity_count=len(entities),
            entities=[entity.name for entity in entities],
        )
        return entities

    def _scan(self, strategy: SourceDiscoveryStrategy) -> List[DiscoveredEntity]:
        roots = resolve_search_paths(self.config, strategy.fallback_dirs, cwd=self.cwd)
        self._logger.debug("Search paths: %s", ", ".join(str(root) for root in roots))

        entities: List[DiscoveredEntity] = []
        for path in iter_source_files(roots, strategy.suffixes):
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self._logger.debug("Skipping unreadable file %s: %s", path, exc)
                continue
            try:
                found = strategy.discover(path, content)
            except Exception as exc:
                self._logger.warning("Skipping %s, entity parsing failed: %s", path, exc)
                continue
            for entity in found:
                self._logger.debug(
                    "Discovered entity %s (%d properties) in %s",
                    entity.full_name,
                    len(entity.properties),
                    path,
                )
            entities.extend(found)
        return entities


__all__ = [
    "EntityDiscovery",
    "LOOKAHEAD_WINDOW",
    "SourceDiscoveryStrategy",
    "register_strategy",
]
