"""Per-language model emitters and their registry."""

from __future__ import annotations

from typing import Callable, Dict

from ..models import Language
from .base import CANONICAL_TYPES, Emitter, template_environment
from .csharp import CSharpEmitter
from .go import GoEmitter
from .java import JavaEmitter
from .javascript import JavaScriptEmitter
from .python import PythonEmitter
from .typescript import TypeScriptEmitter

_EMITTER_FACTORIES: Dict[Language, Callable[[], Emitter]] = {
    Language.CSHARP: CSharpEmitter,
    Language.JAVA: JavaEmitter,
    Language.PYTHON: PythonEmitter,
    Language.JAVASCRIPT: JavaScriptEmitter,
    Language.TYPESCRIPT: TypeScriptEmitter,
    Language.GO: GoEmitter,
}


def register_emitter(language: Language, factory: Callable[[], Emitter]) -> None:
    """Register (or replace) the emitter used for `language`."""
    _EMITTER_FACTORIES[language] = factory


def create_emitter(language: Language) -> Emitter:
    factory = _EMITTER_FACTORIES.get(language)
    if factory is None:
        raise KeyError(f"No emitter registered for {language.value}")
    instance = factory()
    if not isinstance(instance, Emitter):
        raise TypeError(f"Emitter factory for '{language.value}' did not return an Emitter instance")
    return instance


__all__ = [
    "CANONICAL_TYPES",
    "CSharpEmitter",
    "Emitter",
    "GoEmitter",
    "JavaEmitter",
    "JavaScriptEmitter",
    "PythonEmitter",
    "TypeScriptEmitter",
    "create_emitter",
    "register_emitter",
    "template_environment",
]
