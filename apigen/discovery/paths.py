"""Search path resolution and source file walking for entity discovery."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List, Sequence, Set

from ..config import Configuration

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    "bin",
    "obj",
    "vendor",
    "generated-api",
}


def resolve_search_paths(
    config: Configuration,
    fallback_dirs: Sequence[str],
    cwd: Path | None = None,
) -> List[Path]:
    """Return existing directories to scan, in priority order and without duplicates."""
    base = Path.cwd() if cwd is None else cwd
    candidates: List[Path] = []
    if config.build_output_path:
        candidates.append(Path(config.build_output_path))
    candidates.extend(Path(item) for item in config.entity_path_list())
    candidates.append(base)
    candidates.extend(base / name for name in fallback_dirs)

    resolved: List[Path] = []
    seen: Set[Path] = set()
    for candidate in candidates:
        path = candidate if candidate.is_absolute() else base / candidate
        if not path.is_dir():
            continue
        key = path.resolve()
        if key in seen:
            continue
        seen.add(key)
        resolved.append(key)
    return resolved


def iter_source_files(roots: Sequence[Path], suffixes: Sequence[str]) -> Iterator[Path]:
    """Yield files under `roots` with a matching suffix, each at most once."""
    wanted = {suffix.lower() for suffix in suffixes}
    seen: Set[Path] = set()
    for root in roots:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
            current_dir = Path(dirpath)
            for filename in sorted(filenames):
                if Path(filename).suffix.lower() not in wanted:
                    continue
                path = (current_dir / filename).resolve()
                if path in seen:
                    continue
                seen.add(path)
                yield path


__all__ = ["iter_source_files", "resolve_search_paths"]
