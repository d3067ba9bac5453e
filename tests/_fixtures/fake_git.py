"""Stand-ins for git and the key vault used by template tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

DEFAULT_TEMPLATE_FILES = {"minimal/template.json": "{}", "README.md": "# templates"}


class FakeGitRunner:
    """Simulates `git clone` by writing a template tree into the destination."""

    def __init__(self, files: Dict[str, str] | None = None) -> None:
        self.files = files or dict(DEFAULT_TEMPLATE_FILES)
        self.calls: List[List[str]] = []

    def __call__(self, args, cwd, env=None, capture_output=False) -> str:
        self.calls.append(list(args))
        destination = Path(args[-1])
        (destination / ".git").mkdir(parents=True)
        for relative, content in self.files.items():
            target = destination / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return ""


class StubKeyVault:
    def __init__(self, token: Optional[str] = None) -> None:
        self.token = token
        self.calls = 0
        self.closed = False

    def get_template_pat_token(self) -> Optional[str]:
        self.calls += 1
        return self.token

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "StubKeyVault":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["DEFAULT_TEMPLATE_FILES", "FakeGitRunner", "StubKeyVault"]
