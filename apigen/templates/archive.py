"""Zip extraction for downloaded template archives."""

from __future__ import annotations

import io
import shutil
import uuid
import zipfile
from pathlib import Path

from ..errors import TemplateError


def extract_zip(data: bytes, destination: Path) -> Path:
    """Extract `data` into `destination` and lift a lone wrapper directory.

    Hosted archives (GitHub zipballs in particular) nest every file under a
    single ``<owner>-<repo>-<sha>/`` folder; its contents are moved up so the
    template tree starts directly at `destination`.
    """
    destination.mkdir(parents=True, exist_ok=True)
    root = destination.resolve()
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            for member in archive.infolist():
                target = (root / member.filename).resolve()
                if target != root and root not in target.parents:
                    raise TemplateError(f"Archive entry escapes extraction root: {member.filename}")
            archive.extractall(root)
    except zipfile.BadZipFile as exc:
        raise TemplateError(f"Downloaded template archive is not a valid zip: {exc}", cause=exc) from exc

    flatten_single_directory(root)
    return destination


def flatten_single_directory(root: Path) -> bool:
    """Move the children of a sole top-level directory into `root`.

    Returns True when a wrapper directory was removed.
    """
    entries = list(root.iterdir())
    if len(entries) != 1 or not entries[0].is_dir():
        return False
    # A child may share the wrapper's name.
    wrapper = entries[0].rename(root / f".unwrap-{uuid.uuid4().hex}")
    for child in list(wrapper.iterdir()):
        shutil.move(str(child), str(root / child.name))
    wrapper.rmdir()
    return True


__all__ = ["extract_zip", "flatten_single_directory"]
