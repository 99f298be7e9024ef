"""
Filesystem primitives used as build preconditions and job bodies.

Every failure is re-raised as FileSystemError naming the path involved.
"""

import os
import shutil
from importlib.resources.abc import Traversable
from pathlib import Path

from gal.errors import FileSystemError


def ensure_dir(path: Path) -> None:
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(f"error creating directory '{path}': {e}", path=path) from e


def ensure_symlink(source: Path, dest: Path) -> None:
    """Point ``dest`` at ``source``, replacing a stale link but never a real file."""
    source = Path(source).absolute()
    dest = Path(dest)
    try:
        if dest.is_symlink():
            if Path(os.readlink(dest)) == source:
                return
            dest.unlink()
        elif dest.exists():
            raise FileSystemError(
                f"error creating symlink '{dest}': path exists and is not a symlink", path=dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.symlink_to(source, target_is_directory=source.is_dir())
    except OSError as e:
        raise FileSystemError(f"error creating symlink '{dest}' -> '{source}': {e}", path=dest) from e


def mirror_tree(source: Traversable, dest: Path) -> bool:
    """Copy a bundled resource tree to ``dest`` verbatim, recursing into every subdirectory."""
    dest = Path(dest)
    try:
        # A development build leaves symlinks into the source checkout behind;
        # writing through them would overwrite the checkout.
        if dest.is_symlink():
            dest.unlink()
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(f"error creating directory '{dest}': {e}", path=dest) from e

    for entry in sorted(source.iterdir(), key=lambda t: t.name):
        target = dest / entry.name
        if entry.is_dir():
            mirror_tree(entry, target)
            continue
        try:
            with entry.open("rb") as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except OSError as e:
            raise FileSystemError(f"error copying static asset '{entry.name}' to '{target}': {e}",
                                  path=target) from e

    return True


def write_text_atomic(target: Path, text: str) -> None:
    target = Path(target)
    tmp = target.with_name(target.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp, target)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise FileSystemError(f"error writing file '{target}': {e}", path=target) from e
