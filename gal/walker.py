"""
Turns a source directory tree into photo jobs.

For every qualifying photo the walker registers one resize job and returns
the photo's path relative to the site root, which the index page links to.
"""

import functools
import logging
import os
import posixpath
from pathlib import Path
from typing import Callable
from urllib.parse import quote

from gal.config import GalConfig
from gal.errors import WalkError
from gal.jobs import JobRegistry

logger = logging.getLogger(__name__)

PHOTO_EXTENSION = ".jpg"

# Reserved characters allowed unescaped in a path segment, besides unreserved ones
_PATH_SEGMENT_SAFE = "$&+:=@"


def escape_path_segment(name: str) -> str:
    # Escape the raw bytes; names that are not valid UTF-8 arrive surrogate-escaped
    return quote(os.fsencode(name), safe=_PATH_SEGMENT_SAFE)


def is_photo(name: str) -> bool:
    return os.path.splitext(name)[1].lower() == PHOTO_EXTENSION


class DirectoryWalker:
    """Walks source trees, registering one resize job per photo.

    ``resize(input_path, target_dir) -> bool`` is the job body; it runs
    later on the scheduler's pool, never during the walk.
    """

    def __init__(self, config: GalConfig, registry: JobRegistry,
                 resize: Callable[[Path, Path], bool]):
        self.config = config
        self.registry = registry
        self.resize = resize
        self.target_dir = config.require_target_dir()

    def walk(self, base_path: str | Path, relative_dir: str) -> list[str]:
        """Walk ``base_path/relative_dir`` recursively and return its photo paths.

        ``relative_dir`` uses forward slashes and is mirrored under
        ``<target>/photos``. Entries are handled in name order; a
        subdirectory is walked completely at its place in the listing.
        """
        dir_path = Path(base_path, relative_dir)
        try:
            with os.scandir(dir_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise WalkError(f"error reading directory '{dir_path}': {e}", path=dir_path) from e

        photo_paths: list[str] = []

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                photo_paths.extend(self.walk(base_path, posixpath.join(relative_dir, entry.name)))
                continue

            if not is_photo(entry.name) or not entry.is_file():
                continue

            input_path = dir_path / entry.name
            output_dir = self.target_dir / "photos" / relative_dir
            photo_paths.append(posixpath.normpath(
                posixpath.join("photos", relative_dir, escape_path_segment(entry.name))))
            self.registry.register(
                f"photo: {input_path}",
                functools.partial(self.resize, input_path, output_dir),
            )

        logger.debug("Walked %s: %d photos", dir_path, len(photo_paths))
        return photo_paths
