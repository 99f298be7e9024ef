"""Exception types raised by the build core."""

from pathlib import Path


class GalError(Exception):
    """Base class for gal errors. ``path`` is the file or directory involved, if any."""

    def __init__(self, message: str, path: str | Path | None = None):
        super().__init__(message)
        self.path = path


class ConfigError(GalError):
    """Fatal configuration problem, reported before any build pass runs."""


class RegistrySealedError(GalError):
    """A job registry was used after it had been drained."""


class WalkError(GalError):
    """A source directory could not be listed."""


class PassAbortedError(GalError):
    """A build precondition failed, so no jobs were run."""


class FileSystemError(GalError):
    """A directory, symlink or file could not be created or written."""


class ImageError(GalError):
    """The external resize pipeline failed for one photo."""


class RenderError(GalError):
    """A template could not be rendered to its output file."""
