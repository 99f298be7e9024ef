"""
One build pass: preconditions, job registration, then execution.

    1. common output directories
    2. development symlinks
    3. static assets (production)
    4. photos, one job per source photo
    5. index page
    6. robots.txt

Nothing runs until every job is registered. A failure in steps 1, 2 or 4
aborts the pass with a single error; failures inside jobs are collected.
"""

import functools
import logging
import os
import random
from importlib import resources
from pathlib import Path
from typing import Callable

from jinja2 import Environment

from gal import scheduler
from gal.config import GalConfig
from gal.errors import FileSystemError, PassAbortedError, WalkError
from gal.fsutil import ensure_dir, ensure_symlink, mirror_tree
from gal.images import PhotoResizer
from gal.jobs import JobRegistry, OutcomeSet
from gal.render import make_environment, render_index, render_robots_txt
from gal.walker import DirectoryWalker

logger = logging.getLogger(__name__)


def bundled_assets():
    return resources.files("gal") / "assets"


class Builder:
    """Runs build passes for one configuration.

    ``resize`` and ``rng`` default to the real resize pipeline and an
    unseeded random source; tests substitute both.
    """

    def __init__(self, config: GalConfig, *, resize: Callable[[Path, Path], bool] | None = None,
                 rng: random.Random | None = None, env: Environment | None = None):
        self.config = config
        self.target_dir = Path(config.require_target_dir())
        self.resize = resize or PhotoResizer(config)
        self.rng = rng
        self._env = env

    @property
    def env(self) -> Environment:
        if self._env is None:
            self._env = make_environment(self.config)
        return self._env

    def build(self) -> OutcomeSet:
        logger.debug("Running build loop")
        registry = JobRegistry()
        try:
            self.register_jobs(registry)
        except PassAbortedError as e:
            logger.error("Build aborted: %s", e)
            return OutcomeSet.from_abort(e)

        jobs = registry.drain()
        logger.info("Running %d jobs (concurrency %d)", len(jobs), self.config.concurrency)
        outcome = scheduler.run(jobs, self.config.concurrency)
        logger.info("Build finished: %d jobs, %d errors, changed=%s",
                    len(outcome), len(outcome.errors), outcome.changed)
        return outcome

    def register_jobs(self, registry: JobRegistry) -> list[str]:
        """Create preconditions and register every job of a pass; return the photo paths."""
        target = self.target_dir

        # ---------------------------------------------------------------
        # Common directories
        #
        # Created outside of the job system because jobs below write into them.
        # ---------------------------------------------------------------

        for path in (target / "assets", target / "photos"):
            try:
                ensure_dir(path)
            except FileSystemError as e:
                raise PassAbortedError(str(e), path=path) from e

        # ---------------------------------------------------------------
        # Symlinks
        # ---------------------------------------------------------------

        if not self.config.is_production:
            links = [
                (Path(self.config.project_dir) / "assets" / "css", target / "assets" / "css"),
            ]
            for source, dest in links:
                try:
                    ensure_symlink(source, dest)
                except FileSystemError as e:
                    raise PassAbortedError(str(e), path=dest) from e

        # ---------------------------------------------------------------
        # CSS / static assets
        # ---------------------------------------------------------------

        if self.config.is_production:
            registry.register("static assets",
                              functools.partial(mirror_tree, bundled_assets(), target / "assets"))

        # ---------------------------------------------------------------
        # Photos
        # ---------------------------------------------------------------

        walker = DirectoryWalker(self.config, registry, self.resize)
        all_photo_paths: list[str] = []

        for source_dir in self.config.source_dirs:
            root = os.path.abspath(source_dir)
            try:
                photo_paths = walker.walk(os.path.dirname(root), os.path.basename(root))
            except WalkError as e:
                raise PassAbortedError(f"error reading dir '{source_dir}': {e}", path=source_dir) from e
            all_photo_paths.extend(photo_paths)

        logger.info("Found %d photos in %d source dirs", len(all_photo_paths),
                    len(self.config.source_dirs))

        # ---------------------------------------------------------------
        # Index
        # ---------------------------------------------------------------

        registry.register("page: index",
                          functools.partial(render_index, self.env, target,
                                            tuple(all_photo_paths), self.rng))

        # ---------------------------------------------------------------
        # Robots.txt
        # ---------------------------------------------------------------

        registry.register("robots.txt", functools.partial(render_robots_txt, target))

        return all_photo_paths
