"""
Watch mode: rebuild whenever something under a source directory changes.

A failed pass is logged and the loop keeps waiting for the next change.
"""

import logging
import threading
import time
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from gal.build import Builder
from gal.config import GalConfig
from gal.jobs import OutcomeSet

logger = logging.getLogger(__name__)


class RebuildHandler(FileSystemEventHandler):
    """Flags that a rebuild is needed; the watch loop does the actual work."""

    def __init__(self, trigger: threading.Event):
        self.trigger = trigger

    def on_any_event(self, event: FileSystemEvent) -> None:
        # Directory mtime updates accompany every change inside them
        if event.is_directory and event.event_type == "modified":
            return
        logger.debug("Change detected: %s %s", event.event_type, event.src_path)
        self.trigger.set()


def watched_paths(config: GalConfig) -> list[Path]:
    paths = [Path(p) for p in config.source_dirs]
    if not config.is_production:
        paths += [Path(config.project_dir) / "views", Path(config.project_dir) / "assets"]
    return [p for p in paths if p.is_dir()]


def log_outcome(outcome: OutcomeSet) -> None:
    for error in outcome.errors:
        logger.error("Build error: %s", error)
    if outcome.ok:
        logger.info("Build succeeded")


def _run_pass(builder: Builder) -> None:
    try:
        log_outcome(builder.build())
    except Exception:
        logger.exception("Build failed")


def watch(config: GalConfig, *, builder: Builder | None = None, observer=None,
          stop: threading.Event | None = None, debounce: float = 0.5,
          poll_interval: float = 0.5) -> None:
    builder = builder or Builder(config)
    stop = stop or threading.Event()
    trigger = threading.Event()

    _run_pass(builder)

    observer = observer or Observer()
    handler = RebuildHandler(trigger)
    for path in watched_paths(config):
        observer.schedule(handler, str(path), recursive=True)
        logger.info("Watching %s", path)
    observer.start()

    try:
        while not stop.is_set():
            if not trigger.wait(timeout=poll_interval):
                continue
            # Let a burst of events (e.g. a copied directory) settle into one pass
            time.sleep(debounce)
            trigger.clear()
            _run_pass(builder)
    except KeyboardInterrupt:
        logger.info("Stopping watch loop")
    finally:
        observer.stop()
        observer.join()
