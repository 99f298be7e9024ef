"""
Jobs, the per-pass job registry, and the outcomes a pass produces.

A job is a named, zero-argument callable. It returns True when it
(re)wrote output and raises when it fails; the scheduler turns both into
an Outcome.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from gal.errors import RegistrySealedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Job:
    name: str
    action: Callable[[], bool]


@dataclass(frozen=True)
class Outcome:
    name: str
    changed: bool = False
    error: Exception | None = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class OutcomeSet:
    """Everything a pass produced: one Outcome per job, or the error that aborted it."""

    outcomes: list[Outcome] = field(default_factory=list)
    aborted: Exception | None = None

    @classmethod
    def from_abort(cls, error: Exception) -> "OutcomeSet":
        return cls(aborted=error)

    @property
    def errors(self) -> list[Exception]:
        errors = [o.error for o in self.outcomes if o.error is not None]
        if self.aborted is not None:
            errors.insert(0, self.aborted)
        return errors

    @property
    def changed(self) -> bool:
        return any(o.changed for o in self.outcomes)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __len__(self) -> int:
        return len(self.outcomes)


class JobRegistry:
    """Collects the jobs of a single build pass.

    Registration happens sequentially while the source trees are walked.
    ``drain()`` hands the jobs to the scheduler and seals the registry, so
    a pass's jobs can never be run twice.
    """

    def __init__(self):
        self._jobs: list[Job] = []
        self._seen: set[str] = set()
        self._sealed = False

    def register(self, name: str, action: Callable[[], bool]) -> Job:
        if self._sealed:
            raise RegistrySealedError(f"cannot register job '{name}': registry already drained")
        if name in self._seen:
            # Allowed, but usually means a source tree was enumerated twice
            logger.debug("Duplicate job name registered: %s", name)
        self._seen.add(name)
        job = Job(name=name, action=action)
        self._jobs.append(job)
        return job

    def drain(self) -> list[Job]:
        if self._sealed:
            raise RegistrySealedError("registry already drained")
        self._sealed = True
        jobs, self._jobs = self._jobs, []
        return jobs

    @property
    def sealed(self) -> bool:
        return self._sealed

    def names(self) -> list[str]:
        return [job.name for job in self._jobs]

    def __len__(self) -> int:
        return len(self._jobs)
