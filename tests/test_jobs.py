"""Tests for the job registry and outcome aggregation."""

import pytest

from gal.errors import ImageError, PassAbortedError, RegistrySealedError
from gal.jobs import Job, JobRegistry, Outcome, OutcomeSet


class TestJobRegistry:

    def test_register_keeps_order(self):
        registry = JobRegistry()
        registry.register("photo: a.jpg", lambda: True)
        registry.register("photo: b.jpg", lambda: True)
        registry.register("page: index", lambda: True)

        assert registry.names() == ["photo: a.jpg", "photo: b.jpg", "page: index"]
        assert len(registry) == 3

    def test_register_returns_job(self):
        registry = JobRegistry()
        action = lambda: False  # noqa: E731
        job = registry.register("robots.txt", action)

        assert job == Job(name="robots.txt", action=action)

    def test_duplicate_names_are_accepted(self):
        registry = JobRegistry()
        registry.register("photo: a.jpg", lambda: True)
        registry.register("photo: a.jpg", lambda: True)

        assert len(registry.drain()) == 2

    def test_drain_returns_jobs_and_empties(self):
        registry = JobRegistry()
        registry.register("one", lambda: True)
        registry.register("two", lambda: True)

        jobs = registry.drain()

        assert [j.name for j in jobs] == ["one", "two"]
        assert len(registry) == 0
        assert registry.sealed

    def test_register_after_drain_fails(self):
        registry = JobRegistry()
        registry.drain()

        with pytest.raises(RegistrySealedError):
            registry.register("late", lambda: True)

    def test_drain_twice_fails(self):
        registry = JobRegistry()
        registry.register("one", lambda: True)
        registry.drain()

        with pytest.raises(RegistrySealedError):
            registry.drain()

    def test_job_is_immutable(self):
        job = Job(name="one", action=lambda: True)
        with pytest.raises(AttributeError):
            job.name = "two"


class TestOutcomeSet:

    def test_empty_is_ok(self):
        outcome = OutcomeSet()
        assert outcome.ok
        assert outcome.errors == []
        assert not outcome.changed
        assert len(outcome) == 0

    def test_errors_and_changed(self):
        err = ImageError("error resizing 'b.jpg'")
        outcome = OutcomeSet(outcomes=[
            Outcome(name="photo: a.jpg", changed=True),
            Outcome(name="photo: b.jpg", error=err),
            Outcome(name="robots.txt", changed=False),
        ])

        assert outcome.errors == [err]
        assert outcome.changed
        assert not outcome.ok

    def test_changed_false_when_nothing_written(self):
        outcome = OutcomeSet(outcomes=[Outcome(name="photo: a.jpg", changed=False)])
        assert not outcome.changed
        assert outcome.ok

    def test_from_abort_has_single_error(self):
        err = PassAbortedError("error reading dir 'missing'")
        outcome = OutcomeSet.from_abort(err)

        assert outcome.errors == [err]
        assert outcome.outcomes == []
        assert not outcome.ok

    def test_outcome_ok(self):
        assert Outcome(name="x").ok
        assert not Outcome(name="x", error=ValueError("bad")).ok
