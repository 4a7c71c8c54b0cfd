"""Tests for cooperative cancellation and the run deadline."""

import asyncio

import pytest

from treerunner.config import RunnerConfig
from treerunner.runner import ErrorKind, OutcomeStatus, RunDeadline, Session


@pytest.mark.asyncio
class TestSoftCancel:
    async def test_cancel_between_tasks_skips_the_rest(self, record, calls):
        session = Session()

        def stop():
            calls.append("t1")
            session.cancel("stop requested")

        def suite(s):
            s.after_each(record("afterEach"))
            s.after_all(record("afterAll"))
            s.test("t1", stop)
            s.test("t2", record("t2"))
            s.describe("nested", lambda n: n.test("t3", record("t3")))

        result = await session.run(lambda root: root.describe("suite", suite))

        assert calls == ["t1", "afterEach", "afterAll"]
        assert result.cancelled
        assert result.cancel_reason == "stop requested"
        assert result.statuses() == {
            ("suite", "t1"): OutcomeStatus.PASSED,
            ("suite", "t2"): OutcomeStatus.SKIPPED,
            ("suite", "nested", "t3"): OutcomeStatus.SKIPPED,
        }
        assert result.all_passed is False

    async def test_in_flight_callback_is_abandoned(self, record, calls):
        session = Session()
        started = asyncio.Event()

        async def long_running():
            started.set()
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                calls.append("abandoned")
                raise

        def suite(s):
            s.after_each(record("afterEach"))
            s.after_all(record("afterAll"))
            s.test("long", long_running)
            s.test("next", record("next"))

        run = asyncio.create_task(
            session.run(lambda root: root.describe("suite", suite))
        )
        await started.wait()
        assert session.cancel("user abort")
        result = await asyncio.wait_for(run, timeout=2)

        assert calls == ["abandoned", "afterEach", "afterAll"]
        long_outcome = result.outcome_for("suite", "long")
        assert long_outcome.status is OutcomeStatus.FAILED
        assert long_outcome.error_kind is ErrorKind.CANCELLED
        assert "user abort" in long_outcome.error
        assert result.outcome_for("suite", "next").status is OutcomeStatus.SKIPPED

    async def test_hard_cancel_skips_cleanup(self, record, calls):
        session = Session()

        def stop():
            calls.append("t1")
            session.cancel("shutdown", hard=True)

        def suite(s):
            s.after_each(record("afterEach"))
            s.after_all(record("afterAll"))
            s.test("t1", stop)
            s.test("t2", record("t2"))

        result = await session.run(lambda root: root.describe("suite", suite))

        assert calls == ["t1"]
        assert result.cancelled

    async def test_cancel_when_idle_returns_false(self):
        assert Session().cancel() is False


@pytest.mark.asyncio
class TestRunTimeout:
    async def test_expired_deadline_cancels_the_run(self, record, calls):
        async def slow():
            await asyncio.sleep(5)

        def suite(s):
            s.after_all(record("afterAll"))
            s.test("slow", slow)
            s.test("after", record("after"))

        session = Session(RunnerConfig(run_timeout=0.05))
        result = await session.run(lambda root: root.describe("suite", suite))

        assert result.cancelled
        assert "timed out" in result.cancel_reason
        assert result.outcome_for("suite", "slow").error_kind is ErrorKind.CANCELLED
        assert result.outcome_for("suite", "after").status is OutcomeStatus.SKIPPED
        assert calls == ["afterAll"]


@pytest.mark.asyncio
class TestNativeCancellation:
    async def test_task_cancellation_runs_cleanup_then_propagates(self, record, calls):
        session = Session()
        started = asyncio.Event()

        async def long_running():
            started.set()
            await asyncio.sleep(5)

        def suite(s):
            s.after_each(record("afterEach"))
            s.after_all(record("afterAll"))
            s.test("long", long_running)

        run = asyncio.create_task(
            session.run(lambda root: root.describe("suite", suite))
        )
        await started.wait()
        run.cancel()

        with pytest.raises(asyncio.CancelledError):
            await run

        assert calls == ["afterEach", "afterAll"]


class TestRunDeadline:
    def test_unbounded_deadline(self):
        deadline = RunDeadline()
        deadline.start()

        assert deadline.remaining is None
        assert deadline.is_expired is False
        assert deadline.bound(3.0) == (3.0, False)
        assert deadline.bound(None) == (None, False)

    def test_bound_prefers_tighter_limit(self):
        deadline = RunDeadline(timeout=10.0)
        deadline.start()

        assert deadline.bound(1.0) == (1.0, False)
        timeout, by_deadline = deadline.bound(60.0)
        assert by_deadline is True
        assert 0 < timeout <= 10.0

    def test_not_expired_before_start(self):
        assert RunDeadline(timeout=0.0).is_expired is False
