"""End-to-end tests for the collect, resolve, execute pipeline."""

import pytest

from treerunner.collector import RunMode
from treerunner.runner import OutcomeStatus, Session


def modes(root):
    return {e.path: e.effective_mode for e in root.walk()}


@pytest.mark.asyncio
class TestSessionPipeline:
    async def test_only_node_inside_regular_node(self, record, calls):
        def outer(s):
            s.describe.only("inner", lambda n: n.test("t", record("t")))

        def body(s):
            s.describe("outer", outer)
            s.test("u", record("u"))

        session = Session()
        result = await session.run(body)

        assert modes(session.root) == {
            ("outer",): RunMode.RUN,
            ("outer", "inner"): RunMode.RUN,
            ("outer", "inner", "t"): RunMode.RUN,
            ("u",): RunMode.SKIP,
        }
        assert calls == ["t"]
        assert result.statuses() == {
            ("outer", "inner", "t"): OutcomeStatus.PASSED,
            ("u",): OutcomeStatus.SKIPPED,
        }

    async def test_direct_registration_on_scope(self, record, calls):
        session = Session()
        session.scope.test("a", record("a"))
        session.scope.describe("n", lambda s: s.test("b", record("b")))

        result = await session.run()

        assert calls == ["a", "b"]
        assert result.passed_count == 2
        assert result.all_passed

    async def test_rerun_recollects_and_reresolves(self, record, calls):
        focus = {"enabled": False}

        def body(s):
            s.test("a", record("a"))
            if focus["enabled"]:
                s.test.only("b", record("b"))
            else:
                s.test("b", record("b"))

        session = Session()
        first = await session.run(body)
        focus["enabled"] = True
        second = await session.rerun()

        assert first.passed_count == 2
        assert second.statuses() == {
            ("a",): OutcomeStatus.SKIPPED,
            ("b",): OutcomeStatus.PASSED,
        }
        assert calls == ["a", "b", "b"]

    async def test_running_a_body_twice_does_not_duplicate_entries(self, record, calls):
        def body(s):
            s.describe("n", lambda n: n.test("t", record("t")))

        session = Session()
        first = await session.run(body)
        second = await session.run(body)

        assert first.total_count == second.total_count == 1
        assert [c.identifier for c in session.root.children] == ["n"]
        assert session.collector.duplicate_identifiers() == []
        assert calls == ["t", "t"]

    async def test_resolving_again_is_stable(self):
        def body(s):
            s.describe("n", lambda n: n.test.only("t", lambda: None))
            s.test("other", lambda: None)
            s.test.todo("later")

        session = Session()
        await session.collect(body)
        session.resolve()
        first = modes(session.root)
        session.resolve()

        assert modes(session.root) == first

    async def test_every_task_gets_exactly_one_status(self):
        def body(s):
            s.test("pass", lambda: None)
            s.test("fail", lambda: 1 / 0)
            s.test.skip("skip", lambda: None)
            s.test.todo("todo")
            s.describe.skip("skipped-node", lambda n: n.test("inner", lambda: None))

        session = Session()
        result = await session.run(body)
        task_paths = [t.path for t in session.root.iter_tasks()]

        assert [o.path for o in result.outcomes] == task_paths
        summary = result.to_dict()["summary"]
        assert summary == {
            "total": 5,
            "passed": 1,
            "failed": 1,
            "skipped": 2,
            "todo": 1,
            "durationMs": summary["durationMs"],
        }


class TestRunSync:
    def test_run_sync_without_event_loop(self, record, calls):
        def body(s):
            s.before_all(record("setup"))
            s.test("a", record("a"))

        result = Session().run_sync(body)

        assert calls == ["setup", "a"]
        assert result.outcome_for("a").status is OutcomeStatus.PASSED
