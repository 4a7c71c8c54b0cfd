"""
Shared test fixtures for the treerunner test suite.
"""

import pytest

from treerunner.collector import Collector
from treerunner.config import RunnerConfig
from treerunner.runner import Session


@pytest.fixture
def collector():
    return Collector(RunnerConfig())


@pytest.fixture
def calls():
    """Ordered log of invoked callbacks."""
    return []


@pytest.fixture
def record(calls):
    """Build callbacks that append a label to ``calls``.

    Usage:
        def test_something(record, calls):
            scope.test("t1", record("t1"))
    """
    def make(label, error=None):
        def callback():
            calls.append(label)
            if error is not None:
                raise error
        return callback

    return make


@pytest.fixture
def run_body():
    """Run a top-level body through a fresh Session."""
    async def run(body, config=None, on_outcome=None):
        session = Session(config, on_outcome)
        return await session.run(body)

    return run
