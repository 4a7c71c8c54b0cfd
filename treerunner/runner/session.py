"""Collection session - the collect, resolve, execute pipeline.

Coordinates the full run:
1. Collect: run the top-level body and settle node factories
2. Resolve: assign effective run modes
3. Execute: run the tree and stream outcomes

Each stage owns the tree exclusively until it hands it to the next.
"""

import asyncio
import logging
import time
from typing import Optional

from ..collector.collector import Collector
from ..collector.scope import Scope
from ..collector.structures import Factory, Node
from ..config.schema import RunnerConfig
from .executor import TreeExecutor
from .resolver import resolve_tree
from .result_collector import OutcomeListener, RunResult

logger = logging.getLogger(__name__)


class Session:
    """Runs one tree of tests from registration to outcomes.

    Example:
        >>> session = Session()
        >>> session.scope.test("adds", lambda: None)
        >>> result = session.run_sync()
    """

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        on_outcome: Optional[OutcomeListener] = None,
    ):
        """Initialize session.

        Args:
            config: Runner configuration shared by all stages.
            on_outcome: Called with each task outcome as soon as it is final.
        """
        self.config = config or RunnerConfig()
        self.on_outcome = on_outcome
        self.collector = Collector(self.config)
        self._body: Optional[Factory] = None
        self._body_collected = False
        self._executor: Optional[TreeExecutor] = None

    @property
    def scope(self) -> Scope:
        """Registration handle bound to the root node."""
        return self.collector.scope

    @property
    def root(self) -> Node:
        return self.collector.root

    async def collect(self, factory: Optional[Factory] = None) -> Node:
        """Collect the tree, remembering ``factory`` for ``rerun()``.

        A body passed after an earlier body has been collected starts
        from a fresh root, so entries are never registered twice.
        """
        if factory is not None:
            if self._body_collected:
                self.collector.reset()
            self._body = factory
            self._body_collected = True
        root = await self.collector.collect(factory)
        logger.info("Collected %d tasks", sum(1 for _ in root.iter_tasks()))
        return root

    def resolve(self) -> Node:
        return resolve_tree(self.collector.root)

    async def execute(self) -> RunResult:
        self._executor = TreeExecutor(
            self.collector.root, self.config, self.on_outcome
        )
        try:
            return await self._executor.execute()
        finally:
            self._executor = None

    async def run(self, factory: Optional[Factory] = None) -> RunResult:
        """Collect, resolve and execute.

        Args:
            factory: Optional top-level body, called with the root Scope.

        Returns:
            RunResult of the execution.
        """
        start_time = time.time()

        await self.collect(factory)
        self.resolve()
        result = await self.execute()

        logger.info(
            "Session finished in %dms (%d/%d passed)",
            int((time.time() - start_time) * 1000),
            result.passed_count,
            result.total_count,
        )
        return result

    async def rerun(self) -> RunResult:
        """Discard the tree, collect the same body again and run it.

        Only the top-level body passed to ``run``/``collect`` survives a
        rerun; direct registrations on ``scope`` must be repeated.
        """
        self.collector.reset()
        return await self.run(self._body)

    def run_sync(self, factory: Optional[Factory] = None) -> RunResult:
        """Blocking wrapper around ``run`` for callers without an event loop."""
        return asyncio.run(self.run(factory))

    def cancel(self, reason: Optional[str] = None, hard: bool = False) -> bool:
        """Cancel the execution in progress.

        Returns:
            False if nothing is executing.
        """
        if self._executor is None:
            return False
        self._executor.cancel(reason, hard)
        return True
