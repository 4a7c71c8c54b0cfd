"""Tree executor - runs a resolved task tree.

Walks the tree depth-first in declaration order on a single logical
thread of control. For every active node:
1. Run beforeAll hooks
2. Run children (tasks wrapped in beforeEach/afterEach hooks, nested nodes)
3. Run afterAll hooks, also after failures and soft cancellation

Inactive nodes (effective skip/todo) record their tasks without invoking
any callback or hook.
"""

import asyncio
import inspect
import logging
import time
from typing import Optional

from ..collector.structures import Callback, Node, RunMode, Task
from ..config.schema import RunnerConfig
from ..errors import CallbackTimeout, ExecutionError, RunCancelled, StructuralError
from .deadline import RunDeadline
from .resolver import is_resolved
from .result_collector import (
    ErrorKind,
    NodeOutcome,
    OutcomeListener,
    OutcomeStatus,
    ResultCollector,
    RunResult,
    TaskOutcome,
)

logger = logging.getLogger(__name__)

# How long an abandoned awaitable gets to process its cancellation.
ABANDON_GRACE = 0.1

Failure = tuple[str, ErrorKind]


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


class TreeExecutor:
    """Executes a resolved tree and collects per-task outcomes.

    Example:
        >>> executor = TreeExecutor(resolve_tree(collector.root))
        >>> result = await executor.execute()
        >>> result.passed_count, result.failed_count
    """

    def __init__(
        self,
        root: Node,
        config: Optional[RunnerConfig] = None,
        on_outcome: Optional[OutcomeListener] = None,
    ):
        """Initialize tree executor.

        Args:
            root: Root of a resolved tree.
            config: Runner configuration (timeouts, empty node hooks).
            on_outcome: Called with each task outcome as soon as it is final.
        """
        self.root = root
        self.config = config or RunnerConfig()
        self._results = ResultCollector(on_outcome)
        self._deadline = RunDeadline(self.config.run_timeout)
        self._cancel_event = asyncio.Event()
        self._cancel_reason: Optional[str] = None
        self._hard = False
        self._started = False

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self, reason: Optional[str] = None, hard: bool = False) -> None:
        """Request cooperative cancellation.

        In-flight awaitables are abandoned at their next await point and
        work not yet started is recorded as skipped. Cleanup hooks of
        already started scopes still run unless ``hard`` is set.
        """
        if self._cancel_reason is None:
            self._cancel_reason = reason or "cancelled"
        self._hard = self._hard or hard
        self._cancel_event.set()
        logger.info(
            "Cancellation requested (%s%s)",
            self._cancel_reason,
            ", hard" if self._hard else "",
        )

    async def execute(self) -> RunResult:
        """Execute the whole tree.

        Returns:
            RunResult with one outcome per task, in declaration order.

        Raises:
            StructuralError: If the tree has uncollected nodes, is unresolved
                or was already executed.
            asyncio.CancelledError: If the surrounding task is cancelled,
                after cleanup hooks of started scopes have run.
        """
        if any(isinstance(e, Node) and not e.collected for e in self.root.walk()):
            raise StructuralError("Tree has uncollected nodes; call collect() first.")
        if not is_resolved(self.root):
            raise StructuralError("Tree must be resolved before execution.")
        if self._started:
            raise StructuralError("This executor has already run its tree.")

        self._started = True
        start_time = time.time()
        self._deadline.start()
        result = self._results.result

        try:
            await self._run_node(self.root, active=True)
        finally:
            result.duration_ms = _elapsed_ms(start_time)
            result.cancelled = self.cancelled
            result.cancel_reason = self._cancel_reason

        logger.info(
            "Executed %d tasks: %d passed, %d failed, %d skipped, %d todo",
            result.total_count,
            result.passed_count,
            result.failed_count,
            result.skipped_count,
            result.todo_count,
        )
        return result

    # Nodes

    async def _run_node(self, node: Node, active: bool) -> None:
        start_time = time.time()
        outcome = NodeOutcome(
            identifier=node.identifier,
            path=node.path,
            effective_mode=node.effective_mode,
        )
        self._record_collection_error(node)

        if not active or node.effective_mode is not RunMode.RUN or self.cancelled:
            self._record_not_run(node)
            self._results.add_node(outcome)
            return

        run_hooks = bool(node.children) or self.config.hooks_on_empty_nodes
        outcome.hooks_invoked = run_hooks

        try:
            setup_failure = None
            if run_hooks:
                setup_failure = await self._run_before_all(node)

            if setup_failure is None:
                await self._run_children(node)
            else:
                message, kind = setup_failure
                outcome.errors.append(message)
                failure = setup_failure if kind is not ErrorKind.CANCELLED else None
                self._record_not_run(node, failure)
        except asyncio.CancelledError:
            if run_hooks and not self._hard:
                await self._run_after_all(node, outcome)
            outcome.duration_ms = _elapsed_ms(start_time)
            self._results.add_node(outcome)
            raise

        if run_hooks and not self._hard:
            await self._run_after_all(node, outcome)

        outcome.duration_ms = _elapsed_ms(start_time)
        self._results.add_node(outcome)

    async def _run_children(self, node: Node) -> None:
        for child in node.children:
            if isinstance(child, Node):
                await self._run_node(child, active=True)
            elif self.cancelled or child.effective_mode is not RunMode.RUN:
                self._record_task(child, self._not_run_status(child))
            else:
                await self._run_task(child, node)

    async def _run_before_all(self, node: Node) -> Optional[Failure]:
        for hook in node.hooks.before_all:
            try:
                await self._invoke(hook, "beforeAll hook", self.config.hook_timeout)
            except (ExecutionError, CallbackTimeout, RunCancelled) as e:
                failure = self._describe(e)
                logger.debug("beforeAll failed in %s: %s", self._where(node), failure[0])
                return failure
        return None

    async def _run_after_all(self, node: Node, outcome: NodeOutcome) -> None:
        for message, _ in await self._run_cleanup(node.hooks.after_all, "afterAll hook"):
            outcome.errors.append(message)
            logger.debug("afterAll failed in %s: %s", self._where(node), message)

    # Tasks

    async def _run_task(self, task: Task, node: Node) -> None:
        start_time = time.time()
        failure: Optional[Failure] = None

        try:
            for hook in node.hooks.before_each:
                await self._invoke(hook, "beforeEach hook", self.config.hook_timeout)
            await self._invoke(task.callback, "Test callback", self.config.task_timeout)
        except (ExecutionError, CallbackTimeout, RunCancelled) as e:
            failure = self._describe(e)
        except asyncio.CancelledError:
            if not self._hard:
                await self._run_cleanup(node.hooks.after_each, "afterEach hook")
            self._record_task(
                task,
                OutcomeStatus.FAILED,
                error="Cancelled: execution was interrupted",
                error_kind=ErrorKind.CANCELLED,
                duration_ms=_elapsed_ms(start_time),
            )
            raise

        if not self._hard:
            cleanup_failures = await self._run_cleanup(
                node.hooks.after_each, "afterEach hook"
            )
            if cleanup_failures and failure is None:
                failure = (
                    "; ".join(message for message, _ in cleanup_failures),
                    cleanup_failures[0][1],
                )

        if failure is None:
            self._record_task(
                task, OutcomeStatus.PASSED, duration_ms=_elapsed_ms(start_time)
            )
        else:
            logger.debug("Task failed: %s: %s", self._where(task), failure[0])
            self._record_task(
                task,
                OutcomeStatus.FAILED,
                error=failure[0],
                error_kind=failure[1],
                duration_ms=_elapsed_ms(start_time),
            )

    async def _run_cleanup(self, hooks: list[Callback], phase: str) -> list[Failure]:
        """Run every cleanup hook, collecting failures instead of stopping."""
        failures: list[Failure] = []
        for hook in hooks:
            try:
                await self._invoke(
                    hook, phase, self.config.hook_timeout, cancellable=False
                )
            except (ExecutionError, CallbackTimeout) as e:
                failures.append(self._describe(e))
        return failures

    # Invocation

    async def _invoke(
        self,
        callback: Callback,
        phase: str,
        timeout: Optional[float],
        cancellable: bool = True,
    ) -> None:
        """Invoke a callback and await whatever it returns.

        Raises:
            ExecutionError: The callback raised or its awaitable failed.
            CallbackTimeout: The awaitable outlived its timeout.
            RunCancelled: Cancellation was requested or the run deadline
                passed (cancellable invocations only).
        """
        if cancellable:
            self._check_cancelled()

        try:
            result = callback()
        except Exception as e:
            raise ExecutionError(phase, e) from e

        if not inspect.isawaitable(result):
            return

        bound_by_deadline = False
        if cancellable:
            timeout, bound_by_deadline = self._deadline.bound(timeout)

        future = asyncio.ensure_future(result)
        waiters: set[asyncio.Future] = {future}
        cancel_waiter = None
        if cancellable:
            cancel_waiter = asyncio.ensure_future(self._cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            future.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if future in done:
            self._raise_for(future, phase)
            return

        await self._abandon(future)

        if cancel_waiter is not None and cancel_waiter in done:
            raise RunCancelled(self._cancel_reason, self._hard)
        if bound_by_deadline:
            self.cancel(f"Run timed out after {self.config.run_timeout}s")
            raise RunCancelled(self._cancel_reason, self._hard)
        raise CallbackTimeout(phase, timeout)

    def _check_cancelled(self) -> None:
        if not self.cancelled and self._deadline.is_expired:
            self.cancel(f"Run timed out after {self.config.run_timeout}s")
        if self.cancelled:
            raise RunCancelled(self._cancel_reason, self._hard)

    @staticmethod
    def _raise_for(future: asyncio.Future, phase: str) -> None:
        if future.cancelled():
            raise ExecutionError(phase, RuntimeError("awaitable was cancelled"))
        exc = future.exception()
        if exc is None:
            return
        if isinstance(exc, Exception):
            raise ExecutionError(phase, exc) from exc
        raise exc

    @staticmethod
    async def _abandon(future: asyncio.Future) -> None:
        future.cancel()
        await asyncio.wait({future}, timeout=ABANDON_GRACE)

    @staticmethod
    def _describe(error: Exception) -> Failure:
        if isinstance(error, RunCancelled):
            return f"Cancelled: {error.reason}", ErrorKind.CANCELLED
        if isinstance(error, CallbackTimeout):
            return str(error), ErrorKind.TIMEOUT
        return str(error), ErrorKind.EXECUTION

    # Recording

    def _record_task(
        self,
        task: Task,
        status: OutcomeStatus,
        error: Optional[str] = None,
        error_kind: Optional[ErrorKind] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        self._results.add_outcome(TaskOutcome(
            identifier=task.identifier,
            path=task.path,
            effective_mode=task.effective_mode,
            status=status,
            error=error,
            error_kind=error_kind,
            duration_ms=duration_ms,
        ))

    def _record_collection_error(self, node: Node) -> None:
        if node.collection_error is None:
            return
        self._results.add_outcome(TaskOutcome(
            identifier=node.identifier,
            path=node.path,
            effective_mode=node.effective_mode,
            status=OutcomeStatus.FAILED,
            error=str(node.collection_error),
            error_kind=ErrorKind.COLLECTION,
            synthetic=True,
        ))

    def _record_not_run(self, node: Node, failure: Optional[Failure] = None) -> None:
        """Record every task under ``node`` without invoking anything.

        With a setup ``failure``, tasks that would have run fail with it;
        everything else is recorded as skipped or todo.
        """
        for child in node.children:
            if isinstance(child, Node):
                self._record_collection_error(child)
                child_failure = failure if child.effective_mode is RunMode.RUN else None
                self._record_not_run(child, child_failure)
                self._results.add_node(NodeOutcome(
                    identifier=child.identifier,
                    path=child.path,
                    effective_mode=child.effective_mode,
                ))
            elif failure is not None and child.effective_mode is RunMode.RUN:
                self._record_task(
                    child,
                    OutcomeStatus.FAILED,
                    error=failure[0],
                    error_kind=ErrorKind.SETUP,
                )
            else:
                self._record_task(child, self._not_run_status(child))

    @staticmethod
    def _not_run_status(task: Task) -> OutcomeStatus:
        if task.effective_mode is RunMode.TODO:
            return OutcomeStatus.TODO
        return OutcomeStatus.SKIPPED

    @staticmethod
    def _where(entry) -> str:
        return " > ".join(entry.path) or "<root>"


async def execute_tree(
    root: Node,
    config: Optional[RunnerConfig] = None,
    on_outcome: Optional[OutcomeListener] = None,
) -> RunResult:
    """Execute a resolved tree with a fresh executor."""
    return await TreeExecutor(root, config, on_outcome).execute()
