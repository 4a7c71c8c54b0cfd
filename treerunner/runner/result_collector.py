"""Result collector for tree execution.

Collects per-task and per-node outcomes in execution order and streams
each task outcome to an optional listener.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from ..collector.structures import RunMode

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """Final status of a task."""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TODO = "todo"


class ErrorKind(str, Enum):
    """What a failed outcome failed on."""
    EXECUTION = "execution"  # callback or beforeEach/afterEach hook
    SETUP = "setup"  # an enclosing beforeAll hook
    COLLECTION = "collection"  # node factory
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass
class TaskOutcome:
    """Outcome of a single task, or a synthetic entry for a node that failed to collect.

    ``effective_mode`` is the task's own resolved mode and ``status`` is
    what actually happened. They can disagree: a task resolved to run
    under a skipped or todo node is never invoked, so it is reported as
    ``effective_mode=RUN, status=SKIPPED``. The same holds for run-mode
    tasks left unstarted by a cancellation.
    """
    identifier: str
    path: tuple[str, ...]
    effective_mode: Optional[RunMode]
    status: OutcomeStatus
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    duration_ms: Optional[int] = None
    synthetic: bool = False

    @property
    def passed(self) -> bool:
        return self.status is OutcomeStatus.PASSED

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "identifier": self.identifier,
            "path": list(self.path),
            "effectiveMode": self.effective_mode.value if self.effective_mode else None,
            "status": self.status.value,
        }
        if self.error is not None:
            data["error"] = self.error
            data["errorKind"] = self.error_kind.value if self.error_kind else None
        if self.duration_ms is not None:
            data["durationMs"] = self.duration_ms
        if self.synthetic:
            data["synthetic"] = True
        return data


@dataclass
class NodeOutcome:
    """Outcome of a node's own lifecycle (its beforeAll/afterAll hooks)."""
    identifier: str
    path: tuple[str, ...]
    effective_mode: Optional[RunMode]
    hooks_invoked: bool = False
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "path": list(self.path),
            "effectiveMode": self.effective_mode.value if self.effective_mode else None,
            "hooksInvoked": self.hooks_invoked,
            "errors": list(self.errors),
            "durationMs": self.duration_ms,
        }


@dataclass
class RunResult:
    """Aggregated result of one execution run."""
    outcomes: list[TaskOutcome] = field(default_factory=list)
    nodes: list[NodeOutcome] = field(default_factory=list)
    duration_ms: int = 0
    cancelled: bool = False
    cancel_reason: Optional[str] = None

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def passed_count(self) -> int:
        return self._count(OutcomeStatus.PASSED)

    @property
    def failed_count(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def todo_count(self) -> int:
        return self._count(OutcomeStatus.TODO)

    @property
    def total_count(self) -> int:
        return len(self.outcomes)

    @property
    def all_passed(self) -> bool:
        """No failed task, no node hook error and no cancellation."""
        return (
            self.failed_count == 0
            and not any(n.has_errors for n in self.nodes)
            and not self.cancelled
        )

    @property
    def failures(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.failed]

    def outcome_for(self, *path: str) -> Optional[TaskOutcome]:
        """First non-synthetic outcome with the given path."""
        for outcome in self.outcomes:
            if outcome.path == path and not outcome.synthetic:
                return outcome
        return None

    def statuses(self) -> dict[tuple[str, ...], OutcomeStatus]:
        return {o.path: o.status for o in self.outcomes if not o.synthetic}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for serialization."""
        return {
            "summary": {
                "total": self.total_count,
                "passed": self.passed_count,
                "failed": self.failed_count,
                "skipped": self.skipped_count,
                "todo": self.todo_count,
                "durationMs": self.duration_ms,
            },
            "cancelled": self.cancelled,
            "cancelReason": self.cancel_reason,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "nodes": [n.to_dict() for n in self.nodes],
        }


OutcomeListener = Callable[[TaskOutcome], None]


class ResultCollector:
    """Records outcomes in order and forwards task outcomes to a listener."""

    def __init__(self, on_outcome: Optional[OutcomeListener] = None):
        """Initialize result collector.

        Args:
            on_outcome: Called with each task outcome once it is final.
                Listener errors are logged and otherwise ignored.
        """
        self.on_outcome = on_outcome
        self.result = RunResult()

    def add_outcome(self, outcome: TaskOutcome) -> None:
        """Add a final task outcome."""
        self.result.outcomes.append(outcome)

        if self.on_outcome is not None:
            try:
                self.on_outcome(outcome)
            except Exception:
                logger.exception(
                    "Outcome listener failed for %s", " > ".join(outcome.path)
                )

    def add_node(self, outcome: NodeOutcome) -> None:
        """Add a node outcome."""
        self.result.nodes.append(outcome)
