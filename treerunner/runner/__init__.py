"""Runner module - resolution and execution."""

from .deadline import RunDeadline
from .executor import TreeExecutor, execute_tree
from .resolver import is_resolved, resolve_tree
from .result_collector import (
    ErrorKind,
    NodeOutcome,
    OutcomeStatus,
    ResultCollector,
    RunResult,
    TaskOutcome,
)
from .session import Session

__all__ = [
    "ErrorKind",
    "NodeOutcome",
    "OutcomeStatus",
    "ResultCollector",
    "RunDeadline",
    "RunResult",
    "Session",
    "TaskOutcome",
    "TreeExecutor",
    "execute_tree",
    "is_resolved",
    "resolve_tree",
]
