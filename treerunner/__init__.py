"""treerunner - collection and execution core of a tree-structured test runner."""

import logging

from .collector import Collector, HookType, Node, RunMode, Scope, Task
from .config import RunnerConfig, load_config
from .errors import (
    CallbackTimeout,
    CollectionError,
    ExecutionError,
    RunCancelled,
    StructuralError,
    TreeRunnerError,
)
from .runner import (
    OutcomeStatus,
    RunResult,
    Session,
    TaskOutcome,
    TreeExecutor,
    resolve_tree,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "CallbackTimeout",
    "CollectionError",
    "Collector",
    "ExecutionError",
    "HookType",
    "Node",
    "OutcomeStatus",
    "RunCancelled",
    "RunMode",
    "RunResult",
    "RunnerConfig",
    "Scope",
    "Session",
    "StructuralError",
    "Task",
    "TaskOutcome",
    "TreeExecutor",
    "TreeRunnerError",
    "load_config",
    "resolve_tree",
]
