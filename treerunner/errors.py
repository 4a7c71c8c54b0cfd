"""Error taxonomy for collection and execution.

Collection and execution errors are contained: they are stored on the
tree or on outcomes instead of aborting the run. Only structural misuse
of the API is raised to the caller.
"""

from typing import Optional


class TreeRunnerError(Exception):
    """Base class for all treerunner errors."""


class StructuralError(TreeRunnerError, ValueError):
    """The tree or a registration call is malformed."""


class CollectionError(TreeRunnerError):
    """A node factory failed while the tree was being built."""

    def __init__(self, node_path: tuple[str, ...], cause: BaseException):
        self.node_path = node_path
        self.cause = cause
        location = " > ".join(node_path) or "<root>"
        super().__init__(
            f"Failed to collect '{location}': {type(cause).__name__}: {cause}"
        )


class ExecutionError(TreeRunnerError):
    """A task callback or lifetime hook failed."""

    def __init__(self, phase: str, cause: BaseException):
        self.phase = phase
        self.cause = cause
        super().__init__(f"{phase} failed: {type(cause).__name__}: {cause}")


class CallbackTimeout(TreeRunnerError, TimeoutError):
    """A callback did not complete within its time budget."""

    def __init__(self, phase: str, timeout: float):
        self.phase = phase
        self.timeout = timeout
        super().__init__(f"{phase} timed out after {timeout:.3g}s")


class RunCancelled(TreeRunnerError):
    """The run was cancelled cooperatively."""

    def __init__(self, reason: Optional[str] = None, hard: bool = False):
        self.reason = reason or "cancelled"
        self.hard = hard
        super().__init__(self.reason)
