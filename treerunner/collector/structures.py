"""Tree data model for collected tests.

A collection session produces one root Node that owns every Task and
nested Node in declaration order. Declared modes come from registration
calls; effective modes are filled in later by the resolver.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional, Union

Callback = Callable[[], Any]
Factory = Callable[..., Any]


class RunMode(str, Enum):
    """Run mode of a task or node.

    All four values can be declared. Effective modes are only ever
    RUN, SKIP or TODO.
    """
    RUN = "run"
    SKIP = "skip"
    ONLY = "only"
    TODO = "todo"

    @classmethod
    def parse(cls, value: Union["RunMode", str]) -> "RunMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Invalid run mode '{value}'. Must be one of: "
                f"{', '.join(m.value for m in cls)}"
            ) from None


class HookType(str, Enum):
    """Lifetime hook kinds."""
    BEFORE_ALL = "beforeAll"
    AFTER_ALL = "afterAll"
    BEFORE_EACH = "beforeEach"
    AFTER_EACH = "afterEach"

    @classmethod
    def parse(cls, value: Union["HookType", str]) -> "HookType":
        if isinstance(value, cls):
            return value
        normalized = str(value).replace("_", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(
            f"Invalid hook type '{value}'. Must be one of: "
            f"{', '.join(m.value for m in cls)}"
        )


EFFECTIVE_MODES = frozenset({RunMode.RUN, RunMode.SKIP, RunMode.TODO})


def noop() -> None:
    """Stand-in callback for todo entries and missing callbacks."""
    return None


@dataclass
class LifetimeHooks:
    """Ordered hook callbacks of a single node."""
    before_all: list[Callback] = field(default_factory=list)
    after_all: list[Callback] = field(default_factory=list)
    before_each: list[Callback] = field(default_factory=list)
    after_each: list[Callback] = field(default_factory=list)

    def _partition(self, hook_type: HookType) -> list[Callback]:
        return {
            HookType.BEFORE_ALL: self.before_all,
            HookType.AFTER_ALL: self.after_all,
            HookType.BEFORE_EACH: self.before_each,
            HookType.AFTER_EACH: self.after_each,
        }[hook_type]

    def add(self, hook_type: HookType, callback: Callback) -> None:
        self._partition(HookType.parse(hook_type)).append(callback)

    def get(self, hook_type: HookType) -> list[Callback]:
        """Hooks of one kind in registration order (a copy)."""
        return list(self._partition(HookType.parse(hook_type)))

    @property
    def total(self) -> int:
        return (
            len(self.before_all) + len(self.after_all)
            + len(self.before_each) + len(self.after_each)
        )


def _path_of(identifier: str, parent: Optional["Node"]) -> tuple[str, ...]:
    if parent is None:
        return ()
    return parent.path + (identifier,)


@dataclass(eq=False)
class Task:
    """A leaf unit of test work."""
    identifier: str
    callback: Callback
    declared_mode: RunMode = RunMode.RUN
    parent: Optional["Node"] = field(default=None, repr=False)
    effective_mode: Optional[RunMode] = None

    @property
    def path(self) -> tuple[str, ...]:
        """Identifiers from the outermost node down to this task."""
        return _path_of(self.identifier, self.parent)


@dataclass(eq=False)
class Node:
    """A named container of tasks, nested nodes and lifetime hooks."""
    identifier: str
    factory: Optional[Factory] = None
    declared_mode: RunMode = RunMode.RUN
    parent: Optional["Node"] = field(default=None, repr=False)
    children: list[Union[Task, "Node"]] = field(default_factory=list, repr=False)
    hooks: LifetimeHooks = field(default_factory=LifetimeHooks, repr=False)
    effective_mode: Optional[RunMode] = None
    has_only_descendant: bool = False
    collected: bool = False
    collection_error: Optional[BaseException] = field(default=None, repr=False)
    # Awaitable returned by the factory, settled by Collector.collect().
    pending: Optional[Awaitable[Any]] = field(default=None, repr=False)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def path(self) -> tuple[str, ...]:
        """Identifiers from the outermost node down to this node.

        The root contributes nothing to paths.
        """
        return _path_of(self.identifier, self.parent)

    @property
    def tasks(self) -> list[Task]:
        return [c for c in self.children if isinstance(c, Task)]

    @property
    def nodes(self) -> list["Node"]:
        return [c for c in self.children if isinstance(c, Node)]

    def append(self, child: Union[Task, "Node"]) -> None:
        child.parent = self
        self.children.append(child)

    def walk(self) -> Iterator[Union[Task, "Node"]]:
        """Yield every descendant depth-first in declaration order."""
        for child in self.children:
            yield child
            if isinstance(child, Node):
                yield from child.walk()

    def iter_tasks(self) -> Iterator[Task]:
        for entry in self.walk():
            if isinstance(entry, Task):
                yield entry
