"""Registration handle bound to one node.

A Scope is what node factories receive. Registration goes through the
handle explicitly, so no global "current node" is needed. Every entry
point comes in four variants (bare, only, skip, todo) that share one
implementation parameterized by RunMode.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from .structures import Callback, Factory, HookType, Node, RunMode, Task

if TYPE_CHECKING:
    from .collector import Collector


class ModeVariants:
    """A registration call exposed as ``fn``, ``fn.only``, ``fn.skip``, ``fn.todo``."""

    def __init__(self, register: Callable[[str, Any, RunMode], Any]):
        self._register = register

    def __call__(self, identifier: str, fn: Optional[Callable] = None):
        return self._register(identifier, fn, RunMode.RUN)

    def only(self, identifier: str, fn: Optional[Callable] = None):
        return self._register(identifier, fn, RunMode.ONLY)

    def skip(self, identifier: str, fn: Optional[Callable] = None):
        return self._register(identifier, fn, RunMode.SKIP)

    def todo(self, identifier: str, fn: Optional[Callable] = None):
        return self._register(identifier, fn, RunMode.TODO)


class Scope:
    """Registers tasks, nodes and hooks into a single node.

    Example:
        >>> def body(s):
        ...     s.before_each(reset_db)
        ...     s.test("inserts", test_insert)
        ...     s.describe.skip("legacy", legacy_body)
        >>> collector.scope.describe("db", body)
    """

    def __init__(self, collector: "Collector", node: Node):
        self.collector = collector
        self.node = node

        self.test = ModeVariants(self.register_task)
        self.it = self.test
        self.describe = ModeVariants(self.register_node)
        self.suite = self.describe
        self.create_node = self.describe

    def register_task(
        self,
        identifier: str,
        callback: Optional[Callback] = None,
        mode: Union[RunMode, str] = RunMode.RUN,
    ) -> Task:
        return self.collector.register_task(
            identifier, callback, mode, parent=self.node
        )

    def register_node(
        self,
        identifier: str,
        factory: Optional[Factory] = None,
        mode: Union[RunMode, str] = RunMode.RUN,
    ) -> Node:
        return self.collector.register_node(
            identifier, factory, mode, parent=self.node
        )

    def register_hook(
        self, hook_type: Union[HookType, str], callback: Callback
    ) -> Callback:
        self.collector.register_lifetime_hook(hook_type, callback, parent=self.node)
        return callback

    # Hook helpers return the callback so they also work as decorators.

    def before_all(self, callback: Callback) -> Callback:
        return self.register_hook(HookType.BEFORE_ALL, callback)

    def after_all(self, callback: Callback) -> Callback:
        return self.register_hook(HookType.AFTER_ALL, callback)

    def before_each(self, callback: Callback) -> Callback:
        return self.register_hook(HookType.BEFORE_EACH, callback)

    def after_each(self, callback: Callback) -> Callback:
        return self.register_hook(HookType.AFTER_EACH, callback)

    def __repr__(self) -> str:
        location = " > ".join(self.node.path) or "<root>"
        return f"Scope({location})"
