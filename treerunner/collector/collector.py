"""Registration-time tree builder.

Coordinates the collection flow:
1. Registration calls append tasks, nodes and hooks to an explicit parent
2. A node factory is invoked as soon as its node is registered
3. Awaitables returned by factories are settled one at a time, depth-first
4. Factory failures are stored on their node instead of propagating
"""

import inspect
import logging
from typing import Optional, Union

from ..config.schema import RunnerConfig
from ..errors import CollectionError, StructuralError
from .scope import Scope
from .structures import (
    Callback,
    Factory,
    HookType,
    Node,
    RunMode,
    Task,
    noop,
)

logger = logging.getLogger(__name__)


class Collector:
    """Builds the task tree of one collection session.

    Registration is synchronous. ``register_node`` calls the factory
    right away with a Scope bound to the new node, so entries registered
    by a synchronous factory land exactly where the call was made. When
    a factory returns an awaitable, the node stays uncollected until
    ``collect()`` awaits it. Awaitables are settled one at a time,
    depth-first in declaration order.
    """

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        root_identifier: Optional[str] = None,
    ):
        """Initialize collector.

        Args:
            config: Runner configuration.
            root_identifier: Identifier of the implicit root node.
                Defaults to ``config.root_identifier``.
        """
        self.config = config or RunnerConfig()
        self.root_identifier = (
            root_identifier if root_identifier is not None
            else self.config.root_identifier
        )
        self.root = self._new_root()
        self._duplicates: list[tuple[str, ...]] = []
        self._collecting = False

    def _new_root(self) -> Node:
        return Node(
            identifier=self.root_identifier,
            declared_mode=RunMode.RUN,
            collected=True,
        )

    @property
    def scope(self) -> Scope:
        """Registration handle bound to the root node."""
        return Scope(self, self.root)

    @property
    def is_collecting(self) -> bool:
        return self._collecting

    def reset(self) -> None:
        """Discard the current tree and start over with an empty root."""
        for entry in self.root.walk():
            if isinstance(entry, Node) and entry.pending is not None:
                close = getattr(entry.pending, "close", None)
                if close is not None:
                    close()
                entry.pending = None
        self.root = self._new_root()
        self._duplicates = []

    def register_task(
        self,
        identifier: str,
        callback: Optional[Callback] = None,
        mode: Union[RunMode, str] = RunMode.RUN,
        parent: Optional[Node] = None,
    ) -> Task:
        """Append a task to ``parent`` (the root when omitted).

        A todo task keeps a no-op instead of its callback. A missing
        callback is accepted and also becomes a no-op.
        """
        mode = RunMode.parse(mode)
        parent = self._resolve_parent(parent)
        self._check_identifier(identifier)
        self._check_callable(callback, "Task callback")

        if mode is RunMode.TODO or callback is None:
            callback = noop

        task = Task(identifier=identifier, callback=callback, declared_mode=mode)
        self._note_duplicate(parent, identifier)
        parent.append(task)
        return task

    def register_node(
        self,
        identifier: str,
        factory: Optional[Factory] = None,
        mode: Union[RunMode, str] = RunMode.RUN,
        parent: Optional[Node] = None,
    ) -> Node:
        """Append a node to ``parent`` (the root when omitted).

        The factory is invoked immediately. If it returns an awaitable,
        ``collect()`` must run before the tree can execute. A todo node
        never has its factory invoked and stays an empty container.
        """
        mode = RunMode.parse(mode)
        parent = self._resolve_parent(parent)
        self._check_identifier(identifier)
        self._check_callable(factory, "Node factory")

        if mode is RunMode.TODO:
            factory = None

        node = Node(
            identifier=identifier,
            factory=factory,
            declared_mode=mode,
            collected=factory is None,
        )
        self._note_duplicate(parent, identifier)
        parent.append(node)
        if factory is not None:
            self._invoke_factory(node, factory)
        return node

    def register_lifetime_hook(
        self,
        hook_type: Union[HookType, str],
        callback: Callback,
        parent: Optional[Node] = None,
    ) -> None:
        """Append a lifetime hook to ``parent`` (the root when omitted)."""
        hook_type = HookType.parse(hook_type)
        if callback is None or not callable(callback):
            raise StructuralError(
                f"{hook_type.value} hook must be callable, got {type(callback).__name__}"
            )

        if parent is None:
            logger.debug(
                "%s hook registered without an enclosing node; attaching to root",
                hook_type.value,
            )
        parent = self._resolve_parent(parent)
        parent.hooks.add(hook_type, callback)

    async def collect(self, factory: Optional[Factory] = None) -> Node:
        """Await every pending factory result and return the root.

        Args:
            factory: Optional top-level body run against the root first,
                for example the contents of one test file.

        Returns:
            The root node of the collected tree.

        Raises:
            StructuralError: If called while a collection is in progress.
        """
        if self._collecting:
            raise StructuralError("Collection is already in progress.")

        self._collecting = True
        try:
            if factory is not None:
                self._check_callable(factory, "Root factory")
                self._invoke_factory(self.root, factory)
                await self._await_pending(self.root)
            await self._settle(self.root)
        finally:
            self._collecting = False

        return self.root

    async def _settle(self, node: Node) -> None:
        # Index loop: an async factory may append to an outer node it captured.
        index = 0
        while index < len(node.children):
            child = node.children[index]
            index += 1
            if isinstance(child, Node):
                await self._await_pending(child)
                await self._settle(child)

    def _invoke_factory(self, node: Node, factory: Factory) -> None:
        node.collected = False
        try:
            result = factory(Scope(self, node))
        except Exception as e:
            self._fail_collection(node, e)
            node.collected = True
            return

        if inspect.isawaitable(result):
            node.pending = result
        else:
            node.collected = True

    async def _await_pending(self, node: Node) -> None:
        pending, node.pending = node.pending, None
        if pending is None:
            return
        try:
            await pending
        except Exception as e:
            self._fail_collection(node, e)
        finally:
            node.collected = True

    @staticmethod
    def _fail_collection(node: Node, error: Exception) -> None:
        node.collection_error = CollectionError(node.path, error)
        logger.warning("%s", node.collection_error)

    def duplicate_identifiers(self) -> list[tuple[str, ...]]:
        """Paths of entries whose identifier repeats a sibling's."""
        return list(self._duplicates)

    def _resolve_parent(self, parent: Optional[Node]) -> Node:
        if parent is None:
            return self.root

        top = parent
        while top.parent is not None:
            top = top.parent
        if top is not self.root:
            raise StructuralError(
                f"Node '{parent.identifier}' does not belong to this collector's tree."
            )
        return parent

    def _note_duplicate(self, parent: Node, identifier: str) -> None:
        if not any(c.identifier == identifier for c in parent.children):
            return

        path = parent.path + (identifier,)
        self._duplicates.append(path)
        if self.config.warn_duplicate_identifiers:
            logger.warning("Duplicate identifier: %s", " > ".join(path))

    @staticmethod
    def _check_identifier(identifier: str) -> None:
        if not isinstance(identifier, str) or not identifier:
            raise StructuralError(
                f"Identifier must be a non-empty string, got {identifier!r}"
            )

    @staticmethod
    def _check_callable(value, what: str) -> None:
        if value is not None and not callable(value):
            raise StructuralError(
                f"{what} must be callable, got {type(value).__name__}"
            )
