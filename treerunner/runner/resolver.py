"""Run mode resolution.

Turns declared modes into effective modes in two passes over the tree:
a bottom-up pass that marks nodes with an ``only`` descendant, then a
top-down pass that applies todo, only and skip in that order of
precedence. The result depends on declared modes alone, so resolving
an already resolved tree gives the same assignment.
"""

from typing import Union

from ..collector.structures import Node, RunMode, Task


def resolve_tree(root: Node) -> Node:
    """Assign an effective mode to every node and task under ``root``.

    Rules, first match wins:
    1. Declared todo, or inside a todo node: todo.
    2. Some entry in the tree is declared only, and this entry is not
       only itself, has no only ancestor and no only descendant: skip.
    3. Declared skip: skip.
    4. Otherwise: run.

    The root always resolves to run.

    Args:
        root: Root node of a collected tree.

    Returns:
        The same root, annotated in place.
    """
    _mark_only_descendants(root)
    any_only = root.has_only_descendant

    root.effective_mode = RunMode.RUN
    for child in root.children:
        _assign(child, any_only, under_only=False, under_todo=False)

    return root


def is_resolved(root: Node) -> bool:
    """Whether every entry of the tree carries an effective mode."""
    if root.effective_mode is None:
        return False
    return all(entry.effective_mode is not None for entry in root.walk())


def _mark_only_descendants(node: Node) -> bool:
    found = False
    for child in node.children:
        if isinstance(child, Node):
            # Recurse unconditionally so every nested node gets its flag.
            below = _mark_only_descendants(child)
            found = found or below or child.declared_mode is RunMode.ONLY
        elif child.declared_mode is RunMode.ONLY:
            found = True

    node.has_only_descendant = found
    return found


def _assign(
    entry: Union[Task, Node],
    any_only: bool,
    under_only: bool,
    under_todo: bool,
) -> None:
    declared = entry.declared_mode
    is_only = declared is RunMode.ONLY
    has_only_below = isinstance(entry, Node) and entry.has_only_descendant

    if under_todo or declared is RunMode.TODO:
        effective = RunMode.TODO
    elif any_only and not (is_only or under_only or has_only_below):
        effective = RunMode.SKIP
    elif declared is RunMode.SKIP:
        effective = RunMode.SKIP
    else:
        effective = RunMode.RUN

    entry.effective_mode = effective

    if isinstance(entry, Node):
        for child in entry.children:
            _assign(
                child,
                any_only,
                under_only=under_only or is_only,
                under_todo=effective is RunMode.TODO,
            )
