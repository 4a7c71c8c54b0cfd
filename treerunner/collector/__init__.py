"""Collector module - tree building from registration calls."""

from .collector import Collector
from .scope import ModeVariants, Scope
from .structures import (
    Callback,
    EFFECTIVE_MODES,
    Factory,
    HookType,
    LifetimeHooks,
    Node,
    RunMode,
    Task,
    noop,
)

__all__ = [
    "Callback",
    "Collector",
    "EFFECTIVE_MODES",
    "Factory",
    "HookType",
    "LifetimeHooks",
    "ModeVariants",
    "Node",
    "RunMode",
    "Scope",
    "Task",
    "noop",
]
