"""GUI functions: the pipeline and the built-in functions."""

from .base import (
    Action,
    ActionContext,
    ActionRegistry,
    BoundFunction,
    FunctionChain,
    FunctionRegistry,
    FunctionState,
    GUIFunction,
)
from .builtin import create_action_registry, create_function_registry

__all__ = [
    "Action",
    "ActionContext",
    "ActionRegistry",
    "BoundFunction",
    "FunctionChain",
    "FunctionRegistry",
    "FunctionState",
    "GUIFunction",
    "create_action_registry",
    "create_function_registry",
]
