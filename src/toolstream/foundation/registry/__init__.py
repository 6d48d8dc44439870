"""Tool registry: descriptor records and validated dispatch."""

from .registry import (
    ToolDescriptor,
    ToolRegistry,
    get_registry,
    reset_registry,
    set_registry,
    truncate,
)

__all__ = ["ToolDescriptor", "ToolRegistry", "get_registry", "set_registry", "reset_registry", "truncate"]
