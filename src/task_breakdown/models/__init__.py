"""Core data models for prompt breakdown."""

from .core import (
    TaskDescriptor,
    ProviderRef,
    BreakdownRequest,
    BreakdownState,
    TaskItem,
    descriptors_to_dicts,
)

__all__ = [
    "TaskDescriptor",
    "ProviderRef",
    "BreakdownRequest",
    "BreakdownState",
    "TaskItem",
    "descriptors_to_dicts",
]
