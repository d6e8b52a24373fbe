"""Shared type aliases used across wayfinder modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Continuation handed to a guard: next(), next(False), next("/path"), next(error)
Next: TypeAlias = Callable[..., None]

# Navigation guard: (to, from_, next), sync or async
Guard: TypeAlias = Callable[..., Any]

# After hook: (to, from_), called once a navigation has committed
AfterHook: TypeAlias = Callable[..., Any]
