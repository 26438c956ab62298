"""
rstream Common Types - Shared Type Definitions
==============================================

Type variables, callback aliases and the UNSET sentinel shared by the stream
and producer modules. Kept in one place to avoid circular imports.
"""

from typing import Any, Callable, TypeVar

# ============================================================================
# TYPE VARIABLES
# ============================================================================

T = TypeVar("T")

# ============================================================================
# CALLBACK TYPES
# ============================================================================

ChangeCallback = Callable[[Any], Any]
ErrorCallback = Callable[[Any], Any]

# ============================================================================
# SENTINEL
# ============================================================================


class _Unset:
    """Sentinel for a stream that has never been given a value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<unset>"

    def __bool__(self):
        return False

    def __reduce__(self):
        return (_Unset, ())


UNSET = _Unset()
