"""
primabridge exceptions.

    PrimaError (base)
    ├── ValidationError - Precondition violated before the native call
    ├── StateError - Released result or expired buffer view accessed
    ├── InteropError - Malformed pointer/length pair at the boundary
    ├── LibraryError - libprimac missing, or an init entry point failed
    ├── SolveError - prima_minimize reported a failure status
    └── CallbackError - A user callback raised during a solve
"""

from .exceptions import (
    CallbackError,
    InteropError,
    LibraryError,
    PrimaError,
    SolveError,
    StateError,
    ValidationError,
)

__all__ = [
    # Base
    "PrimaError",
    # Preconditions
    "ValidationError",
    # Lifecycle
    "StateError",
    # Boundary
    "InteropError",
    "LibraryError",
    # Solve
    "SolveError",
    "CallbackError",
]
