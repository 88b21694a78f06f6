"""
primabridge exceptions.

This module defines the exception hierarchy for the bridge:

    PrimaError (base)
    ├── ValidationError - Precondition violated before the native call
    ├── StateError - Released result or expired buffer view accessed
    ├── InteropError - Malformed pointer/length pair at the boundary
    ├── LibraryError - libprimac missing, or an init entry point failed
    ├── SolveError - prima_minimize reported a failure status
    └── CallbackError - A user callback raised during a solve

Usage:
    try:
        result = primabridge.minimize("newuoa", problem, options)
    except primabridge.SolveError as e:
        print(f"{e.status}: {e}")
        print(e.result.x)  # partial record, still open
        e.result.close()
    except primabridge.PrimaError as e:
        print(f"Error {e.code}: {e}")
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..result import Result

__all__ = [
    "PrimaError",
    "ValidationError",
    "StateError",
    "InteropError",
    "LibraryError",
    "SolveError",
    "CallbackError",
]


class PrimaError(Exception):
    """
    Base exception for all bridge errors.

    Attributes
    ----------
    message : str
        Human-readable error description.
    code : str
        Stable, string-based error code (e.g., "INVALID_ARGUMENT").
    details : dict[str, Any]
        Structured context (e.g., {"expected": 2, "got": 3}).
    original_code : int | None
        The native integer status, when one exists.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_code = original_code

    @property
    def message(self) -> str:
        return self.args[0]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"


class ValidationError(PrimaError, ValueError):
    """
    A precondition was violated before calling into the library.

    Raised for programming errors that must never reach native code:
    non-positive variable counts, buffers of the wrong length, a
    callback shape the chosen algorithm cannot use, bounds or linear
    constraints on an algorithm that ignores them.
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_ARGUMENT",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class StateError(PrimaError, RuntimeError):
    """
    Object used in an invalid state.

    Raised when a released ``Result`` is read, or when a buffer view is
    used after the native call that lent it has returned.
    """

    def __init__(
        self,
        message: str,
        code: str = "STATE_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class InteropError(PrimaError, RuntimeError):
    """Pointer/length pair crossing the boundary is malformed (e.g. NULL with data)."""

    def __init__(
        self,
        message: str,
        code: str = "INTEROP_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class LibraryError(PrimaError, OSError):
    """
    The native library is unavailable or misbehaved.

    Raised when libprimac cannot be located or loaded, or when one of
    the struct initialization entry points returns a non-zero code.
    """

    def __init__(
        self,
        message: str,
        code: str = "LIBRARY_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class SolveError(PrimaError, RuntimeError):
    """
    The solver returned a failure status.

    The record produced by the call is still attached as ``result`` and
    is still open: it may hold the best point found before the failure.
    Close it (or let it be garbage collected) when done.

    Attributes
    ----------
    status : int
        Native return code (a ``ReturnCode`` member when known).
    result : Result | None
        The open result record.
    """

    def __init__(
        self,
        message: str,
        status: int,
        result: "Result | None" = None,
        code: str = "SOLVE_FAILED",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details, status)
        self.status = status
        self.result = result


class CallbackError(PrimaError, RuntimeError):
    """
    A user callback raised during a solve.

    The original exception is chained as ``__cause__``. The solve was
    stopped through the iteration callback and its result released.
    """

    def __init__(
        self,
        message: str,
        code: str = "CALLBACK_FAILED",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)
