"""
Library loading and thin wrappers around the libprimac entry points.

The shared library is located once and cached. Search order:

1. ``PRIMABRIDGE_LIBRARY`` (full path to the shared library)
2. A copy shipped next to this package (``libprimac.so`` / ``.dylib`` / ``primac.dll``)
3. ``ctypes.util.find_library("primac")``

Every wrapper here takes and returns ctypes objects; ownership decisions
live in the callers (problem.py, options.py, result.py, minimize.py).
"""

from __future__ import annotations

import ctypes
import ctypes.util
import os
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ._logging import scoped_logger
from ._native import PrimaOptions, PrimaProblem, PrimaResult, setup_signatures
from .exceptions import LibraryError, SolveError
from .types import ReturnCode, coerce_status, describe_status

if TYPE_CHECKING:
    from .result import Result

__all__ = [
    "LIBRARY_ENV",
    "get_lib",
    "load_library",
    "set_lib",
    "check",
    "check_status",
    "call_init_problem",
    "call_init_options",
    "call_minimize",
    "call_free_result",
    "call_rc_string",
]

logger = scoped_logger("loader")

LIBRARY_ENV = "PRIMABRIDGE_LIBRARY"

_lib: Any = None
_lock = threading.Lock()


def _bundled_library_path() -> Path:
    here = Path(__file__).parent
    if sys.platform == "win32":
        return here / "primac.dll"
    if sys.platform == "darwin":
        return here / "libprimac.dylib"
    return here / "libprimac.so"


def _candidate_paths() -> list[str]:
    candidates = []
    explicit = os.environ.get(LIBRARY_ENV)
    if explicit:
        candidates.append(explicit)
    bundled = _bundled_library_path()
    if bundled.exists():
        candidates.append(str(bundled))
    found = ctypes.util.find_library("primac")
    if found:
        candidates.append(found)
    return candidates


def load_library(path: str | os.PathLike[str] | None = None) -> ctypes.CDLL:
    """Load libprimac and configure its signatures.

    Args:
        path: Explicit library path. When omitted the search order in the
            module docstring applies.

    Raises:
        LibraryError: If no candidate can be loaded.
    """
    candidates = [os.fspath(path)] if path is not None else _candidate_paths()
    if not candidates:
        raise LibraryError(
            f"libprimac not found. Set {LIBRARY_ENV} to the shared library path.",
            code="LIBRARY_NOT_FOUND",
        )

    errors: dict[str, str] = {}
    for candidate in candidates:
        try:
            lib = ctypes.CDLL(candidate)
        except OSError as exc:
            errors[candidate] = str(exc)
            continue
        try:
            setup_signatures(lib)
        except AttributeError as exc:
            errors[candidate] = f"missing entry point: {exc}"
            continue
        logger.debug("Loaded native library", extra={"path": candidate})
        return lib

    raise LibraryError(
        "Failed to load libprimac.",
        code="LIBRARY_LOAD_FAILED",
        details={"attempts": errors},
    )


def get_lib() -> Any:
    """Return the cached library handle, loading it on first use."""
    global _lib
    if _lib is None:
        with _lock:
            if _lib is None:
                _lib = load_library()
    return _lib


def set_lib(lib: Any) -> Any:
    """Replace the cached library handle and return the previous one.

    Passing ``None`` forces the next ``get_lib()`` to search again.
    """
    global _lib
    with _lock:
        previous, _lib = _lib, lib
    return previous


# =============================================================================
# Status Mapping
# =============================================================================


def check(rc: int, details: dict[str, Any] | None = None) -> None:
    """Raise ``LibraryError`` for a non-zero return from an init entry point."""
    if rc == 0:
        return
    info = dict(details or {})
    info["status"] = coerce_status(rc)
    raise LibraryError(
        f"{info.get('operation', 'native call')} failed: {describe_status(rc)}",
        code="NATIVE_CALL_FAILED",
        details=info,
        original_code=rc,
    )


def check_status(status: int, result: Result) -> None:
    """Raise ``SolveError`` when *status* is a failure code.

    Converged and stopped-early codes return normally; the caller reads
    ``result.success`` / ``result.status`` to tell them apart.
    """
    code = coerce_status(status)
    if isinstance(code, ReturnCode) and not code.is_failure:
        return
    raise SolveError(
        f"Solver failed: {result.message}",
        status=code,
        result=result,
        details={"status": code},
    )


# =============================================================================
# Entry Points
# =============================================================================


def call_init_problem(problem: PrimaProblem, n: int) -> None:
    rc = get_lib().prima_init_problem(ctypes.pointer(problem), n)
    check(rc, {"operation": "prima_init_problem", "n": n})


def call_init_options(options: PrimaOptions) -> None:
    rc = get_lib().prima_init_options(ctypes.pointer(options))
    check(rc, {"operation": "prima_init_options"})


def call_minimize(
    lib: Any, algorithm: int, problem: PrimaProblem, options: PrimaOptions, result: PrimaResult
) -> int:
    """Run the solver. Descriptors are passed by value; *result* is filled in place."""
    return int(lib.prima_minimize(int(algorithm), problem, options, ctypes.pointer(result)))


def call_free_result(lib: Any, result: PrimaResult) -> None:
    """Release the buffers inside *result* using the library that allocated them."""
    rc = lib.prima_free_result(ctypes.pointer(result))
    check(rc, {"operation": "prima_free_result"})


def call_rc_string(lib: Any, status: int) -> str:
    """Message the library associates with *status*."""
    raw = lib.prima_get_rc_string(int(status))
    if not raw:
        return describe_status(status)
    return raw.decode("utf-8", errors="replace")
