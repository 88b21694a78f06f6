"""
Callback marshaling between libprimac and Python.

The solver calls back into Python through three C function shapes:

- objective-only: ``calfun(x, *f, data)``
- objective with nonlinear constraints: ``calcfc(x, *f, constr, data)``
- per-iteration progress: ``callback(n, x, f, nf, tr, cstrv, m_nlcon, nlconstr, *terminate)``

Users never see these signatures. They write plain Python functions and
wrap them in ``ObjectiveCallback`` / ``ObjectiveConstraintsCallback`` /
``IterationCallback``. At solve time a ``CallbackSession`` turns the
wrappers into C trampolines that:

1. wrap every incoming pointer in a bounds-checked ``BufferView``
   before user code runs, and expire that view when the call returns;
2. write outputs through bounds-checked writable views;
3. never let an exception reach ctypes (which would print and discard
   it). The first exception is recorded, later evaluations report NaN,
   the iteration trampoline asks the solver to stop, and ``minimize``
   re-raises it as ``CallbackError``.

The user-data object configured on ``Options`` travels through the C
``void *data`` argument untouched and is handed back to the objective
functions on every call.
"""

from __future__ import annotations

import ctypes
import math
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ._logging import scoped_logger
from ._native import PrimaIterationCallback, PrimaObjective, PrimaObjectiveConstraints
from .exceptions import CallbackError, ValidationError
from .views import BufferView, borrow

__all__ = [
    "ObjectiveCallback",
    "ObjectiveConstraintsCallback",
    "IterationCallback",
    "IterationInfo",
    "CallbackSession",
]

logger = scoped_logger("callback")


def _require_callable(fn: Any, name: str) -> None:
    if not callable(fn):
        raise ValidationError(
            f"{name} must be callable, got {type(fn).__name__}",
            details={"name": name},
        )


class ObjectiveCallback:
    """
    Objective-only callback shape (UOBYQA, NEWUOA, BOBYQA, LINCOA).

    ``fn(x, data) -> float`` receives a read-only view of the current
    point and the user-data object from ``Options.data``.
    """

    kind = "objective"
    m_nlcon = 0

    def __init__(self, fn: Callable[[BufferView, Any], float]) -> None:
        _require_callable(fn, "objective")
        self.fn = fn

    def evaluate(self, x: Sequence[float], data: Any) -> tuple[float, list[float]]:
        return float(self.fn(x, data)), []

    def __repr__(self) -> str:
        return f"ObjectiveCallback({getattr(self.fn, '__name__', self.fn)!r})"


class ObjectiveConstraintsCallback:
    """
    Objective plus nonlinear constraints callback shape (COBYLA).

    ``fn(x, data) -> (f, constraints)`` where ``constraints`` holds
    exactly ``m_nlcon`` values ``c_i(x)``, feasible when ``c_i(x) <= 0``.
    Their order is the caller's choice but must be the same on every
    call; ``Result.nlconstr`` reports them in that order.
    """

    kind = "objective_constraints"

    def __init__(
        self,
        fn: Callable[[BufferView, Any], tuple[float, Sequence[float]]],
        m_nlcon: int,
    ) -> None:
        _require_callable(fn, "objective_constraints")
        if not isinstance(m_nlcon, int) or isinstance(m_nlcon, bool) or m_nlcon < 0:
            raise ValidationError(
                f"m_nlcon must be a non-negative integer, got {m_nlcon!r}",
                details={"m_nlcon": m_nlcon},
            )
        self.fn = fn
        self.m_nlcon = m_nlcon

    def evaluate(self, x: Sequence[float], data: Any) -> tuple[float, list[float]]:
        out = self.fn(x, data)
        try:
            value, constraints = out
        except (TypeError, ValueError):
            raise ValidationError(
                "objective_constraints must return (f, constraints)",
                details={"returned": type(out).__name__},
            ) from None
        constraints = [float(c) for c in constraints]
        if len(constraints) != self.m_nlcon:
            raise ValidationError(
                f"objective_constraints returned {len(constraints)} constraint values, "
                f"expected {self.m_nlcon}",
                details={"expected": self.m_nlcon, "got": len(constraints)},
            )
        return float(value), constraints

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", self.fn)
        return f"ObjectiveConstraintsCallback({name!r}, m_nlcon={self.m_nlcon})"


@dataclass(frozen=True)
class IterationInfo:
    """
    Solver progress passed to an iteration callback.

    ``x`` and ``nlconstr`` are views that expire when the callback
    returns. ``n`` is the count the solver passed for this call and sizes
    ``x``; it is not assumed to equal the problem's variable count.
    """

    n: int
    x: BufferView
    f: float
    nf: int
    tr: int
    cstrv: float
    nlconstr: BufferView
    data: Any = None


class IterationCallback:
    """
    Per-iteration progress callback.

    ``fn(info: IterationInfo) -> bool | None``; return a truthy value to
    stop the solve. The result then reports
    ``ReturnCode.CALLBACK_TERMINATE``.
    """

    kind = "iteration"

    def __init__(self, fn: Callable[[IterationInfo], bool | None]) -> None:
        _require_callable(fn, "callback")
        self.fn = fn

    def __repr__(self) -> str:
        return f"IterationCallback({getattr(self.fn, '__name__', self.fn)!r})"


class CallbackSession:
    """
    Per-solve callback state.

    Owns the C trampolines for one ``minimize`` call (ctypes frees a
    trampoline as soon as its Python object is collected, so the session
    must outlive the native call), the boxed user-data object and the
    first exception raised by user code.

    Args:
        n: Variable count of the problem being solved.
        data: User-data object, passed through to the objective functions.
    """

    def __init__(self, n: int, data: Any = None) -> None:
        self.n = n
        self.data = data
        self.error: BaseException | None = None
        self.error_source: str | None = None
        self._box = ctypes.py_object(data) if data is not None else None
        self._keepalive: list[Any] = []

    # -------------------------------------------------------------------------
    # User data
    # -------------------------------------------------------------------------

    @property
    def data_pointer(self) -> int | None:
        """Opaque ``void*`` for ``prima_options_t.data`` (NULL when no data)."""
        if self._box is None:
            return None
        return ctypes.cast(ctypes.pointer(self._box), ctypes.c_void_p).value

    @staticmethod
    def _unbox(data: int | None) -> Any:
        if not data:
            return None
        return ctypes.cast(data, ctypes.POINTER(ctypes.py_object)).contents.value

    # -------------------------------------------------------------------------
    # Error capture
    # -------------------------------------------------------------------------

    def _record(self, source: str, exc: BaseException) -> None:
        if self.error is None:
            self.error = exc
            self.error_source = source
            logger.error(
                "Callback raised, stopping solve",
                extra={"callback": source, "error": repr(exc)},
            )
        else:
            logger.debug("Further callback error ignored", extra={"callback": source})

    @contextmanager
    def _guard(self, source: str) -> Iterator[None]:
        try:
            yield
        except BaseException as exc:
            self._record(source, exc)

    def raise_pending(self) -> None:
        """Re-raise the recorded callback exception as ``CallbackError``.

        ``KeyboardInterrupt``, ``SystemExit`` and other non-``Exception``
        errors are re-raised unchanged.
        """
        if self.error is None:
            return
        exc = self.error
        if not isinstance(exc, Exception):
            raise exc
        raise CallbackError(
            f"{self.error_source} callback raised {type(exc).__name__}: {exc}",
            details={"callback": self.error_source},
        ) from exc

    # -------------------------------------------------------------------------
    # Trampolines
    # -------------------------------------------------------------------------

    def _evaluate(
        self,
        callback: ObjectiveCallback | ObjectiveConstraintsCallback,
        x: Any,
        data: int | None,
    ) -> tuple[float, list[float]]:
        if self.error is None:
            try:
                with borrow(x, self.n) as view:
                    return callback.evaluate(view, self._unbox(data))
            except BaseException as exc:
                self._record(callback.kind, exc)
        return math.nan, [math.nan] * callback.m_nlcon

    def bind_objective(self, callback: ObjectiveCallback) -> Any:
        """C function pointer for ``prima_problem_t.calfun``."""

        def trampoline(x, f, data):
            with self._guard(callback.kind):
                value, _ = self._evaluate(callback, x, data)
                with borrow(f, 1, writable=True) as out:
                    out[0] = value

        c_fn = PrimaObjective(trampoline)
        self._keepalive.append(c_fn)
        return c_fn

    def bind_objective_constraints(self, callback: ObjectiveConstraintsCallback) -> Any:
        """C function pointer for ``prima_problem_t.calcfc``."""
        m_nlcon = callback.m_nlcon

        def trampoline(x, f, constr, data):
            with self._guard(callback.kind):
                value, constraints = self._evaluate(callback, x, data)
                with borrow(f, 1, writable=True) as out:
                    out[0] = value
                with borrow(constr, m_nlcon, writable=True) as out:
                    out.fill(constraints)

        c_fn = PrimaObjectiveConstraints(trampoline)
        self._keepalive.append(c_fn)
        return c_fn

    def bind_iteration(self, callback: IterationCallback | None) -> Any:
        """C function pointer for ``prima_options_t.callback``.

        Installed on every solve, with or without a user callback, so a
        recorded error can stop the solver.
        """

        def trampoline(n, x, f, nf, tr, cstrv, m_nlcon, nlconstr, terminate):
            stop = True
            with self._guard("iteration"):
                stop = self.error is not None
                if not stop and callback is not None:
                    stop = self._call_iteration(
                        callback, n, x, f, nf, tr, cstrv, m_nlcon, nlconstr
                    )
            if terminate:
                terminate[0] = stop

        c_fn = PrimaIterationCallback(trampoline)
        self._keepalive.append(c_fn)
        return c_fn

    def _call_iteration(
        self,
        callback: IterationCallback,
        n: int,
        x: Any,
        f: float,
        nf: int,
        tr: int,
        cstrv: float,
        m_nlcon: int,
        nlconstr: Any,
    ) -> bool:
        try:
            with borrow(x, n) as x_view, borrow(nlconstr, max(m_nlcon, 0)) as c_view:
                info = IterationInfo(
                    n=n,
                    x=x_view,
                    f=f,
                    nf=nf,
                    tr=tr,
                    cstrv=cstrv,
                    nlconstr=c_view,
                    data=self.data,
                )
                return bool(callback.fn(info))
        except BaseException as exc:
            self._record(callback.kind, exc)
            return True
