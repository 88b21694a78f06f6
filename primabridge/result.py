"""
Result record returned by ``minimize``.

``prima_minimize`` allocates the ``x`` and ``nlconstr`` buffers inside
the result record; they must be returned with ``prima_free_result``
exactly once. ``Result`` owns the record and makes that release the
single, idempotent ``close()``. Views it hands out are invalidated on
release, so no caller can read freed memory through them.
"""

from __future__ import annotations

import math
import weakref
from dataclasses import dataclass
from typing import Any

from . import _bindings as ffi
from ._logging import scoped_logger
from ._native import PrimaResult
from .exceptions import StateError
from .types import ReturnCode, coerce_status
from .views import BufferView

__all__ = ["Result", "Solution"]

logger = scoped_logger("result")


@dataclass(frozen=True)
class Solution:
    """Plain copy of a result record. Stays valid after the record is released."""

    x: tuple[float, ...] | None
    f: float
    cstrv: float
    nlconstr: tuple[float, ...] | None
    nf: int
    status: ReturnCode | int
    success: bool
    message: str

    @property
    def terminated_by_callback(self) -> bool:
        return self.status == ReturnCode.CALLBACK_TERMINATE


class Result:
    """
    Owning handle for a ``prima_result_t``.

    Do not instantiate directly; ``minimize`` returns one.

    Use as a context manager or call ``close()``; garbage collection
    releases it otherwise. Every accessor raises ``StateError`` after
    release; ``snapshot()`` first to keep the values.

    Example:
        >>> with minimize("newuoa", problem, options) as result:
        ...     print(result.x.tolist(), result.f, result.message)
    """

    def __init__(
        self,
        c_result: PrimaResult,
        *,
        n: int,
        m_nlcon: int,
        lib: Any,
        status: int | None = None,
    ) -> None:
        self._c_result: PrimaResult | None = c_result
        self._status = status
        self._n = n
        self._m_nlcon = m_nlcon
        self._lib = lib
        self._views: weakref.WeakSet[BufferView] = weakref.WeakSet()

    def _record(self) -> PrimaResult:
        if self._c_result is None:
            raise StateError("Result has been released", code="RESULT_RELEASED")
        return self._c_result

    def _view(self, ptr: Any, length: int) -> BufferView | None:
        if not ptr:
            return None
        view = BufferView(ptr, length)
        self._views.add(view)
        return view

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._c_result is None

    @property
    def n(self) -> int:
        return self._n

    @property
    def m_nlcon(self) -> int:
        return self._m_nlcon

    @property
    def x(self) -> BufferView | None:
        """Final point (length ``n``), or None if the solver left it NULL."""
        return self._view(self._record().x, self._n)

    @property
    def nlconstr(self) -> BufferView | None:
        """Nonlinear constraint values at ``x`` (length ``m_nlcon``), or None."""
        return self._view(self._record().nlconstr, self._m_nlcon)

    @property
    def f(self) -> float:
        return self._record().f

    @property
    def cstrv(self) -> float:
        """Constraint violation at ``x`` (0 for unconstrained problems)."""
        return self._record().cstrv

    @property
    def nf(self) -> int:
        """Number of objective evaluations."""
        return self._record().nf

    @property
    def status(self) -> ReturnCode | int:
        """Return code of the solve (a ``ReturnCode`` member when known)."""
        record = self._record()
        return coerce_status(record.status if self._status is None else self._status)

    @property
    def success(self) -> bool:
        return bool(self._record().success)

    @property
    def message(self) -> str:
        raw = self._record().message
        if raw:
            return raw.decode("utf-8", errors="replace")
        return ffi.call_rc_string(self._lib, int(self.status))

    @property
    def terminated_by_callback(self) -> bool:
        """True when the iteration callback asked the solver to stop."""
        return self.status == ReturnCode.CALLBACK_TERMINATE

    @property
    def converged(self) -> bool:
        status = self.status
        return isinstance(status, ReturnCode) and status.is_converged

    def snapshot(self) -> Solution:
        """Copy every field into a ``Solution``."""
        x = self.x
        nlconstr = self.nlconstr
        return Solution(
            x=tuple(x) if x is not None else None,
            f=self.f,
            cstrv=self.cstrv,
            nlconstr=tuple(nlconstr) if nlconstr is not None else None,
            nf=self.nf,
            status=self.status,
            success=self.success,
            message=self.message,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Release the native buffers. Idempotent."""
        c_result, self._c_result = self._c_result, None
        if c_result is None:
            return
        for view in list(self._views):
            view._invalidate()
        self._views.clear()
        ffi.call_free_result(self._lib, c_result)
        logger.debug("Result released", extra={"status": c_result.status})

    def __enter__(self) -> Result:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass

    def __repr__(self) -> str:
        if self.closed:
            return "Result(closed)"
        status = self.status
        name = status.name if isinstance(status, ReturnCode) else str(status)
        f = "nan" if math.isnan(self.f) else f"{self.f:g}"
        return f"Result(status={name}, f={f}, nf={self.nf}, success={self.success})"
