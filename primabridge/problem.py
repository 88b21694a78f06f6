"""
Problem descriptor builder.

``build_problem(n)`` is the only way to obtain a ``Problem``. It hides the
native two-phase construction (declare a record, then run
``prima_init_problem`` on it) so no caller can observe the record
before the library has defined every field.

The descriptor owns copies of every array assigned to it and keeps them
alive; it never frees native memory.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from . import _bindings as ffi
from ._logging import scoped_logger
from ._native import PrimaObjective, PrimaObjectiveConstraints, PrimaProblem
from .callbacks import ObjectiveCallback, ObjectiveConstraintsCallback
from .exceptions import ValidationError
from .views import as_c_array, as_c_matrix, as_pointer, borrow

__all__ = ["Problem", "build_problem", "build_problem_descriptor"]

logger = scoped_logger("builder")


def _check_count(value: Any, name: str, *, minimum: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        raise ValidationError(
            f"{name} must be an integer >= {minimum}, got {value!r}",
            details={name: value},
        )
    return value


class Problem:
    """
    An optimization problem: starting point, bounds, constraints and the
    objective callback.

    Do not instantiate directly; use ``build_problem(n)``.

    Example:
        >>> problem = build_problem(2)
        >>> problem.x0 = [0.0, 0.0]
        >>> problem.set_objective(lambda x, data: (x[0] - 5) ** 2 + (x[1] - 4) ** 2)
    """

    def __init__(self, c_problem: PrimaProblem) -> None:
        self._c_problem = c_problem
        self._x0: Any = None
        self._xl: Any = None
        self._xu: Any = None
        self._a_ineq: Any = None
        self._b_ineq: Any = None
        self._a_eq: Any = None
        self._b_eq: Any = None
        self._nlconstr0: Any = None
        self._callback: ObjectiveCallback | ObjectiveConstraintsCallback | None = None

    @property
    def c_struct(self) -> PrimaProblem:
        """The underlying ``prima_problem_t`` (callback fields stay NULL until a solve)."""
        return self._c_problem

    @property
    def n(self) -> int:
        """Number of variables."""
        return self._c_problem.n

    # -------------------------------------------------------------------------
    # Point and bounds
    # -------------------------------------------------------------------------

    @property
    def x0(self) -> tuple[float, ...] | None:
        """Starting point (length ``n``), or None if not set yet."""
        return tuple(self._x0) if self._x0 is not None else None

    @x0.setter
    def x0(self, values: Iterable[float]) -> None:
        self._x0 = as_c_array(values, self.n, "x0")
        self._c_problem.x0 = as_pointer(self._x0)

    @property
    def xl(self) -> tuple[float, ...] | None:
        """Lower bounds (length ``n``) or None when absent."""
        return tuple(self._xl) if self._xl is not None else None

    @xl.setter
    def xl(self, values: Iterable[float] | None) -> None:
        self._xl = as_c_array(values, self.n, "xl") if values is not None else None
        self._c_problem.xl = as_pointer(self._xl)

    @property
    def xu(self) -> tuple[float, ...] | None:
        """Upper bounds (length ``n``) or None when absent."""
        return tuple(self._xu) if self._xu is not None else None

    @xu.setter
    def xu(self, values: Iterable[float] | None) -> None:
        self._xu = as_c_array(values, self.n, "xu") if values is not None else None
        self._c_problem.xu = as_pointer(self._xu)

    @property
    def has_bounds(self) -> bool:
        return self._xl is not None or self._xu is not None

    # -------------------------------------------------------------------------
    # Linear constraints
    # -------------------------------------------------------------------------

    def _linear_system(
        self, a: Iterable[Iterable[float]] | None, b: Iterable[float] | None, name: str
    ) -> tuple[Any, Any, int]:
        if a is None:
            if b is not None:
                raise ValidationError(
                    f"{name}: right-hand side given without a matrix", details={"name": name}
                )
            return None, None, 0
        if b is None:
            raise ValidationError(
                f"{name}: matrix given without a right-hand side", details={"name": name}
            )
        matrix, m = as_c_matrix(a, self.n, f"A{name}")
        rhs = as_c_array(b, m, f"b{name}")
        if m == 0:
            return None, None, 0
        return matrix, rhs, m

    def set_linear_inequality(
        self, a: Iterable[Iterable[float]] | None, b: Iterable[float] | None
    ) -> None:
        """Constrain ``A @ x <= b``. ``A`` is ``m × n`` (rows); ``None`` clears."""
        self._a_ineq, self._b_ineq, m = self._linear_system(a, b, "ineq")
        self._c_problem.m_ineq = m
        self._c_problem.Aineq = as_pointer(self._a_ineq)
        self._c_problem.bineq = as_pointer(self._b_ineq)

    def set_linear_equality(
        self, a: Iterable[Iterable[float]] | None, b: Iterable[float] | None
    ) -> None:
        """Constrain ``A @ x == b``. ``A`` is ``m × n`` (rows); ``None`` clears."""
        self._a_eq, self._b_eq, m = self._linear_system(a, b, "eq")
        self._c_problem.m_eq = m
        self._c_problem.Aeq = as_pointer(self._a_eq)
        self._c_problem.beq = as_pointer(self._b_eq)

    @property
    def m_ineq(self) -> int:
        return self._c_problem.m_ineq

    @property
    def m_eq(self) -> int:
        return self._c_problem.m_eq

    @property
    def has_linear_constraints(self) -> bool:
        return self.m_ineq > 0 or self.m_eq > 0

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------

    @property
    def callback(self) -> ObjectiveCallback | ObjectiveConstraintsCallback | None:
        """The active callback shape, or None when none is attached."""
        return self._callback

    def set_objective(self, fn: Callable[[Any, Any], float] | ObjectiveCallback) -> None:
        """Attach an objective-only callback ``fn(x, data) -> float``.

        Replaces any objective+constraints callback, resets the nonlinear
        constraint count to zero and discards ``f0``.
        """
        callback = fn if isinstance(fn, ObjectiveCallback) else ObjectiveCallback(fn)
        self._callback = callback
        self._reset_initial_values(0)

    def set_objective_constraints(
        self,
        fn: Callable[[Any, Any], tuple[float, Sequence[float]]] | ObjectiveConstraintsCallback,
        m_nlcon: int | None = None,
    ) -> None:
        """Attach ``fn(x, data) -> (f, constraints)`` with ``m_nlcon`` constraints.

        Replaces any previous callback and discards ``f0``/``nlconstr0``.
        ``m_nlcon`` may be omitted when *fn* is already an
        ``ObjectiveConstraintsCallback``.
        """
        if isinstance(fn, ObjectiveConstraintsCallback):
            if m_nlcon is not None and m_nlcon != fn.m_nlcon:
                raise ValidationError(
                    f"m_nlcon={m_nlcon} conflicts with callback's m_nlcon={fn.m_nlcon}",
                    details={"m_nlcon": m_nlcon, "callback_m_nlcon": fn.m_nlcon},
                )
            callback = fn
        else:
            if m_nlcon is None:
                raise ValidationError("m_nlcon is required", details={"m_nlcon": None})
            callback = ObjectiveConstraintsCallback(fn, m_nlcon)
        self._callback = callback
        self._reset_initial_values(callback.m_nlcon)

    def _reset_initial_values(self, m_nlcon: int) -> None:
        # Initial values belong to the callback that produced them
        self._nlconstr0 = None
        self._c_problem.nlconstr0 = None
        self._c_problem.f0 = math.nan
        self._c_problem.m_nlcon = m_nlcon

    @property
    def m_nlcon(self) -> int:
        """Number of nonlinear constraints."""
        return self._c_problem.m_nlcon

    # -------------------------------------------------------------------------
    # Initial values
    # -------------------------------------------------------------------------

    @property
    def f0(self) -> float:
        """Objective at ``x0``; NaN until set or evaluated."""
        return self._c_problem.f0

    @f0.setter
    def f0(self, value: float) -> None:
        self._c_problem.f0 = float(value)

    @property
    def nlconstr0(self) -> tuple[float, ...] | None:
        """Nonlinear constraint values at ``x0`` (length ``m_nlcon``) or None."""
        return tuple(self._nlconstr0) if self._nlconstr0 is not None else None

    @nlconstr0.setter
    def nlconstr0(self, values: Iterable[float] | None) -> None:
        if values is None:
            self._nlconstr0 = None
        else:
            self._nlconstr0 = as_c_array(values, self.m_nlcon, "nlconstr0")
        self._c_problem.nlconstr0 = as_pointer(self._nlconstr0)

    @property
    def needs_initial_values(self) -> bool:
        """True when a constrained objective lacks ``f0`` or ``nlconstr0``."""
        return self.m_nlcon > 0 and (math.isnan(self.f0) or self._nlconstr0 is None)

    def initial_values(self, data: Any = None) -> tuple[float, list[float]]:
        """Evaluate the attached callback at ``x0`` without storing anything."""
        if self._x0 is None:
            raise ValidationError("x0 must be set before evaluating", code="MISSING_X0")
        if self._callback is None:
            raise ValidationError("No objective attached", code="MISSING_CALLBACK")
        with borrow(self._x0, self.n) as x:
            return self._callback.evaluate(x, data)

    def evaluate_initial(self, data: Any = None) -> float:
        """Evaluate the callback at ``x0`` and store ``f0`` / ``nlconstr0``.

        Args:
            data: Passed to the callback as its ``data`` argument.

        Returns:
            The objective value at ``x0``.
        """
        f0, constraints = self.initial_values(data)
        self.f0 = f0
        if self.m_nlcon > 0:
            self.nlconstr0 = constraints
        logger.debug("Evaluated initial point", extra={"f0": f0, "m_nlcon": self.m_nlcon})
        return f0

    # -------------------------------------------------------------------------
    # Solve-time copy
    # -------------------------------------------------------------------------

    def _by_value(self) -> PrimaProblem:
        """Raw copy of the descriptor for a by-value native call.

        The copy shares this descriptor's arrays; keep the descriptor
        alive for as long as the copy is in use.
        """
        copy = PrimaProblem.from_buffer_copy(self._c_problem)
        copy.calfun = PrimaObjective()
        copy.calcfc = PrimaObjectiveConstraints()
        return copy

    def __repr__(self) -> str:
        parts = [f"n={self.n}"]
        if self.has_bounds:
            parts.append("bounds")
        if self.m_ineq:
            parts.append(f"m_ineq={self.m_ineq}")
        if self.m_eq:
            parts.append(f"m_eq={self.m_eq}")
        if self.m_nlcon:
            parts.append(f"m_nlcon={self.m_nlcon}")
        if self._callback is not None:
            parts.append(self._callback.kind)
        return f"Problem({', '.join(parts)})"


def build_problem(n: int) -> Problem:
    """
    Build a fully initialized problem descriptor with ``n`` variables.

    A zeroed ``prima_problem_t`` is passed to ``prima_init_problem`` and
    only the initialized record is wrapped and returned.

    Args:
        n: Number of variables, must be a positive integer.

    Raises:
        ValidationError: If ``n`` is not a positive integer. The library
            is not touched in that case.
        LibraryError: If libprimac is unavailable or initialization fails.
    """
    _check_count(n, "n", minimum=1)
    placeholder = PrimaProblem()
    ffi.call_init_problem(placeholder, n)
    logger.debug("Problem descriptor initialized", extra={"n": n})
    return Problem(placeholder)


build_problem_descriptor = build_problem
