"""
The ``minimize`` entry point.

One call validates the problem against the chosen algorithm, binds the
callbacks for this solve only, passes both descriptors to
``prima_minimize`` by value and hands back an owning ``Result``.
"""

from __future__ import annotations

import math
from typing import Any

from . import _bindings as ffi
from ._logging import scoped_logger
from ._native import PrimaResult
from .callbacks import CallbackSession, ObjectiveCallback, ObjectiveConstraintsCallback
from .exceptions import CallbackError, ValidationError
from .options import Options, build_options
from .problem import Problem
from .result import Result
from .types import Algorithm, ReturnCode
from .views import as_c_array, as_pointer

__all__ = ["minimize"]

logger = scoped_logger("minimize")


def _validate(algorithm: Algorithm, problem: Problem) -> None:
    name = algorithm.name.lower()
    details: dict[str, Any] = {"algorithm": name}

    if problem.x0 is None:
        raise ValidationError("x0 must be set before solving", code="MISSING_X0", details=details)

    callback = problem.callback
    if callback is None:
        raise ValidationError(
            "No objective attached. Use set_objective() or set_objective_constraints().",
            code="MISSING_CALLBACK",
            details=details,
        )
    if algorithm.uses_constraint_callback:
        if not isinstance(callback, ObjectiveConstraintsCallback):
            raise ValidationError(
                f"{name} requires an objective+constraints callback "
                "(set_objective_constraints)",
                code="CALLBACK_MISMATCH",
                details=details,
            )
    elif not isinstance(callback, ObjectiveCallback):
        raise ValidationError(
            f"{name} requires an objective-only callback (set_objective)",
            code="CALLBACK_MISMATCH",
            details=details,
        )

    if problem.has_bounds and not algorithm.supports_bounds:
        raise ValidationError(
            f"{name} cannot handle bounds", code="UNSUPPORTED_BOUNDS", details=details
        )
    if problem.has_linear_constraints and not algorithm.supports_linear_constraints:
        raise ValidationError(
            f"{name} cannot handle linear constraints",
            code="UNSUPPORTED_LINEAR_CONSTRAINTS",
            details=details,
        )
    if problem.m_nlcon > 0 and not algorithm.supports_nonlinear_constraints:
        raise ValidationError(
            f"{name} cannot handle nonlinear constraints",
            code="UNSUPPORTED_NONLINEAR_CONSTRAINTS",
            details=details,
        )


def minimize(
    algorithm: Algorithm | str | int,
    problem: Problem,
    options: Options | None = None,
) -> Result:
    """
    Solve *problem* with *algorithm*.

    Args:
        algorithm: ``Algorithm`` member, its name (``"cobyla"``) or value.
        problem: Descriptor from ``build_problem``. It is not modified.
        options: Descriptor from ``build_options``; library defaults when None.

    Returns:
        An open ``Result``. Release it with ``close()`` or a ``with`` block.
        Converged and stopped-early solves (evaluation budget, callback
        termination, ...) both return normally; check ``result.success``.

    Raises:
        ValidationError: The problem does not fit the algorithm. Raised
            before the library is called.
        CallbackError: A user callback raised. The result is released.
        SolveError: The solver reported a failure status. ``err.result``
            holds the still-open record.
        LibraryError: libprimac is unavailable.

    Example:
        >>> problem = build_problem(2)
        >>> problem.x0 = [0.0, 0.0]
        >>> problem.set_objective(lambda x, data: (x[0] - 5) ** 2 + (x[1] - 4) ** 2)
        >>> with minimize("newuoa", problem) as result:
        ...     print(result.x.tolist())
    """
    algorithm = Algorithm.parse(algorithm)
    if not isinstance(problem, Problem):
        raise ValidationError(
            f"problem must be built with build_problem(), got {type(problem).__name__}"
        )
    if options is None:
        options = build_options()
    elif not isinstance(options, Options):
        raise ValidationError(
            f"options must be built with build_options(), got {type(options).__name__}"
        )
    _validate(algorithm, problem)

    lib = ffi.get_lib()
    session = CallbackSession(problem.n, options.data)

    c_problem = problem._by_value()
    nlconstr0 = None
    callback = problem.callback
    if isinstance(callback, ObjectiveConstraintsCallback):
        c_problem.calcfc = session.bind_objective_constraints(callback)
        if problem.needs_initial_values:
            try:
                f0, constraints = problem.initial_values(options.data)
            except Exception as exc:
                raise CallbackError(
                    f"objective_constraints callback raised {type(exc).__name__} at x0: {exc}",
                    details={"callback": callback.kind},
                ) from exc
            c_problem.f0 = f0
            nlconstr0 = as_c_array(constraints, problem.m_nlcon, "nlconstr0")
            c_problem.nlconstr0 = as_pointer(nlconstr0)
            logger.debug("Pre-evaluated initial point", extra={"f0": f0})
    else:
        c_problem.calfun = session.bind_objective(callback)

    c_options = options._by_value()
    c_options.data = session.data_pointer
    c_options.callback = session.bind_iteration(options.callback)

    c_result = PrimaResult()
    logger.info(
        "Solve started",
        extra={"algorithm": algorithm.name.lower(), "n": problem.n, "m_nlcon": problem.m_nlcon},
    )
    status = ffi.call_minimize(lib, algorithm, c_problem, c_options, c_result)
    result = Result(c_result, n=problem.n, m_nlcon=problem.m_nlcon, lib=lib, status=status)

    if session.error is not None:
        result.close()
        session.raise_pending()

    ffi.check_status(status, result)
    logger.info(
        "Solve finished",
        extra={
            "algorithm": algorithm.name.lower(),
            "status": ReturnCode(status).name,
            "nf": result.nf,
            "f": result.f if not math.isnan(result.f) else None,
        },
    )
    return result
