"""
Enumerations shared with libprimac: algorithm selector, verbosity and
return codes.

Integer values match the PRIMA C header and must not be renumbered.
"""

from __future__ import annotations

from enum import IntEnum

from .exceptions import ValidationError

__all__ = [
    "Algorithm",
    "Verbosity",
    "ReturnCode",
    "describe_status",
    "coerce_status",
]


class Algorithm(IntEnum):
    """Solver selector passed to ``prima_minimize``."""

    UOBYQA = 0
    NEWUOA = 1
    BOBYQA = 2
    LINCOA = 3
    COBYLA = 4

    @classmethod
    def parse(cls, value: Algorithm | str | int) -> Algorithm:
        """Accept a member, its name (any case) or its integer value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValidationError(
                    f"Unknown algorithm {value!r}. "
                    f"Use one of: {', '.join(m.name.lower() for m in cls)}.",
                    details={"algorithm": value},
                ) from None
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Unknown algorithm selector {value!r}.",
                details={"algorithm": value},
            ) from None

    @property
    def uses_constraint_callback(self) -> bool:
        """Only COBYLA evaluates objective and nonlinear constraints together."""
        return self is Algorithm.COBYLA

    @property
    def supports_bounds(self) -> bool:
        return self in (Algorithm.BOBYQA, Algorithm.LINCOA, Algorithm.COBYLA)

    @property
    def supports_linear_constraints(self) -> bool:
        return self in (Algorithm.LINCOA, Algorithm.COBYLA)

    @property
    def supports_nonlinear_constraints(self) -> bool:
        return self is Algorithm.COBYLA


class Verbosity(IntEnum):
    """Native print level (``iprint``)."""

    NONE = 0
    EXIT = 1
    RHO = 2
    FEVL = 3


class ReturnCode(IntEnum):
    """Status codes reported by ``prima_minimize``."""

    SMALL_TR_RADIUS = 0
    FTARGET_ACHIEVED = 1
    TRSUBP_FAILED = 2
    MAXFUN_REACHED = 3
    MAXTR_REACHED = 20
    NAN_INF_X = -1
    NAN_INF_F = -2
    NAN_INF_MODEL = -3
    NO_SPACE_BETWEEN_BOUNDS = 6
    DAMAGING_ROUNDING = 7
    ZERO_LINEAR_CONSTRAINT = 8
    RC_DFT = 11
    CALLBACK_TERMINATE = 30
    INVALID_INPUT = 100
    ASSERTION_FAILS = 101
    VALIDATION_FAILS = 102
    MEMORY_ALLOCATION_FAILS = 103
    NULL_OPTIONS = 110
    NULL_PROBLEM = 111
    NULL_X0 = 112
    NULL_RESULT = 113
    NULL_FUNCTION = 114
    PROBLEM_SOLVER_MISMATCH_NONLINEAR_CONSTRAINTS = 115
    PROBLEM_SOLVER_MISMATCH_LINEAR_CONSTRAINTS = 116
    PROBLEM_SOLVER_MISMATCH_BOUNDS = 117

    @property
    def message(self) -> str:
        return _MESSAGES[self]

    @property
    def is_converged(self) -> bool:
        """Normal termination: the trust region shrank or ``ftarget`` was met."""
        return self in _CONVERGED

    @property
    def is_failure(self) -> bool:
        """Invalid input, non-finite values or an internal failure."""
        return self not in _CONVERGED and self not in _STOPPED


_MESSAGES = {
    ReturnCode.SMALL_TR_RADIUS: "Trust region radius reaches its lower bound",
    ReturnCode.FTARGET_ACHIEVED: "The target function value is reached",
    ReturnCode.TRSUBP_FAILED: "A trust region step failed to reduce the model",
    ReturnCode.MAXFUN_REACHED: "Maximum number of function evaluations reached",
    ReturnCode.MAXTR_REACHED: "Maximum number of trust region iterations reached",
    ReturnCode.NAN_INF_X: "The input X contains NaN of Inf",
    ReturnCode.NAN_INF_F: "The objective or constraint functions return NaN or +Inf",
    ReturnCode.NAN_INF_MODEL: "NaN or Inf occurs in the model",
    ReturnCode.NO_SPACE_BETWEEN_BOUNDS: "No space between bounds",
    ReturnCode.DAMAGING_ROUNDING: "Rounding errors are becoming damaging",
    ReturnCode.ZERO_LINEAR_CONSTRAINT: "One of the linear constraints has a zero gradient",
    ReturnCode.RC_DFT: "Default status (solver did not run)",
    ReturnCode.CALLBACK_TERMINATE: "Callback function requested termination of optimization",
    ReturnCode.INVALID_INPUT: "Invalid input",
    ReturnCode.ASSERTION_FAILS: "Assertion fails",
    ReturnCode.VALIDATION_FAILS: "Validation fails",
    ReturnCode.MEMORY_ALLOCATION_FAILS: "Memory allocation fails",
    ReturnCode.NULL_OPTIONS: "NULL options",
    ReturnCode.NULL_PROBLEM: "NULL problem",
    ReturnCode.NULL_X0: "NULL x0",
    ReturnCode.NULL_RESULT: "NULL result",
    ReturnCode.NULL_FUNCTION: "NULL function",
    ReturnCode.PROBLEM_SOLVER_MISMATCH_NONLINEAR_CONSTRAINTS: (
        "Nonlinear constraints were provided for an algorithm that cannot handle them"
    ),
    ReturnCode.PROBLEM_SOLVER_MISMATCH_LINEAR_CONSTRAINTS: (
        "Linear constraints were provided for an algorithm that cannot handle them"
    ),
    ReturnCode.PROBLEM_SOLVER_MISMATCH_BOUNDS: (
        "Bounds were provided for an algorithm that cannot handle them"
    ),
}

_CONVERGED = frozenset({ReturnCode.SMALL_TR_RADIUS, ReturnCode.FTARGET_ACHIEVED})

# Solver stopped without converging but the record is meaningful
_STOPPED = frozenset(
    {
        ReturnCode.TRSUBP_FAILED,
        ReturnCode.MAXFUN_REACHED,
        ReturnCode.MAXTR_REACHED,
        ReturnCode.DAMAGING_ROUNDING,
        ReturnCode.CALLBACK_TERMINATE,
    }
)

UNKNOWN_STATUS_MESSAGE = "Invalid return code"


def coerce_status(status: int) -> ReturnCode | int:
    """Return the ``ReturnCode`` member for *status*, or the raw int if unknown."""
    try:
        return ReturnCode(status)
    except ValueError:
        return int(status)


def describe_status(status: int) -> str:
    """Canonical message for a native status code."""
    code = coerce_status(status)
    if isinstance(code, ReturnCode):
        return code.message
    return UNKNOWN_STATUS_MESSAGE
