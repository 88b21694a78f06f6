"""
Options descriptor builder.

``build_options()`` runs ``prima_init_options`` on a zeroed record, so a
fresh ``Options`` carries the library's own "use default" sentinels:
NaN for ``rhobeg``/``rhoend``/``ctol``, ``-inf`` for ``ftarget``, 0 for
``maxfun``/``npt``. Zero is a legitimate tuning value for several
fields and is never used to mean "unset".
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from . import _bindings as ffi
from ._logging import scoped_logger
from ._native import PrimaIterationCallback, PrimaOptions
from .callbacks import IterationCallback, IterationInfo
from .exceptions import ValidationError
from .types import Verbosity

__all__ = ["Options", "build_options", "build_options_descriptor", "UNSET"]

logger = scoped_logger("builder")

UNSET = math.nan

_SENTINEL_FIELDS = ("rhobeg", "rhoend", "ctol")

# Upper limit of the int fields (maxfun, npt)
C_INT_MAX = 2**31 - 1


def _check_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got bool", details={name: value})
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"{name} must be a number, got {value!r}", details={name: value}
        ) from None


def _check_int(value: Any, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(
            f"{name} must be a non-negative integer, got {value!r}", details={name: value}
        )
    if value > C_INT_MAX:
        raise ValidationError(
            f"{name} must fit in a C int (<= {C_INT_MAX}), got {value}", details={name: value}
        )
    return value


class Options:
    """
    Solver tuning parameters.

    Do not instantiate directly; use ``build_options()``.

    Attributes left alone keep the native defaults. Assign ``None`` to
    ``rhobeg``, ``rhoend`` or ``ctol`` to restore the "unset" sentinel.

    Example:
        >>> options = build_options()
        >>> options.rhoend = 1e-6
        >>> options.maxfun = 1000
        >>> options.iprint = Verbosity.EXIT
        >>> options.callback = lambda info: info.nf > 200
    """

    def __init__(self, c_options: PrimaOptions) -> None:
        self._c_options = c_options
        self._data: Any = None
        self._callback: IterationCallback | None = None

    @property
    def c_struct(self) -> PrimaOptions:
        """The underlying ``prima_options_t`` (``data``/``callback`` stay NULL until a solve)."""
        return self._c_options

    # -------------------------------------------------------------------------
    # Trust region and tolerances
    # -------------------------------------------------------------------------

    def _set_sentinel_field(self, name: str, value: float | None, *, positive: bool) -> None:
        if value is None:
            setattr(self._c_options, name, UNSET)
            return
        number = _check_float(value, name)
        if math.isnan(number):
            setattr(self._c_options, name, UNSET)
            return
        if positive and not number > 0:
            raise ValidationError(f"{name} must be positive, got {number}", details={name: number})
        if not positive and number < 0:
            raise ValidationError(
                f"{name} must be non-negative, got {number}", details={name: number}
            )
        setattr(self._c_options, name, number)

    @property
    def rhobeg(self) -> float:
        """Initial trust-region radius (NaN = solver default)."""
        return self._c_options.rhobeg

    @rhobeg.setter
    def rhobeg(self, value: float | None) -> None:
        self._set_sentinel_field("rhobeg", value, positive=True)

    @property
    def rhoend(self) -> float:
        """Final trust-region radius (NaN = solver default)."""
        return self._c_options.rhoend

    @rhoend.setter
    def rhoend(self, value: float | None) -> None:
        self._set_sentinel_field("rhoend", value, positive=True)

    @property
    def ctol(self) -> float:
        """Constraint violation tolerance (NaN = solver default). Zero is allowed."""
        return self._c_options.ctol

    @ctol.setter
    def ctol(self, value: float | None) -> None:
        self._set_sentinel_field("ctol", value, positive=False)

    @property
    def ftarget(self) -> float:
        """Stop once the objective reaches this value (``-inf`` = never)."""
        return self._c_options.ftarget

    @ftarget.setter
    def ftarget(self, value: float) -> None:
        self._c_options.ftarget = _check_float(value, "ftarget")

    def is_unset(self, name: str) -> bool:
        """True when *name* still holds its "let the solver choose" sentinel."""
        if name in _SENTINEL_FIELDS:
            return math.isnan(getattr(self._c_options, name))
        if name == "ftarget":
            return self._c_options.ftarget == -math.inf
        if name in ("maxfun", "npt"):
            return getattr(self._c_options, name) == 0
        raise ValidationError(f"Unknown option {name!r}", details={"name": name})

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    @property
    def maxfun(self) -> int:
        """Maximum function evaluations (0 = ``500 * n``)."""
        return self._c_options.maxfun

    @maxfun.setter
    def maxfun(self, value: int) -> None:
        self._c_options.maxfun = _check_int(value, "maxfun")

    @property
    def npt(self) -> int:
        """Interpolation points for NEWUOA/BOBYQA/LINCOA (0 = ``2 * n + 1``)."""
        return self._c_options.npt

    @npt.setter
    def npt(self, value: int) -> None:
        self._c_options.npt = _check_int(value, "npt")

    @property
    def iprint(self) -> Verbosity:
        """Native print level."""
        return Verbosity(self._c_options.iprint)

    @iprint.setter
    def iprint(self, value: Verbosity | int | str) -> None:
        try:
            if isinstance(value, str):
                level = Verbosity[value.strip().upper()]
            else:
                level = Verbosity(value)
        except (KeyError, ValueError):
            raise ValidationError(
                f"Unknown verbosity {value!r}. Use one of: "
                f"{', '.join(v.name.lower() for v in Verbosity)}.",
                details={"iprint": value},
            ) from None
        self._c_options.iprint = int(level)

    # -------------------------------------------------------------------------
    # User data and iteration callback
    # -------------------------------------------------------------------------

    @property
    def data(self) -> Any:
        """Object handed to the objective callbacks on every call."""
        return self._data

    @data.setter
    def data(self, value: Any) -> None:
        self._data = value

    @property
    def callback(self) -> IterationCallback | None:
        """Iteration callback; assign a callable ``fn(info) -> bool`` or None."""
        return self._callback

    @callback.setter
    def callback(
        self, fn: Callable[[IterationInfo], bool | None] | IterationCallback | None
    ) -> None:
        if fn is None or isinstance(fn, IterationCallback):
            self._callback = fn
        else:
            self._callback = IterationCallback(fn)

    # -------------------------------------------------------------------------
    # Solve-time copy
    # -------------------------------------------------------------------------

    def _by_value(self) -> PrimaOptions:
        """Raw copy of the descriptor for a by-value native call."""
        copy = PrimaOptions.from_buffer_copy(self._c_options)
        copy.data = None
        copy.callback = PrimaIterationCallback()
        return copy

    def __repr__(self) -> str:
        parts = []
        for name in ("rhobeg", "rhoend", "ctol"):
            if not self.is_unset(name):
                parts.append(f"{name}={getattr(self, name):g}")
        if not self.is_unset("ftarget"):
            parts.append(f"ftarget={self.ftarget:g}")
        if self.maxfun:
            parts.append(f"maxfun={self.maxfun}")
        if self.npt:
            parts.append(f"npt={self.npt}")
        if self.iprint is not Verbosity.NONE:
            parts.append(f"iprint={self.iprint.name.lower()}")
        if self._callback is not None:
            parts.append("callback")
        return f"Options({', '.join(parts)})"


def build_options() -> Options:
    """
    Build a fully initialized options descriptor.

    A zeroed ``prima_options_t`` is passed to ``prima_init_options``;
    every tuning field comes back at its "use default" sentinel.

    Raises:
        LibraryError: If libprimac is unavailable or initialization fails.
    """
    placeholder = PrimaOptions()
    ffi.call_init_options(placeholder)
    logger.debug("Options descriptor initialized")
    return Options(placeholder)


build_options_descriptor = build_options
