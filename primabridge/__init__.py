"""
primabridge - Derivative-free optimization with PRIMA from Python.

primabridge drives the PRIMA solvers (UOBYQA, NEWUOA, BOBYQA, LINCOA,
COBYLA) through their C interface, ``libprimac``. The bridge itself
needs nothing beyond the standard library.

Quick Start
-----------

Unconstrained:

    >>> from primabridge import build_problem, minimize
    >>>
    >>> problem = build_problem(2)
    >>> problem.x0 = [0.0, 0.0]
    >>> problem.set_objective(lambda x, data: (x[0] - 5) ** 2 + (x[1] - 4) ** 2)
    >>> with minimize("newuoa", problem) as result:
    ...     print(result.x.tolist(), result.f)

Nonlinear constraints (COBYLA, ``c(x) <= 0`` is feasible):

    >>> def fun(x, data):
    ...     return (x[0] - 5) ** 2 + (x[1] - 4) ** 2, [x[0] ** 2 - 9]
    >>>
    >>> problem.set_objective_constraints(fun, m_nlcon=1)
    >>> with minimize("cobyla", problem) as result:
    ...     print(result.x.tolist(), result.cstrv)

Tuning and progress:

    >>> from primabridge import build_options
    >>>
    >>> options = build_options()
    >>> options.rhoend = 1e-8
    >>> options.maxfun = 2000
    >>> options.callback = lambda info: print(info.nf, info.f)


Core Objects
------------

- `build_problem` / `Problem` - starting point, bounds, constraints, objective
- `build_options` / `Options` - trust-region radii, budgets, callbacks
- `minimize` - run a solver, returns an owning `Result`
- `Result` - solver output; release with ``close()`` or ``with``


Choosing an Algorithm
---------------------

- UOBYQA, NEWUOA: unconstrained
- BOBYQA: bound constraints
- LINCOA: bounds and linear constraints
- COBYLA: bounds, linear and nonlinear constraints

Locating libprimac
------------------

Set ``PRIMABRIDGE_LIBRARY`` to the shared library path, ship it next to
the package, or install it where the system loader finds it.
"""

from primabridge._logging import setup_logging as setup_logging
from primabridge._version import __version__ as __version__

# Callbacks
from primabridge.callbacks import (
    IterationCallback as IterationCallback,
)
from primabridge.callbacks import (
    IterationInfo as IterationInfo,
)
from primabridge.callbacks import (
    ObjectiveCallback as ObjectiveCallback,
)
from primabridge.callbacks import (
    ObjectiveConstraintsCallback as ObjectiveConstraintsCallback,
)

# Exceptions (all via primabridge.exceptions)
from primabridge.exceptions import (
    CallbackError as CallbackError,
)
from primabridge.exceptions import (
    InteropError as InteropError,
)
from primabridge.exceptions import (
    LibraryError as LibraryError,
)
from primabridge.exceptions import (
    PrimaError,
)
from primabridge.exceptions import (
    SolveError as SolveError,
)
from primabridge.exceptions import (
    StateError as StateError,
)
from primabridge.exceptions import (
    ValidationError as ValidationError,
)

# Solve
from primabridge.minimize import minimize
from primabridge.options import Options, build_options
from primabridge.options import build_options_descriptor as build_options_descriptor
from primabridge.problem import Problem, build_problem
from primabridge.problem import build_problem_descriptor as build_problem_descriptor
from primabridge.result import Result, Solution

# Types
from primabridge.types import Algorithm, ReturnCode, Verbosity
from primabridge.types import describe_status as describe_status
from primabridge.views import BufferView

# =============================================================================
# Public API
# =============================================================================
#
# Comments group the exports into documentation sections. Other symbols
# remain importable via submodules (e.g., from primabridge.views import borrow).
#
__all__ = [
    # Solve
    "minimize",
    "build_problem",
    "Problem",
    "build_options",
    "Options",
    "Result",
    "Solution",
    # Types
    "Algorithm",
    "Verbosity",
    "ReturnCode",
    "BufferView",
    # Exceptions
    "PrimaError",
]
