"""
ctypes layouts for the PRIMA C interface (prima/prima.h).

Field order and types mirror the C header exactly. Do not reorder.
"""

import ctypes

__all__ = [
    "PrimaObjective",
    "PrimaObjectiveConstraints",
    "PrimaIterationCallback",
    "PrimaProblem",
    "PrimaOptions",
    "PrimaResult",
    "setup_signatures",
]

_double_p = ctypes.POINTER(ctypes.c_double)

# =============================================================================
# Callback Types
# =============================================================================

# void calfun(const double x[], double *f, const void *data)
PrimaObjective = ctypes.CFUNCTYPE(None, _double_p, _double_p, ctypes.c_void_p)

# void calcfc(const double x[], double *f, double constr[], const void *data)
PrimaObjectiveConstraints = ctypes.CFUNCTYPE(
    None, _double_p, _double_p, _double_p, ctypes.c_void_p
)

# void callback(int n, const double x[], double f, int nf, int tr, double cstrv,
#               int m_nlcon, const double nlconstr[], bool *terminate)
PrimaIterationCallback = ctypes.CFUNCTYPE(
    None,
    ctypes.c_int,
    _double_p,
    ctypes.c_double,
    ctypes.c_int,
    ctypes.c_int,
    ctypes.c_double,
    ctypes.c_int,
    _double_p,
    ctypes.POINTER(ctypes.c_bool),
)

# =============================================================================
# Structs
# =============================================================================


class PrimaProblem(ctypes.Structure):
    """prima_problem_t"""

    _fields_ = [
        ("n", ctypes.c_int),
        ("calfun", PrimaObjective),
        ("calcfc", PrimaObjectiveConstraints),
        ("x0", _double_p),
        ("xl", _double_p),
        ("xu", _double_p),
        ("m_ineq", ctypes.c_int),
        ("Aineq", _double_p),
        ("bineq", _double_p),
        ("m_eq", ctypes.c_int),
        ("Aeq", _double_p),
        ("beq", _double_p),
        ("m_nlcon", ctypes.c_int),
        ("f0", ctypes.c_double),
        ("nlconstr0", _double_p),
    ]


class PrimaOptions(ctypes.Structure):
    """prima_options_t"""

    _fields_ = [
        ("rhobeg", ctypes.c_double),
        ("rhoend", ctypes.c_double),
        ("maxfun", ctypes.c_int),
        ("iprint", ctypes.c_int),
        ("ftarget", ctypes.c_double),
        ("npt", ctypes.c_int),
        ("ctol", ctypes.c_double),
        ("data", ctypes.c_void_p),
        ("callback", PrimaIterationCallback),
    ]


class PrimaResult(ctypes.Structure):
    """prima_result_t"""

    _fields_ = [
        ("x", _double_p),
        ("f", ctypes.c_double),
        ("cstrv", ctypes.c_double),
        ("nlconstr", _double_p),
        ("nf", ctypes.c_int),
        ("status", ctypes.c_int),
        ("success", ctypes.c_bool),
        ("message", ctypes.c_char_p),
    ]


# =============================================================================
# Signatures
# =============================================================================

_SIGNATURES = {
    "prima_init_problem": ([ctypes.POINTER(PrimaProblem), ctypes.c_int], ctypes.c_int),
    "prima_init_options": ([ctypes.POINTER(PrimaOptions)], ctypes.c_int),
    "prima_minimize": (
        [ctypes.c_int, PrimaProblem, PrimaOptions, ctypes.POINTER(PrimaResult)],
        ctypes.c_int,
    ),
    "prima_free_result": ([ctypes.POINTER(PrimaResult)], ctypes.c_int),
    "prima_get_rc_string": ([ctypes.c_int], ctypes.c_char_p),
}


def setup_signatures(lib) -> None:
    """Configure ``argtypes``/``restype`` for every entry point the bridge calls.

    Missing argtypes let ctypes pass structs and pointers with default
    int conversion, which corrupts by-value descriptors.
    """
    for name, (argtypes, restype) in _SIGNATURES.items():
        func = getattr(lib, name)
        func.argtypes = argtypes
        func.restype = restype
