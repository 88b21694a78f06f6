"""
Tests for ctypes layouts and argtypes/restype configuration.

The descriptors are passed to prima_minimize by value. A field out of
order, or a missing argtypes entry, silently corrupts the copy the
solver sees instead of failing loudly.
"""

import ctypes
from types import SimpleNamespace

import pytest

from primabridge._native import (
    PrimaIterationCallback,
    PrimaObjective,
    PrimaObjectiveConstraints,
    PrimaOptions,
    PrimaProblem,
    PrimaResult,
    setup_signatures,
)

_double_p = ctypes.POINTER(ctypes.c_double)


def _dummy_lib():
    return SimpleNamespace(
        prima_init_problem=SimpleNamespace(),
        prima_init_options=SimpleNamespace(),
        prima_minimize=SimpleNamespace(),
        prima_free_result=SimpleNamespace(),
        prima_get_rc_string=SimpleNamespace(),
    )


class TestStructLayouts:
    """Field order and types match prima.h."""

    def test_problem_fields(self):
        """prima_problem_t field order."""
        assert [name for name, _ in PrimaProblem._fields_] == [
            "n",
            "calfun",
            "calcfc",
            "x0",
            "xl",
            "xu",
            "m_ineq",
            "Aineq",
            "bineq",
            "m_eq",
            "Aeq",
            "beq",
            "m_nlcon",
            "f0",
            "nlconstr0",
        ]

    def test_problem_callback_types(self):
        """Callback slots use the objective prototypes."""
        fields = dict(PrimaProblem._fields_)
        assert fields["calfun"] is PrimaObjective
        assert fields["calcfc"] is PrimaObjectiveConstraints
        assert fields["f0"] is ctypes.c_double

    def test_options_fields(self):
        """prima_options_t field order, including ctol."""
        assert [name for name, _ in PrimaOptions._fields_] == [
            "rhobeg",
            "rhoend",
            "maxfun",
            "iprint",
            "ftarget",
            "npt",
            "ctol",
            "data",
            "callback",
        ]
        assert dict(PrimaOptions._fields_)["callback"] is PrimaIterationCallback

    def test_result_fields(self):
        """prima_result_t field order."""
        assert [name for name, _ in PrimaResult._fields_] == [
            "x",
            "f",
            "cstrv",
            "nlconstr",
            "nf",
            "status",
            "success",
            "message",
        ]

    def test_zeroed_records(self):
        """A fresh record is all zeros and NULL pointers."""
        problem = PrimaProblem()
        assert problem.n == 0
        assert not problem.x0
        assert not problem.calfun
        result = PrimaResult()
        assert not result.x
        assert result.message is None


class TestCallbackPrototypes:
    """Function pointer prototypes match the C typedefs."""

    def test_objective(self):
        """calfun(x, f, data) returns void."""
        assert PrimaObjective._restype_ is None
        assert PrimaObjective._argtypes_ == (_double_p, _double_p, ctypes.c_void_p)

    def test_objective_constraints(self):
        """calcfc(x, f, constr, data) returns void."""
        assert PrimaObjectiveConstraints._restype_ is None
        assert PrimaObjectiveConstraints._argtypes_ == (
            _double_p,
            _double_p,
            _double_p,
            ctypes.c_void_p,
        )

    def test_iteration(self):
        """callback(n, x, f, nf, tr, cstrv, m_nlcon, nlconstr, terminate)."""
        assert PrimaIterationCallback._restype_ is None
        assert len(PrimaIterationCallback._argtypes_) == 9
        assert PrimaIterationCallback._argtypes_[-1] == ctypes.POINTER(ctypes.c_bool)


class TestSignatures:
    """setup_signatures() configures every entry point."""

    def test_every_entry_point_configured(self):
        """All five entry points get argtypes and restype."""
        lib = _dummy_lib()
        setup_signatures(lib)

        for name in vars(lib):
            func = getattr(lib, name)
            assert func.argtypes is not None, name
            assert func.restype is not None, name

    def test_minimize_takes_descriptors_by_value(self):
        """prima_minimize receives problem and options by value."""
        lib = _dummy_lib()
        setup_signatures(lib)

        assert lib.prima_minimize.argtypes == [
            ctypes.c_int,
            PrimaProblem,
            PrimaOptions,
            ctypes.POINTER(PrimaResult),
        ]
        assert lib.prima_minimize.restype == ctypes.c_int

    def test_init_takes_pointers(self):
        """The init functions fill records in place."""
        lib = _dummy_lib()
        setup_signatures(lib)

        assert lib.prima_init_problem.argtypes == [ctypes.POINTER(PrimaProblem), ctypes.c_int]
        assert lib.prima_init_options.argtypes == [ctypes.POINTER(PrimaOptions)]
        assert lib.prima_free_result.argtypes == [ctypes.POINTER(PrimaResult)]

    def test_rc_string_returns_bytes(self):
        """prima_get_rc_string returns a C string."""
        lib = _dummy_lib()
        setup_signatures(lib)

        assert lib.prima_get_rc_string.restype == ctypes.c_char_p

    def test_missing_entry_point(self):
        """A library without an entry point raises AttributeError."""
        lib = _dummy_lib()
        del lib.prima_minimize

        with pytest.raises(AttributeError):
            setup_signatures(lib)
