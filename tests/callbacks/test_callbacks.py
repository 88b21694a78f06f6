"""
Tests for primabridge.callbacks.

The trampolines are invoked through their C function pointers, exactly
as the solver would call them.
"""

import ctypes
import math

import pytest

from primabridge.callbacks import (
    CallbackSession,
    IterationCallback,
    ObjectiveCallback,
    ObjectiveConstraintsCallback,
)
from primabridge.exceptions import CallbackError, StateError, ValidationError


def _doubles(*values):
    return (ctypes.c_double * len(values))(*values)


def _call_objective(c_fn, x, data=None):
    f = ctypes.c_double(math.nan)
    c_fn(_doubles(*x), ctypes.byref(f), data)
    return f.value


def _call_objective_constraints(c_fn, x, m, data=None):
    f = ctypes.c_double(math.nan)
    constr = (ctypes.c_double * m)()
    c_fn(_doubles(*x), ctypes.byref(f), constr, data)
    return f.value, list(constr)


def _call_iteration(c_fn, x, f=1.0, nf=1, tr=0, cstrv=0.0, nlconstr=()):
    terminate = ctypes.c_bool(False)
    c_nl = _doubles(*nlconstr) if nlconstr else None
    c_fn(len(x), _doubles(*x), f, nf, tr, cstrv, len(nlconstr), c_nl, ctypes.byref(terminate))
    return terminate.value


class TestCallbackShapes:
    """Tests for the user-facing callback wrappers."""

    def test_objective_requires_callable(self):
        """Non-callables are rejected."""
        with pytest.raises(ValidationError):
            ObjectiveCallback(42)

    def test_objective_evaluate(self):
        """evaluate() returns the value and no constraints."""
        callback = ObjectiveCallback(lambda x, data: sum(x))

        assert callback.evaluate([1.0, 2.0], None) == (3.0, [])

    def test_constraints_count_validated(self):
        """m_nlcon must be a non-negative integer."""
        with pytest.raises(ValidationError):
            ObjectiveConstraintsCallback(lambda x, data: (0.0, []), -1)
        with pytest.raises(ValidationError):
            ObjectiveConstraintsCallback(lambda x, data: (0.0, []), 1.5)

    def test_constraints_wrong_length(self):
        """Returning the wrong number of constraints raises ValidationError."""
        callback = ObjectiveConstraintsCallback(lambda x, data: (0.0, [1.0, 2.0]), 1)

        with pytest.raises(ValidationError) as exc_info:
            callback.evaluate([0.0], None)

        assert exc_info.value.details == {"expected": 1, "got": 2}

    def test_constraints_wrong_shape(self):
        """Returning a bare float raises ValidationError."""
        callback = ObjectiveConstraintsCallback(lambda x, data: 1.0, 1)

        with pytest.raises(ValidationError):
            callback.evaluate([0.0], None)


class TestObjectiveTrampoline:
    """Tests for the calfun trampoline."""

    def test_writes_objective(self):
        """The value returned by the user function is written to *f."""
        session = CallbackSession(2)
        c_fn = session.bind_objective(ObjectiveCallback(lambda x, data: x[0] * 10 + x[1]))

        assert _call_objective(c_fn, [1.0, 2.0]) == 12.0

    def test_view_has_problem_length(self):
        """The point is exposed with exactly n elements."""
        seen = []

        def fn(x, data):
            seen.append(len(x))
            return 0.0

        session = CallbackSession(3)
        _call_objective(session.bind_objective(ObjectiveCallback(fn)), [1.0, 2.0, 3.0])

        assert seen == [3]

    def test_view_expires_after_call(self):
        """Keeping the point past the call is detected."""
        kept = []

        def fn(x, data):
            kept.append(x)
            return 0.0

        session = CallbackSession(1)
        _call_objective(session.bind_objective(ObjectiveCallback(fn)), [1.0])

        with pytest.raises(StateError):
            kept[0][0]

    def test_user_data_round_trip(self):
        """The data object arrives unchanged through the void* argument."""
        payload = {"calls": 0}

        def fn(x, data):
            data["calls"] += 1
            return 0.0

        session = CallbackSession(1, payload)
        c_fn = session.bind_objective(ObjectiveCallback(fn))
        _call_objective(c_fn, [0.0], session.data_pointer)
        _call_objective(c_fn, [0.0], session.data_pointer)

        assert payload["calls"] == 2

    def test_null_data_is_none(self):
        """Without data the callback receives None."""
        seen = []
        session = CallbackSession(1)

        assert session.data_pointer is None

        c_fn = session.bind_objective(ObjectiveCallback(lambda x, data: seen.append(data) or 0.0))
        _call_objective(c_fn, [0.0], session.data_pointer)

        assert seen == [None]

    def test_exception_is_recorded_not_raised(self):
        """An exception inside the callback never reaches ctypes."""
        session = CallbackSession(1)
        c_fn = session.bind_objective(ObjectiveCallback(lambda x, data: 1 / 0))

        value = _call_objective(c_fn, [0.0])

        assert math.isnan(value)
        assert isinstance(session.error, ZeroDivisionError)
        assert session.error_source == "objective"

    def test_calls_after_error_short_circuit(self):
        """After the first error the user function is not called again."""
        calls = []

        def fn(x, data):
            calls.append(1)
            raise ValueError("bad")

        session = CallbackSession(1)
        c_fn = session.bind_objective(ObjectiveCallback(fn))
        _call_objective(c_fn, [0.0])
        value = _call_objective(c_fn, [0.0])

        assert len(calls) == 1
        assert math.isnan(value)

    def test_raise_pending_chains_original(self):
        """raise_pending() raises CallbackError from the recorded exception."""
        session = CallbackSession(1)
        _call_objective(session.bind_objective(ObjectiveCallback(lambda x, data: 1 / 0)), [0.0])

        with pytest.raises(CallbackError) as exc_info:
            session.raise_pending()

        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_raise_pending_keyboard_interrupt(self):
        """KeyboardInterrupt is re-raised as itself, not wrapped."""
        session = CallbackSession(1)

        def interrupt(x, data):
            raise KeyboardInterrupt

        _call_objective(session.bind_objective(ObjectiveCallback(interrupt)), [0.0])

        with pytest.raises(KeyboardInterrupt):
            session.raise_pending()

    def test_raise_pending_without_error(self):
        """raise_pending() is a no-op when nothing failed."""
        CallbackSession(1).raise_pending()


class TestObjectiveConstraintsTrampoline:
    """Tests for the calcfc trampoline."""

    def test_writes_objective_and_constraints(self):
        """Both outputs are written through bounds-checked views."""
        session = CallbackSession(2)
        callback = ObjectiveConstraintsCallback(
            lambda x, data: (x[0] + x[1], [x[0] - 1.0, x[1] - 2.0]), 2
        )

        f, constr = _call_objective_constraints(
            session.bind_objective_constraints(callback), [3.0, 4.0], 2
        )

        assert f == 7.0
        assert constr == [2.0, 2.0]

    def test_wrong_constraint_count_recorded(self):
        """A wrong-length constraint list is recorded as the session error."""
        session = CallbackSession(1)
        callback = ObjectiveConstraintsCallback(lambda x, data: (0.0, []), 1)

        f, constr = _call_objective_constraints(
            session.bind_objective_constraints(callback), [0.0], 1
        )

        assert isinstance(session.error, ValidationError)
        assert math.isnan(f)
        assert math.isnan(constr[0])


class TestIterationTrampoline:
    """Tests for the progress callback trampoline."""

    def test_no_callback_never_terminates(self):
        """Without a user callback the trampoline lets the solver continue."""
        session = CallbackSession(2)

        assert _call_iteration(session.bind_iteration(None), [0.0, 0.0]) is False

    def test_truthy_return_terminates(self):
        """Returning True sets *terminate."""
        session = CallbackSession(1)
        c_fn = session.bind_iteration(IterationCallback(lambda info: True))

        assert _call_iteration(c_fn, [0.0]) is True

    def test_none_return_continues(self):
        """Returning None keeps the solve running."""
        session = CallbackSession(1)
        c_fn = session.bind_iteration(IterationCallback(lambda info: None))

        assert _call_iteration(c_fn, [0.0]) is False

    def test_info_fields(self):
        """IterationInfo carries every argument of the C callback."""
        seen = []

        def fn(info):
            seen.append((info.n, info.x.tolist(), info.f, info.nf, info.tr, info.cstrv,
                         info.nlconstr.tolist(), info.data))

        session = CallbackSession(2, "payload")
        c_fn = session.bind_iteration(IterationCallback(fn))
        _call_iteration(c_fn, [1.0, 2.0], f=3.0, nf=4, tr=5, cstrv=0.5, nlconstr=(-1.0,))

        assert seen == [(2, [1.0, 2.0], 3.0, 4, 5, 0.5, [-1.0], "payload")]

    def test_per_call_n_is_authoritative(self):
        """The view is sized by the n passed on each call."""
        lengths = []
        session = CallbackSession(3)
        c_fn = session.bind_iteration(IterationCallback(lambda info: lengths.append(len(info.x))))

        _call_iteration(c_fn, [1.0, 2.0])

        assert lengths == [2]

    def test_info_views_expire(self):
        """Views inside IterationInfo are invalid once the callback returns."""
        kept = []
        session = CallbackSession(1)
        c_fn = session.bind_iteration(IterationCallback(kept.append))
        _call_iteration(c_fn, [1.0])

        with pytest.raises(StateError):
            kept[0].x.tolist()

    def test_recorded_error_terminates(self):
        """After an objective error, the iteration trampoline stops the solve."""
        session = CallbackSession(1)
        _call_objective(session.bind_objective(ObjectiveCallback(lambda x, data: 1 / 0)), [0.0])

        assert _call_iteration(session.bind_iteration(None), [0.0]) is True

    def test_iteration_callback_error_terminates(self):
        """An exception in the iteration callback is recorded and stops the solve."""
        session = CallbackSession(1)

        def fn(info):
            raise KeyError("x")

        assert _call_iteration(session.bind_iteration(IterationCallback(fn)), [0.0]) is True
        assert isinstance(session.error, KeyError)
        assert session.error_source == "iteration"

    def test_sessions_are_independent(self):
        """An error in one session does not leak into another."""
        failing = CallbackSession(1)
        _call_objective(failing.bind_objective(ObjectiveCallback(lambda x, data: 1 / 0)), [0.0])
        healthy = CallbackSession(1)

        assert healthy.error is None
        assert _call_iteration(healthy.bind_iteration(None), [0.0]) is False
