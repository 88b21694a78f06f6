"""
Global pytest fixtures for primabridge tests.

This module provides:
- Fault handling for native crashes
- The in-process libprimac stand-in, installed per test
- Problem helpers for the quadratic test objective

=============================================================================
Skip Policy
=============================================================================

Tests under tests/native/ need a real libprimac. They skip when none can
be loaded (set PRIMABRIDGE_LIBRARY to point at one). Everything else
runs against tests/fixtures/fake_prima.py and never skips.
"""

import faulthandler

import pytest

from primabridge._bindings import set_lib
from tests.fixtures import FakePrimaLibrary

# Enable faulthandler to trace native crashes (segfaults)
faulthandler.enable()


# =============================================================================
# Library Fixtures
# =============================================================================


@pytest.fixture
def fake_lib():
    """
    Install a fresh FakePrimaLibrary as the cached library handle.

    The previous handle is restored afterwards so tests stay independent.
    """
    lib = FakePrimaLibrary()
    previous = set_lib(lib)
    try:
        yield lib
    finally:
        set_lib(previous)


# =============================================================================
# Problem Fixtures
# =============================================================================


def quadratic(x, data):
    """(x1 - 5)^2 + (x2 - 4)^2, minimum 0 at (5, 4)."""
    return (x[0] - 5.0) ** 2 + (x[1] - 4.0) ** 2


def quadratic_with_circle(x, data):
    """The quadratic objective plus the constraint x1^2 - 9 <= 0."""
    return quadratic(x, data), [x[0] ** 2 - 9.0]


@pytest.fixture
def unconstrained_problem(fake_lib):
    """Two-variable problem with the quadratic objective, starting at (0, 0)."""
    from primabridge import build_problem

    problem = build_problem(2)
    problem.x0 = [0.0, 0.0]
    problem.set_objective(quadratic)
    return problem


@pytest.fixture
def constrained_problem(fake_lib):
    """The quadratic objective with x1^2 - 9 <= 0, starting at (0, 0)."""
    from primabridge import build_problem

    problem = build_problem(2)
    problem.x0 = [0.0, 0.0]
    problem.set_objective_constraints(quadratic_with_circle, m_nlcon=1)
    return problem
