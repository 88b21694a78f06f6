"""
Shared test fixtures for primabridge.

``FakePrimaLibrary`` stands in for libprimac so the bridge can be
exercised end to end without a compiled solver.
"""

from .fake_prima import FakePrimaLibrary

__all__ = [
    "FakePrimaLibrary",
]
