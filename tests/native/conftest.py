"""
Fixtures for tests that need a real libprimac.

The library is loaded once per session through the normal search order
(PRIMABRIDGE_LIBRARY first). When nothing loads, every test here skips.
"""

import pytest

from primabridge._bindings import load_library, set_lib
from primabridge.exceptions import LibraryError


@pytest.fixture(scope="session")
def native_handle():
    try:
        return load_library()
    except LibraryError as exc:
        pytest.skip(f"libprimac not available: {exc}")


@pytest.fixture(autouse=True)
def native_lib(native_handle):
    """Install the real library for the duration of each test."""
    previous = set_lib(native_handle)
    try:
        yield native_handle
    finally:
        set_lib(previous)
