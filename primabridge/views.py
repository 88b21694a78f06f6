"""
Bounds-checked views over ``double`` buffers crossing the boundary.

Native code hands the bridge bare ``double*`` pointers whose length is
known only from context (the variable count, the constraint count).
Every such pair is wrapped in a ``BufferView`` at the point it enters
Python, and nothing past that point touches the raw pointer.

Lifetime Contract:
- Views created with ``borrow()`` are valid only inside the ``with``
  block; the trampolines in callbacks.py close that block before
  returning to native code.
- Views handed out by ``Result`` are invalidated when the result is
  released.
- Any access to an invalidated view raises ``StateError``. Copy with
  ``tolist()`` (or ``numpy.array(view)``) to keep data.

Input arrays go the other way through ``as_c_array`` / ``as_c_matrix``,
which copy caller data into ctypes arrays the caller-side descriptor
then owns.
"""

from __future__ import annotations

import ctypes
import operator
import sys
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, overload

from .exceptions import InteropError, StateError, ValidationError

__all__ = ["BufferView", "borrow", "as_c_array", "as_c_matrix", "as_pointer"]

_double_p = ctypes.POINTER(ctypes.c_double)
_TYPESTR = "<f8" if sys.byteorder == "little" else ">f8"

# Backing storage for the array interface of zero-length views
_EMPTY = (ctypes.c_double * 1)()


class BufferView(Sequence[float]):
    """
    Sequence of floats over a native ``double`` buffer of known length.

    Integer indexing is bounds-checked and supports negative indices.
    Slicing returns a list copy. NumPy can read the memory directly
    through ``__array_interface__``::

        >>> arr = np.asarray(view)       # zero-copy, valid while the view is
        >>> kept = np.array(view)        # copy, valid forever

    Args:
        ptr: ``POINTER(c_double)`` (or anything castable to it). May be
            NULL only when ``length`` is 0.
        length: Number of elements.
        writable: Allow ``view[i] = v`` and ``fill()``.
    """

    __slots__ = ("_ptr", "_length", "_writable", "_valid", "__weakref__")

    def __init__(self, ptr: Any, length: int, *, writable: bool = False) -> None:
        length = operator.index(length)
        if length < 0:
            raise ValidationError(
                f"Buffer length must be non-negative, got {length}",
                details={"length": length},
            )
        if not ptr:
            if length > 0:
                raise InteropError(
                    f"NULL buffer with length {length}",
                    code="NULL_BUFFER",
                    details={"length": length},
                )
            self._ptr = None
        else:
            self._ptr = ctypes.cast(ptr, _double_p)
        self._length = length
        self._writable = writable
        self._valid = True

    def _check_valid(self) -> None:
        if not self._valid:
            raise StateError(
                "Buffer view has expired. Views passed to callbacks are valid only "
                "during the call, and result views only until the result is released; "
                "copy with tolist() to retain data.",
                code="VIEW_EXPIRED",
            )

    def _invalidate(self) -> None:
        self._valid = False
        self._ptr = None

    @property
    def valid(self) -> bool:
        """False once the lending call returned or the owner was released."""
        return self._valid

    @property
    def writable(self) -> bool:
        return self._writable

    def __len__(self) -> int:
        self._check_valid()
        return self._length

    @overload
    def __getitem__(self, idx: int) -> float: ...

    @overload
    def __getitem__(self, idx: slice) -> list[float]: ...

    def __getitem__(self, idx: int | slice) -> float | list[float]:
        self._check_valid()
        if isinstance(idx, slice):
            return [self._ptr[i] for i in range(*idx.indices(self._length))]
        i = self._normalize(idx)
        return self._ptr[i]

    def __setitem__(self, idx: int, value: float) -> None:
        self._check_valid()
        self._check_writable()
        i = self._normalize(idx)
        self._ptr[i] = float(value)

    def _normalize(self, idx: Any) -> int:
        i = operator.index(idx)
        if i < 0:
            i += self._length
        if i < 0 or i >= self._length:
            raise IndexError(f"Buffer index {idx} out of range [0, {self._length})")
        return i

    def _check_writable(self) -> None:
        if not self._writable:
            raise InteropError("Buffer view is read-only", code="READ_ONLY_VIEW")

    def __iter__(self) -> Iterator[float]:
        for i in range(len(self)):
            self._check_valid()
            yield self._ptr[i]

    def fill(self, values: Iterable[float]) -> None:
        """Write exactly ``len(self)`` values into the buffer."""
        self._check_valid()
        self._check_writable()
        items = _to_floats(values, "values")
        if len(items) != self._length:
            raise ValidationError(
                f"Expected exactly {self._length} values, got {len(items)}",
                details={"expected": self._length, "got": len(items)},
            )
        for i, value in enumerate(items):
            self._ptr[i] = value

    def tolist(self) -> list[float]:
        """Copy the contents into a new list."""
        self._check_valid()
        return [self._ptr[i] for i in range(self._length)]

    @property
    def __array_interface__(self) -> dict:
        """Array interface (protocol v3) for zero-copy NumPy access."""
        self._check_valid()
        if self._ptr is None:
            address = ctypes.addressof(_EMPTY)
        else:
            address = ctypes.addressof(self._ptr.contents)
        return {
            "version": 3,
            "shape": (self._length,),
            "typestr": _TYPESTR,
            "data": (address, not self._writable),
        }

    def __repr__(self) -> str:
        if not self._valid:
            return "BufferView(expired)"
        preview = ", ".join(f"{v:g}" for v in self[:6])
        if self._length > 6:
            preview += ", ..."
        return f"BufferView([{preview}], len={self._length})"


@contextmanager
def borrow(ptr: Any, length: int, *, writable: bool = False) -> Iterator[BufferView]:
    """Yield a view over *ptr* that is invalidated when the block exits."""
    view = BufferView(ptr, length, writable=writable)
    try:
        yield view
    finally:
        view._invalidate()


def _to_floats(values: Iterable[Any], name: str) -> list[float]:
    if isinstance(values, (str, bytes)):
        raise ValidationError(f"{name} must be a sequence of numbers", details={"name": name})
    try:
        return [float(v) for v in values]
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"{name} must be a sequence of numbers: {exc}", details={"name": name}
        ) from exc


def as_c_array(values: Iterable[Any], length: int | None, name: str) -> ctypes.Array:
    """Copy *values* into a new ``c_double`` array, enforcing *length* when given."""
    items = _to_floats(values, name)
    if length is not None and len(items) != length:
        raise ValidationError(
            f"{name} must have length {length}, got {len(items)}",
            details={"name": name, "expected": length, "got": len(items)},
        )
    return (ctypes.c_double * len(items))(*items)


def as_c_matrix(rows: Iterable[Any], n: int, name: str) -> tuple[ctypes.Array, int]:
    """Copy an ``m × n`` matrix into a row-major ``c_double`` array.

    Accepts a sequence of rows (lists, tuples, a 2-D NumPy array).

    Returns:
        ``(array, m)``.
    """
    flat: list[float] = []
    m = 0
    for row in rows:
        items = _to_floats(row, f"{name}[{m}]")
        if len(items) != n:
            raise ValidationError(
                f"{name} row {m} must have length {n}, got {len(items)}",
                details={"name": name, "row": m, "expected": n, "got": len(items)},
            )
        flat.extend(items)
        m += 1
    return (ctypes.c_double * len(flat))(*flat), m


def as_pointer(array: ctypes.Array | None) -> Any:
    """``POINTER(c_double)`` to the first element of *array*, or NULL."""
    if array is None or len(array) == 0:
        return None
    return ctypes.cast(array, _double_p)
