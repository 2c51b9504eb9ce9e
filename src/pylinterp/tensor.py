"""Dense N-dimensional tensor views over a contiguous buffer.

A :class:`TensorView` pairs a flat, contiguous NumPy buffer with a shape,
per-axis strides and an offset (all in element units). Element access is a
single dot product of the multi-index with the strides, so it stays O(1)
for any rank. :meth:`TensorView.subview` produces a new view over a
rectangular block of the same buffer without copying: only the offset,
extents and strides change.

Sub-views keep a reference to the buffer they read from (and to the view
they were derived from), so the storage lives as long as any view does.
"""

from __future__ import annotations

import operator
from typing import Iterator, Sequence, Tuple

import numpy as np

from pylinterp._errors import DimensionMismatchError, InvalidRangeError, OutOfRangeError


def _contiguous_strides(shape: Tuple[int, ...], order: str) -> Tuple[int, ...]:
    """Element strides of a dense array laid out in *order* ("C" or "F")."""
    strides = [0] * len(shape)
    step = 1
    axes = range(len(shape) - 1, -1, -1) if order == "C" else range(len(shape))
    for k in axes:
        strides[k] = step
        step *= shape[k]
    return tuple(strides)


class TensorView:
    """N-dimensional view over a contiguous 1-D buffer.

    Parameters
    ----------
    shape : sequence of int
        Extent of each axis. Every extent must be positive.
    buffer : array_like, optional
        Storage to wrap. It must hold exactly ``prod(shape)`` elements and
        is read in *order*. A contiguous NumPy array of the right dtype is
        wrapped without copying, so writes through the view are visible in
        it. If omitted, a zero-filled buffer is allocated.
    dtype : numpy dtype, optional
        Floating-point element type. Default is ``float64``.
    order : {"C", "F"}, optional
        Storage order: row-major (default) or column-major.

    Raises
    ------
    InvalidRangeError
        If *shape* is empty or has a non-positive extent.
    DimensionMismatchError
        If *buffer* does not hold ``prod(shape)`` elements.

    Examples
    --------
    >>> t = TensorView((2, 3), range(6))
    >>> t[1, 2]
    5.0
    >>> t.subview((0, 2), (1, 3)).tolist()
    [[1.0, 2.0], [4.0, 5.0]]
    """

    def __init__(
        self,
        shape: Sequence[int],
        buffer=None,
        dtype=np.float64,
        order: str = "C",
    ):
        shape = tuple(operator.index(n) for n in shape)
        if len(shape) == 0:
            raise InvalidRangeError("TensorView needs at least one axis")
        for axis, n in enumerate(shape):
            if n <= 0:
                raise InvalidRangeError(
                    f"Extent of axis {axis} must be positive, got {n}"
                )
        if order not in ("C", "F"):
            raise ValueError(f"order must be 'C' or 'F', got {order!r}")
        dtype = np.dtype(dtype)
        if dtype.kind != "f":
            raise TypeError(f"TensorView holds floating-point data, got dtype {dtype}")

        size = int(np.prod(shape))
        if buffer is None:
            data = np.zeros(size, dtype=dtype)
        else:
            arr = np.asarray(buffer, dtype=dtype)
            if arr.size != size:
                raise DimensionMismatchError(
                    f"Buffer holds {arr.size} elements but shape {shape} "
                    f"needs {size}"
                )
            data = np.ascontiguousarray(np.ravel(arr, order=order))

        self._buffer = data
        self._shape = shape
        self._strides = _contiguous_strides(shape, order)
        self._offset = 0
        self._order = order
        self._parent: TensorView | None = None

    @classmethod
    def from_nested(cls, data, dtype=np.float64) -> "TensorView":
        """Build a row-major view from nested sequences or an array.

        Parameters
        ----------
        data : array_like
            Rectangular nested lists (e.g. ``[[1, 2], [3, 4]]``) or any
            array. The data is copied into a new buffer.

        Returns
        -------
        TensorView
        """
        arr = np.array(data, dtype=dtype)
        if arr.ndim == 0:
            raise InvalidRangeError("Cannot build a TensorView from a scalar")
        return cls(arr.shape, arr, dtype=dtype)

    @classmethod
    def _view(cls, parent: "TensorView", shape, strides, offset) -> "TensorView":
        """Create a non-owning view sharing *parent*'s buffer."""
        obj = object.__new__(cls)
        obj._buffer = parent._buffer
        obj._shape = tuple(shape)
        obj._strides = tuple(strides)
        obj._offset = offset
        obj._order = parent._order
        obj._parent = parent
        return obj

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return int(np.prod(self._shape))

    @property
    def strides(self) -> Tuple[int, ...]:
        """Per-axis strides in elements (not bytes)."""
        return self._strides

    @property
    def offset(self) -> int:
        """Position of element ``(0, ..., 0)`` in the buffer."""
        return self._offset

    @property
    def order(self) -> str:
        return self._order

    @property
    def dtype(self) -> np.dtype:
        return self._buffer.dtype

    @property
    def buffer(self) -> np.ndarray:
        """The shared flat storage."""
        return self._buffer

    @property
    def parent(self) -> "TensorView | None":
        """View this one was sliced from, or None for an owning view."""
        return self._parent

    @property
    def is_view(self) -> bool:
        return self._parent is not None

    @property
    def readonly(self) -> bool:
        return not self._buffer.flags.writeable

    def freeze(self) -> "TensorView":
        """Make the shared buffer read-only and return ``self``.

        This affects every view over the same buffer, including a wrapped
        caller array.
        """
        self._buffer.flags.writeable = False
        return self

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def flat_index(self, *index) -> int:
        """Buffer position of a multi-index.

        Raises
        ------
        OutOfRangeError
            If the number of indices differs from :attr:`ndim` or any index
            falls outside ``[0, extent)`` on its axis.
        """
        if len(index) == 1 and isinstance(index[0], tuple):
            index = index[0]
        if len(index) != len(self._shape):
            raise OutOfRangeError(
                f"Expected {len(self._shape)} indices, got {len(index)}"
            )
        pos = self._offset
        for axis, (i, n, s) in enumerate(zip(index, self._shape, self._strides)):
            i = operator.index(i)
            if not 0 <= i < n:
                raise OutOfRangeError(
                    f"Index {i} out of range [0, {n}) on axis {axis}"
                )
            pos += i * s
        return pos

    def read(self, *index) -> float:
        """Return the element at ``index`` (one integer per axis)."""
        return self._buffer[self.flat_index(*index)].item()

    def write(self, *args) -> None:
        """Store a value: ``write(i_0, ..., i_{N-1}, value)``."""
        if len(args) < 2:
            raise TypeError("write() needs an index and a value")
        *index, value = args
        pos = self.flat_index(*index)
        if self.readonly:
            raise ValueError("TensorView is read-only")
        self._buffer[pos] = value

    def __getitem__(self, index) -> float:
        if not isinstance(index, tuple):
            index = (index,)
        return self.read(*index)

    def __setitem__(self, index, value) -> None:
        if not isinstance(index, tuple):
            index = (index,)
        self.write(*index, value)

    def __len__(self) -> int:
        return self._shape[0]

    def indices(self) -> Iterator[Tuple[int, ...]]:
        """Iterate over all multi-indices in row-major order."""
        return np.ndindex(*self._shape)

    # ------------------------------------------------------------------
    # Sub-views
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_range(r, extent: int, axis: int, closed: bool) -> Tuple[int, int, int]:
        """Turn one range argument into ``(start, stop, step)`` with stop exclusive."""
        if isinstance(r, slice):
            start = 0 if r.start is None else operator.index(r.start)
            stop = extent if r.stop is None else operator.index(r.stop)
            step = 1 if r.step is None else operator.index(r.step)
            if step <= 0:
                raise InvalidRangeError(
                    f"Step must be positive on axis {axis}, got {step}"
                )
        elif isinstance(r, (int, np.integer)):
            start, stop, step = int(r), int(r) + 1, 1
        else:
            try:
                start, stop = (operator.index(v) for v in r)
            except (TypeError, ValueError) as exc:
                raise InvalidRangeError(
                    f"Range on axis {axis} must be a (start, stop) pair, "
                    f"a slice or an int, got {r!r}"
                ) from exc
            if closed:
                stop += 1
            step = 1

        if start >= stop:
            raise InvalidRangeError(
                f"Empty range [{start}, {stop}) on axis {axis}"
            )
        if start < 0 or stop > extent:
            raise InvalidRangeError(
                f"Range [{start}, {stop}) exceeds extent {extent} on axis {axis}"
            )
        return start, stop, step

    def subview(self, *ranges, closed: bool = False) -> "TensorView":
        """Zero-copy view over a rectangular block.

        Parameters
        ----------
        *ranges
            One range per axis: a ``(start, stop)`` pair, a ``slice``
            (positive step allowed) or an ``int`` ``i`` meaning
            ``(i, i + 1)``. A single list of ranges is also accepted; on a
            1-D view a list of two ints is read as one ``(start, stop)`` pair.
        closed : bool, optional
            If True, ``(start, stop)`` pairs include ``stop``. Slices are
            always half-open. Default is False.

        Returns
        -------
        TensorView
            View with extents equal to each range's length, sharing this
            view's buffer.

        Raises
        ------
        InvalidRangeError
            If the number of ranges differs from :attr:`ndim`, or a range is
            empty, reversed, malformed or out of bounds.

        Examples
        --------
        >>> t = TensorView((2, 2, 3), range(1, 13))
        >>> t.subview((1, 2), (0, 1), (1, 2)).tolist()
        [[[8.0]]]
        >>> t.subview((1, 1), (0, 1), (1, 2), closed=True).tolist()
        [[[8.0, 9.0], [11.0, 12.0]]]
        """
        if len(ranges) == 1 and isinstance(ranges[0], list):
            items = ranges[0]
            # On a 1-D view a list of ints is one (start, stop) pair.
            is_pair = len(self._shape) == 1 and all(
                isinstance(v, (int, np.integer)) for v in items
            )
            if not is_pair:
                ranges = tuple(items)
        if len(ranges) != len(self._shape):
            raise InvalidRangeError(
                f"Expected {len(self._shape)} ranges, got {len(ranges)}"
            )

        offset = self._offset
        shape = []
        strides = []
        for axis, (r, n, s) in enumerate(zip(ranges, self._shape, self._strides)):
            start, stop, step = self._normalize_range(r, n, axis, closed)
            offset += start * s
            shape.append(len(range(start, stop, step)))
            strides.append(s * step)
        return TensorView._view(self, shape, strides, offset)

    # ------------------------------------------------------------------
    # NumPy interop
    # ------------------------------------------------------------------

    def to_numpy(self) -> np.ndarray:
        """Strided ``ndarray`` over the same memory (no copy)."""
        itemsize = self._buffer.itemsize
        return np.lib.stride_tricks.as_strided(
            self._buffer[self._offset:],
            shape=self._shape,
            strides=tuple(s * itemsize for s in self._strides),
            writeable=not self.readonly,
        )

    def __array__(self, dtype=None, copy=None):
        arr = self.to_numpy()
        if dtype is not None and np.dtype(dtype) != arr.dtype:
            if copy is False:
                raise ValueError(
                    f"Cannot convert {arr.dtype} to {np.dtype(dtype)} without a copy"
                )
            return arr.astype(dtype)
        if copy:
            return arr.copy()
        return arr

    def tolist(self) -> list:
        return self.to_numpy().tolist()

    def copy(self) -> "TensorView":
        """Owning, contiguous copy in this view's storage order."""
        flat = self.to_numpy().ravel(order=self._order)
        return TensorView(self._shape, flat.copy(), dtype=self.dtype, order=self._order)

    # ------------------------------------------------------------------
    # Comparison and printing
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, TensorView):
            return NotImplemented
        return self._shape == other._shape and bool(
            np.array_equal(self.to_numpy(), other.to_numpy())
        )

    __hash__ = None

    def __repr__(self) -> str:
        kind = "view" if self.is_view else "owner"
        return (
            f"TensorView(shape={self._shape}, strides={self._strides}, "
            f"offset={self._offset}, {kind})"
        )
