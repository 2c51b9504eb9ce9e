"""Piecewise-multilinear interpolants on tensor-product grids.

An interpolant owns one :class:`~pylinterp.indexer.Indexer` per axis, a
read-only copy of the sample values held in a
:class:`~pylinterp.tensor.TensorView`, and one cell per grid cell whose
corner values are a zero-copy sub-view of that tensor. Evaluation locates
the enclosing cell along each axis, looks the cell up by its composite
index and delegates to the cell's formula.

Out-of-domain queries are not errors. They are routed to the nearest edge
cell; with ``extrapolate=True`` (default) that cell's linear formula is
extended past the grid, with ``extrapolate=False`` the query is first
clipped to the grid, giving constant extension.

Everything is built once in ``__init__`` and never mutated afterwards, so
evaluation from several threads is safe.
"""

from __future__ import annotations

import itertools
import os
import pickle
import time
import warnings
from typing import List, Sequence, Tuple

import numpy as np

from pylinterp._errors import DimensionMismatchError
from pylinterp.cell import LinearCell1D, LinearCell2D, LinearCellND
from pylinterp.indexer import Indexer
from pylinterp.tensor import TensorView


class _GridInterpolant:
    """Shared construction, lookup, batch evaluation and serialization."""

    _rank: int | None = None

    def __init__(
        self,
        coordinates: Sequence[Sequence[float]],
        values,
        assume_uniform: bool = False,
        extrapolate: bool = True,
        verbose: bool = False,
    ):
        start = time.time()
        coordinates = list(coordinates)
        if len(coordinates) == 0:
            raise ValueError("At least one coordinate axis is required")
        if self._rank is not None and len(coordinates) != self._rank:
            raise DimensionMismatchError(
                f"{type(self).__name__} needs {self._rank} coordinate "
                f"arrays, got {len(coordinates)}"
            )

        indexers = [Indexer(c, assume_uniform=assume_uniform) for c in coordinates]
        values = np.array(values, dtype=float)
        expected_shape = tuple(len(ix) for ix in indexers)
        if values.shape != expected_shape:
            raise DimensionMismatchError(
                f"values.shape={values.shape} does not match coordinate "
                f"lengths {expected_shape}"
            )
        if not np.isfinite(values).all():
            raise ValueError("values contains NaN or Inf")

        self.num_dimensions = len(indexers)
        self.assume_uniform = assume_uniform
        self.extrapolate = extrapolate
        self._indexers = indexers
        self._values = TensorView(values.shape, values).freeze()
        self._cell_shape = tuple(ix.num_cells for ix in indexers)

        if verbose:
            print(f"Building {self.num_dimensions}D linear interpolant "
                  f"({self.num_cells:,} cells)...")

        self._cells = self._build_cells()
        self.build_time = time.time() - start

        if verbose:
            print(f"  Built in {self.build_time:.3f}s")

    def _build_cells(self) -> list:
        """One cell per grid cell, flat in C-order over the cell indices."""
        cells = []
        for multi_idx in np.ndindex(*self._cell_shape):
            corners = self._values.subview(*[(i, i + 2) for i in multi_idx])
            bounds = [
                (ix.x[i], ix.x[i + 1])
                for ix, i in zip(self._indexers, multi_idx)
            ]
            cells.append(self._make_cell(corners, bounds))
        return cells

    def _make_cell(self, corners: TensorView, bounds):
        return LinearCellND(corners, bounds)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _prepare_point(self, point) -> List[float]:
        if len(point) != self.num_dimensions:
            raise DimensionMismatchError(
                f"Point must have {self.num_dimensions} coordinates, "
                f"got {len(point)}"
            )
        if self.extrapolate:
            return [float(p) for p in point]
        return [min(max(float(p), ix.x_front), ix.x_back)
                for p, ix in zip(point, self._indexers)]

    def locate(self, point: Sequence[float]) -> Tuple[int, ...]:
        """Per-axis cell indices of the cell that evaluates *point*."""
        point = self._prepare_point(point)
        return tuple(ix.locate(p) for ix, p in zip(self._indexers, point))

    def cell(self, *index: int):
        """The cell at composite index ``(i_0, ..., i_{N-1})``."""
        if len(index) == 1 and isinstance(index[0], tuple):
            index = index[0]
        flat = int(np.ravel_multi_index(index, self._cell_shape))
        return self._cells[flat]

    def _find_cell(self, point: List[float]):
        idx = tuple(ix.locate(p) for ix, p in zip(self._indexers, point))
        return self._cells[int(np.ravel_multi_index(idx, self._cell_shape))]

    # ------------------------------------------------------------------
    # Vectorised evaluation
    # ------------------------------------------------------------------

    def eval_batch(self, points) -> np.ndarray:
        """Evaluate many points at once with NumPy array operations.

        Gives the same values as :meth:`evaln` but locates all points per
        axis in one vectorised call and blends the 2**N corners with
        fancy indexing instead of a Python loop over points.

        Parameters
        ----------
        points : array_like
            Shape ``(M, num_dimensions)``. For 1-D interpolants a flat
            array of length M is also accepted.

        Returns
        -------
        ndarray of shape (M,)
        """
        points = np.asarray(points, dtype=float)
        if points.ndim == 1 and self.num_dimensions == 1:
            points = points.reshape(-1, 1)
        if points.ndim != 2 or points.shape[1] != self.num_dimensions:
            raise DimensionMismatchError(
                f"points must have shape (M, {self.num_dimensions}), "
                f"got {points.shape}"
            )
        if not self.extrapolate:
            points = np.column_stack([
                ix.clip(points[:, d]) for d, ix in enumerate(self._indexers)
            ])

        idx = [ix.locate_batch(points[:, d]) for d, ix in enumerate(self._indexers)]
        lower = [ix.x[i] for ix, i in zip(self._indexers, idx)]
        upper = [ix.x[i + 1] for ix, i in zip(self._indexers, idx)]
        values = self._values.to_numpy()

        total = np.zeros(points.shape[0])
        for corner in itertools.product((0, 1), repeat=self.num_dimensions):
            weight = np.ones(points.shape[0])
            for d, bit in enumerate(corner):
                if bit:
                    weight *= points[:, d] - lower[d]
                else:
                    weight *= upper[d] - points[:, d]
            total += values[tuple(i + bit for i, bit in zip(idx, corner))] * weight

        h = np.ones(points.shape[0])
        for lo, hi in zip(lower, upper):
            h /= hi - lo
        return total * h

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def indexers(self) -> List[Indexer]:
        return list(self._indexers)

    @property
    def coordinates(self) -> List[np.ndarray]:
        """Read-only coordinate array of each axis."""
        return [ix.x for ix in self._indexers]

    @property
    def values(self) -> TensorView:
        """Read-only sample tensor the cells are built from."""
        return self._values

    @property
    def grid_shape(self) -> Tuple[int, ...]:
        return self._values.shape

    @property
    def cell_shape(self) -> Tuple[int, ...]:
        return self._cell_shape

    @property
    def num_cells(self) -> int:
        return int(np.prod(self._cell_shape))

    @property
    def domain(self) -> List[Tuple[float, float]]:
        return [(ix.x_front, ix.x_back) for ix in self._indexers]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def __getstate__(self) -> dict:
        """Return picklable state stamped with the library version."""
        from pylinterp._version import __version__

        state = self.__dict__.copy()
        state["_pylinterp_version"] = __version__
        return state

    def __setstate__(self, state: dict) -> None:
        """Restore state and re-freeze the shared value buffer."""
        from pylinterp._version import __version__

        saved_version = state.pop("_pylinterp_version", None)
        if saved_version is not None and saved_version != __version__:
            warnings.warn(
                f"This object was saved with pylinterp {saved_version}, "
                f"but you are loading it with {__version__}. "
                f"Evaluation results may differ if internal data layout changed.",
                UserWarning,
                stacklevel=2,
            )
        self.__dict__.update(state)
        self._values.freeze()

    def save(self, path: str | os.PathLike) -> None:
        """Save the interpolant to a file with :mod:`pickle`.

        Parameters
        ----------
        path : str or path-like
            Destination file path.
        """
        with open(os.fspath(path), "wb") as f:
            pickle.dump(self, f, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def load(cls, path: str | os.PathLike):
        """Load an interpolant written by :meth:`save`.

        Parameters
        ----------
        path : str or path-like
            Path to the saved file.

        Returns
        -------
        The restored interpolant, ready to evaluate.

        Raises
        ------
        TypeError
            If the file holds an object of a different class.

        Warns
        -----
        UserWarning
            If the file was saved with a different pylinterp version.

        .. warning::

            This method uses :mod:`pickle` internally. Pickle can execute
            arbitrary code during deserialization. **Only load files you
            trust.**
        """
        with open(os.fspath(path), "rb") as f:
            obj = pickle.load(f)  # noqa: S301
        if not isinstance(obj, cls):
            raise TypeError(
                f"Expected a {cls.__name__} instance, got {type(obj).__name__}"
            )
        return obj

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"dims={self.num_dimensions}, "
            f"grid={list(self.grid_shape)}, "
            f"cells={self.num_cells})"
        )

    def __str__(self) -> str:
        mode = "uniform" if self.assume_uniform else "sorted"
        outside = "linear" if self.extrapolate else "clamped"
        domain_str = " x ".join(f"[{lo}, {hi}]" for lo, hi in self.domain)
        lines = [
            f"{type(self).__name__} ({self.num_dimensions}D)",
            f"  Grid:        {list(self.grid_shape)} ({self._values.size:,} samples)",
            f"  Cells:       {self.num_cells:,}",
            f"  Domain:      {domain_str}",
            f"  Lookup:      {mode}",
            f"  Outside:     {outside}",
        ]
        return "\n".join(lines)


class LinearInterp1D(_GridInterpolant):
    """Piecewise-linear interpolation of samples ``f[i]`` at ``x[i]``.

    Parameters
    ----------
    x : array_like
        Strictly increasing coordinates, length >= 2.
    f : array_like
        Samples, same length as *x*.
    assume_uniform : bool, optional
        Use O(1) arithmetic cell lookup. Only valid for evenly spaced *x*.
    extrapolate : bool, optional
        Extend the edge cells' lines outside ``[x[0], x[-1]]`` (default)
        instead of holding the edge values.
    verbose : bool, optional
        Print build progress. Default is False.

    Raises
    ------
    DimensionMismatchError
        If ``len(f) != len(x)``.

    Examples
    --------
    >>> interp = LinearInterp1D([0.0, 1.0, 3.0], [0.0, 2.0, 3.0])
    >>> interp.eval(2.0)
    2.5
    """

    _rank = 1

    def __init__(self, x, f, assume_uniform: bool = False,
                 extrapolate: bool = True, verbose: bool = False):
        super().__init__([x], f, assume_uniform=assume_uniform,
                         extrapolate=extrapolate, verbose=verbose)

    def _make_cell(self, corners, bounds):
        (x0, x1), = bounds
        return LinearCell1D(x0, x1, corners.read(0), corners.read(1))

    def eval(self, xi: float) -> float:
        """Interpolated value at *xi*."""
        xi = float(xi)
        if not self.extrapolate:
            xi = min(max(xi, self._indexers[0].x_front), self._indexers[0].x_back)
        return self._cells[self._indexers[0].locate(xi)].eval(xi)

    def evaln(self, xi) -> np.ndarray:
        """Evaluate each coordinate in *xi*, preserving order."""
        xi = np.asarray(xi, dtype=float).ravel()
        results = np.empty(len(xi))
        for i in range(len(xi)):
            results[i] = self.eval(xi[i])
        return results


class LinearInterp2D(_GridInterpolant):
    """Bilinear interpolation on a rectilinear ``x`` by ``y`` grid.

    Parameters
    ----------
    x, y : array_like
        Strictly increasing coordinates of each axis.
    f : array_like
        Samples of shape ``(len(x), len(y))``; ``f[i][j]`` is the value at
        ``(x[i], y[j])``.
    assume_uniform, extrapolate, verbose
        As for :class:`LinearInterp1D`.

    Examples
    --------
    >>> interp = LinearInterp2D([0, 1, 2], [0, 1, 2],
    ...                         [[1, 2, 2], [2, 3, 3], [3, 3, 4]])
    >>> interp.eval(1.5, 0.5)
    2.75
    """

    _rank = 2

    def __init__(self, x, y, f, assume_uniform: bool = False,
                 extrapolate: bool = True, verbose: bool = False):
        super().__init__([x, y], f, assume_uniform=assume_uniform,
                         extrapolate=extrapolate, verbose=verbose)

    def _make_cell(self, corners, bounds):
        return LinearCell2D(corners, bounds[0], bounds[1])

    def eval(self, xi: float, yi: float) -> float:
        """Interpolated value at ``(xi, yi)``."""
        xi, yi = self._prepare_point((xi, yi))
        x_index = self._indexers[0].locate(xi)
        y_index = self._indexers[1].locate(yi)
        return self._cells[x_index * self._cell_shape[1] + y_index].eval(xi, yi)

    def evaln(self, x, y=None) -> np.ndarray:
        """Evaluate many points, preserving order.

        Either pass two equal-length coordinate sequences ``evaln(xs, ys)``
        or one array of points ``evaln(points)`` with shape ``(M, 2)``.
        """
        if y is None:
            points = np.asarray(x, dtype=float)
            if points.ndim != 2 or points.shape[1] != 2:
                raise DimensionMismatchError(
                    f"points must have shape (M, 2), got {points.shape}"
                )
            x, y = points[:, 0], points[:, 1]
        elif len(x) != len(y):
            raise DimensionMismatchError(
                f"x and y must have the same length, got {len(x)} and {len(y)}"
            )
        results = np.empty(len(x))
        for i, (xi, yi) in enumerate(zip(x, y)):
            results[i] = self.eval(xi, yi)
        return results


class LinearInterpND(_GridInterpolant):
    """Multilinear interpolation on an N-dimensional rectilinear grid.

    Parameters
    ----------
    coordinates : sequence of array_like
        One strictly increasing coordinate array per axis.
    values : array_like
        Samples of shape ``tuple(len(c) for c in coordinates)``.
    assume_uniform, extrapolate, verbose
        As for :class:`LinearInterp1D`.

    Raises
    ------
    DimensionMismatchError
        If *values* does not have the grid's shape.

    Examples
    --------
    >>> x = [0.0, 1.0]
    >>> interp = LinearInterpND([x, x, x], np.arange(8.0).reshape(2, 2, 2))
    >>> interp.eval([0.5, 0.5, 0.5])
    3.5
    """

    def eval(self, point: Sequence[float]) -> float:
        """Interpolated value at *point* (one coordinate per axis)."""
        point = self._prepare_point(point)
        return self._find_cell(point).eval(point)

    def evaln(self, points) -> np.ndarray:
        """Evaluate each row of *points* (shape ``(M, N)``), preserving order."""
        points = np.asarray(points, dtype=float)
        if points.ndim != 2 or points.shape[1] != self.num_dimensions:
            raise DimensionMismatchError(
                f"points must have shape (M, {self.num_dimensions}), "
                f"got {points.shape}"
            )
        results = np.empty(points.shape[0])
        for i in range(points.shape[0]):
            results[i] = self.eval(points[i])
        return results


def build(coordinates: Sequence[Sequence[float]], values, **kwargs):
    """Build the interpolant matching the number of coordinate arrays.

    Parameters
    ----------
    coordinates : sequence of array_like
        One coordinate array per axis.
    values : array_like
        Samples on the full tensor-product grid.
    **kwargs
        ``assume_uniform``, ``extrapolate`` and ``verbose``.

    Returns
    -------
    LinearInterp1D, LinearInterp2D or LinearInterpND
        Chosen by rank (1, 2, or 3 and above).

    Raises
    ------
    DimensionMismatchError
        If *values* does not match the coordinate lengths.
    ValueError
        If a coordinate array is invalid or *values* is not finite.
    """
    coordinates = list(coordinates)
    if len(coordinates) == 1:
        return LinearInterp1D(coordinates[0], values, **kwargs)
    if len(coordinates) == 2:
        return LinearInterp2D(coordinates[0], coordinates[1], values, **kwargs)
    return LinearInterpND(coordinates, values, **kwargs)
