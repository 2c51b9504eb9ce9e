"""Per-axis lookup of the grid cell enclosing a coordinate.

An :class:`Indexer` is built from one strictly increasing coordinate array
``x`` of length ``L`` and maps a query ``xi`` to the cell index ``i`` in
``[0, L - 2]`` with ``x[i] <= xi < x[i + 1]``. Queries below ``x[0]``
clamp to cell 0 and queries at or above ``x[-1]`` clamp to cell ``L - 2``.
NaN queries raise ``ValueError``.

Two lookup modes are provided:

- :meth:`Indexer.sort_index` -- binary search, O(log L), valid for any
  strictly increasing array. This is the default.
- :meth:`Indexer.cell_index` -- arithmetic, O(1), valid only for uniformly
  spaced arrays. Uniformity is the caller's responsibility; it is checked
  once at construction (with a warning) and never per call.
"""

from __future__ import annotations

import warnings

import numpy as np


def check_uniform(x: np.ndarray, rtol: float = 1e-9) -> bool:
    """Return True if *x* is evenly spaced within relative tolerance *rtol*."""
    dx = np.diff(np.asarray(x, dtype=float))
    if len(dx) == 0:
        return False
    span = abs(float(x[-1]) - float(x[0]))
    return bool(np.all(np.abs(dx - dx.mean()) <= rtol * span))


def _check_query(xi) -> None:
    # NaN fails both clamp comparisons and would index past the last cell.
    if xi != xi:
        raise ValueError("Query coordinate must not be NaN")


class Indexer:
    """Map scalar coordinates to the index of their enclosing interval.

    Parameters
    ----------
    x : array_like
        Strictly increasing, finite coordinates, at least two of them.
        A read-only copy is kept.
    assume_uniform : bool, optional
        If True, :meth:`locate` uses the O(1) :meth:`cell_index` path.
        Default is False (binary search).

    Raises
    ------
    ValueError
        If *x* has fewer than two points, is not 1-D, contains NaN/Inf or
        is not strictly increasing.

    Warns
    -----
    UserWarning
        If ``assume_uniform=True`` but *x* is not evenly spaced.

    Examples
    --------
    >>> ix = Indexer([0.0, 1.0, 2.0, 3.0])
    >>> ix.sort_index(1.5), ix.sort_index(-4.0), ix.sort_index(3.0)
    (1, 0, 2)
    """

    index_front = 0

    def __init__(self, x, assume_uniform: bool = False):
        x = np.array(x, dtype=float)
        if x.ndim != 1:
            raise ValueError(f"Coordinates must be 1-D, got shape {x.shape}")
        if len(x) < 2:
            raise ValueError(f"Need at least 2 coordinates, got {len(x)}")
        if not np.isfinite(x).all():
            raise ValueError("Coordinates contain NaN or Inf")
        if not np.all(np.diff(x) > 0):
            raise ValueError("Coordinates must be strictly increasing")
        x.flags.writeable = False

        self._x = x
        self.index_back = len(x) - 2
        self.x_front = float(x[0])
        self.x_back = float(x[-1])
        self.x_delta = (self.x_back - self.x_front) / (len(x) - 1)
        self.is_uniform = check_uniform(x)
        self.assume_uniform = assume_uniform

        if assume_uniform and not self.is_uniform:
            warnings.warn(
                "assume_uniform=True but coordinates are not evenly spaced; "
                "cell_index() lookups will drift from the true cell.",
                UserWarning,
                stacklevel=2,
            )

    @property
    def x(self) -> np.ndarray:
        """The (read-only) coordinate array."""
        return self._x

    @property
    def num_cells(self) -> int:
        return self.index_back + 1

    def __len__(self) -> int:
        return len(self._x)

    def cell_index(self, xi: float) -> int:
        """Cell index for a uniform grid, computed arithmetically in O(1).

        Results on a non-uniform grid are unspecified.
        """
        _check_query(xi)
        if xi < self.x_front:
            return self.index_front
        if xi >= self.x_back:
            return self.index_back
        i = min(int((xi - self.x_front) / self.x_delta), self.index_back)
        # Round-off can land one cell off when xi sits on a node.
        if xi < self._x[i]:
            i -= 1
        elif i < self.index_back and xi >= self._x[i + 1]:
            i += 1
        return i

    def sort_index(self, xi: float) -> int:
        """Cell index by binary search: rightmost ``x[i] <= xi``, clamped."""
        _check_query(xi)
        if xi < self.x_front:
            return self.index_front
        if xi >= self.x_back:
            return self.index_back
        return int(np.searchsorted(self._x, xi, side="right")) - 1

    def locate(self, xi: float) -> int:
        """Cell index using the mode chosen at construction."""
        if self.assume_uniform:
            return self.cell_index(xi)
        return self.sort_index(xi)

    def locate_batch(self, xi) -> np.ndarray:
        """Vectorised :meth:`locate` over an array of coordinates.

        Parameters
        ----------
        xi : array_like
            Query coordinates of any shape.

        Returns
        -------
        ndarray of intp
            Cell indices with the same shape as *xi*.
        """
        xi = np.asarray(xi, dtype=float)
        if np.isnan(xi).any():
            raise ValueError("Query coordinates must not be NaN")
        back = self.index_back
        if self.assume_uniform:
            raw = np.floor((xi - self.x_front) / self.x_delta)
            idx = np.clip(raw, 0, back).astype(np.intp)
            idx -= (xi < self._x[idx]).astype(np.intp)
            step_up = (idx < back) & (xi >= self._x[np.minimum(idx + 1, back + 1)])
            idx += step_up.astype(np.intp)
        else:
            idx = np.searchsorted(self._x, xi, side="right").astype(np.intp) - 1
        return np.clip(idx, self.index_front, back)

    def clip(self, xi):
        """Clip coordinates into ``[x_front, x_back]``."""
        return np.clip(xi, self.x_front, self.x_back)

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)
        self._x.flags.writeable = False

    def __repr__(self) -> str:
        mode = "uniform" if self.assume_uniform else "sorted"
        return (
            f"Indexer(n={len(self._x)}, range=[{self.x_front}, {self.x_back}], "
            f"mode={mode})"
        )
