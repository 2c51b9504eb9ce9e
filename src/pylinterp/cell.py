"""Grid cells: the local multilinear interpolation formula.

A cell covers one interval (1-D), rectangle (2-D) or hyper-rectangle (N-D)
of a tensor-product grid and knows its 2**N corner values. All constants
needed by :meth:`eval` (slope, or the inverse cell volume ``H``) are
computed once in ``__init__``.

Cells do not check that a query point lies inside them. The interpolants
route each point to the right cell first; evaluating outside the cell
extends the same linear formula, which is how edge cells extrapolate.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from pylinterp._errors import DimensionMismatchError
from pylinterp._jit import corner_positions_jit, multilinear_blend_jit
from pylinterp.tensor import TensorView


def _as_corner_view(f, ndim: int) -> TensorView:
    """Accept a TensorView or array-like of shape (2,)*ndim."""
    if not isinstance(f, TensorView):
        f = TensorView.from_nested(f)
    if f.shape != (2,) * ndim:
        raise DimensionMismatchError(
            f"Corner values must have shape {(2,) * ndim}, got {f.shape}"
        )
    return f


def _check_bounds(bounds) -> List[Tuple[float, float]]:
    out = []
    for axis, (lo, hi) in enumerate(bounds):
        lo, hi = float(lo), float(hi)
        if not hi > lo:
            raise ValueError(
                f"Cell bounds on axis {axis} must satisfy lo < hi, got [{lo}, {hi}]"
            )
        out.append((lo, hi))
    return out


class LinearCell1D:
    """Linear interpolation on one interval ``[x0, x1]``.

    Examples
    --------
    >>> LinearCell1D(0.0, 2.0, 1.0, 5.0).eval(0.5)
    2.0
    """

    ndim = 1

    def __init__(self, x0: float, x1: float, f0: float, f1: float):
        (self._x0, self._x1), = _check_bounds([(x0, x1)])
        self._f0 = float(f0)
        self._slope = (float(f1) - self._f0) / (self._x1 - self._x0)

    @property
    def slope(self) -> float:
        return self._slope

    @property
    def bounds(self) -> List[Tuple[float, float]]:
        return [(self._x0, self._x1)]

    def contains(self, x: float) -> bool:
        return self._x0 <= x <= self._x1

    def eval(self, x: float) -> float:
        return self._f0 + self._slope * (x - self._x0)

    def __repr__(self) -> str:
        return f"LinearCell1D([{self._x0}, {self._x1}], slope={self._slope})"


class LinearCell2D:
    """Bilinear interpolation on one rectangle.

    Parameters
    ----------
    f : TensorView or array_like
        Corner values of shape (2, 2); ``f[i, j]`` sits at
        ``(x1[i], x2[j])``. A TensorView is used in place (typically a
        sub-view of the full value tensor).
    x1, x2 : (float, float)
        Cell edges along each axis.
    """

    ndim = 2

    def __init__(self, f, x1: Sequence[float], x2: Sequence[float]):
        self._f = _as_corner_view(f, 2)
        self._x1, self._x2 = _check_bounds([x1, x2])
        self._h = 1.0 / ((self._x1[1] - self._x1[0]) * (self._x2[1] - self._x2[0]))
        s0, s1 = self._f.strides
        o = self._f.offset
        self._pos = (o, o + s1, o + s0, o + s0 + s1)

    @property
    def H(self) -> float:
        """Inverse cell area."""
        return self._h

    @property
    def values(self) -> TensorView:
        return self._f

    @property
    def bounds(self) -> List[Tuple[float, float]]:
        return [self._x1, self._x2]

    def contains(self, x1: float, x2: float) -> bool:
        return (self._x1[0] <= x1 <= self._x1[1]
                and self._x2[0] <= x2 <= self._x2[1])

    def eval(self, x1i: float, x2i: float) -> float:
        buf = self._f.buffer
        p00, p01, p10, p11 = self._pos
        x1i_x10 = x1i - self._x1[0]
        x11_x1i = self._x1[1] - x1i
        x2i_x20 = x2i - self._x2[0]
        x21_x2i = self._x2[1] - x2i
        return float(self._h * (buf[p00] * x11_x1i * x21_x2i
                                + buf[p01] * x11_x1i * x2i_x20
                                + buf[p10] * x1i_x10 * x21_x2i
                                + buf[p11] * x1i_x10 * x2i_x20))

    def __repr__(self) -> str:
        return f"LinearCell2D({list(self._x1)} x {list(self._x2)})"


class LinearCellND:
    """Multilinear interpolation on one N-dimensional hyper-rectangle.

    The value at ``p`` is

    .. math::

        H \\sum_{c \\in \\{0,1\\}^N} f(c) \\prod_k w_k(c_k),
        \\quad w_k(0) = u_k - p_k,\\; w_k(1) = p_k - l_k,
        \\quad H = \\prod_k \\frac{1}{u_k - l_k}

    where ``l_k``/``u_k`` are the lower/upper cell edges on axis ``k``.

    Parameters
    ----------
    f : TensorView or array_like
        Corner values of shape ``(2,) * N``.
    bounds : sequence of (float, float)
        ``(lower, upper)`` per axis.

    Examples
    --------
    >>> cell = LinearCellND(np.arange(8.0).reshape(2, 2, 2), [(0, 1)] * 3)
    >>> cell.eval([0.5, 0.5, 0.5])
    3.5
    """

    def __init__(self, f, bounds: Sequence[Tuple[float, float]]):
        bounds = _check_bounds(bounds)
        self.ndim = len(bounds)
        self._f = _as_corner_view(f, self.ndim)
        self._lower = np.array([lo for lo, _ in bounds])
        self._upper = np.array([hi for _, hi in bounds])
        self._lower.flags.writeable = False
        self._upper.flags.writeable = False
        self._h = float(np.prod(1.0 / (self._upper - self._lower)))
        self._strides = np.array(self._f.strides, dtype=np.int64)

    @property
    def H(self) -> float:
        """Inverse cell volume."""
        return self._h

    @property
    def values(self) -> TensorView:
        return self._f

    @property
    def bounds(self) -> List[Tuple[float, float]]:
        return list(zip(self._lower.tolist(), self._upper.tolist()))

    @property
    def corners(self) -> np.ndarray:
        """The 2**N corner values, row-major over the corner bits."""
        positions = corner_positions_jit(self._f.offset, self._strides)
        return self._f.buffer[positions]

    def contains(self, point: Sequence[float]) -> bool:
        p = np.asarray(point, dtype=float)
        return bool(np.all((self._lower <= p) & (p <= self._upper)))

    def eval(self, point: Sequence[float]) -> float:
        p = np.asarray(point, dtype=float)
        if p.shape != (self.ndim,):
            raise DimensionMismatchError(
                f"Point must have {self.ndim} coordinates, got shape {p.shape}"
            )
        return float(multilinear_blend_jit(
            p, self._lower, self._upper, self._h,
            self._f.buffer, self._f.offset, self._strides,
        ))

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)
        self._lower.flags.writeable = False
        self._upper.flags.writeable = False

    def __repr__(self) -> str:
        return f"LinearCellND(ndim={self.ndim}, bounds={self.bounds})"
