"""Numba JIT-compiled kernels for multilinear cell evaluation.

The kernels read cell corner values straight out of a shared
:class:`~pylinterp.tensor.TensorView` buffer using its offset and element
strides, so no per-cell copy of the corner block is needed.
"""

import numpy as np
from numba import njit


@njit(cache=True)
def multilinear_blend_jit(point: np.ndarray, lower: np.ndarray, upper: np.ndarray,
                          h: float, buffer: np.ndarray, offset: int,
                          strides: np.ndarray) -> float:
    """Tensor-product linear blend of the 2**N corners of one cell.

    Parameters
    ----------
    point : ndarray
        Query point of shape (N,).
    lower, upper : ndarray
        Cell corner coordinates per axis, each of shape (N,).
    h : float
        Precomputed ``prod(1 / (upper - lower))``.
    buffer : ndarray
        Flat value storage.
    offset : int
        Buffer position of corner ``(0, ..., 0)``.
    strides : ndarray
        Element stride of each axis, shape (N,).

    Returns
    -------
    float
        ``h * sum_c f(c) * prod_k w_k(c_k)`` with ``w_k(0) = upper_k - p_k``
        and ``w_k(1) = p_k - lower_k``.
    """
    ndim = point.shape[0]
    total = 0.0
    for corner in range(1 << ndim):
        weight = 1.0
        pos = offset
        for k in range(ndim):
            # Axis 0 is the most significant bit (row-major corner order).
            if (corner >> (ndim - 1 - k)) & 1:
                weight *= point[k] - lower[k]
                pos += strides[k]
            else:
                weight *= upper[k] - point[k]
        total += buffer[pos] * weight
    return h * total


@njit(cache=True)
def corner_positions_jit(offset: int, strides: np.ndarray) -> np.ndarray:
    """Buffer positions of the 2**N corners of a cell in row-major order."""
    ndim = strides.shape[0]
    out = np.empty(1 << ndim, dtype=np.int64)
    for corner in range(1 << ndim):
        pos = offset
        for k in range(ndim):
            if (corner >> (ndim - 1 - k)) & 1:
                pos += strides[k]
        out[corner] = pos
    return out
