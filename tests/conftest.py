"""Shared test fixtures for pylinterp tests."""

import numpy as np
import pytest

from pylinterp import LinearInterp1D, LinearInterp2D, LinearInterpND, TensorView


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------

def multilinear_3d(x):
    """Linear in each variable separately, so reproduced exactly on any grid."""
    return (1.0 + 2.0 * x[0] - x[1] + 0.5 * x[2]
            + x[0] * x[1] - 0.3 * x[0] * x[2] + x[0] * x[1] * x[2])


def bilinear_2d(x, y):
    """Bilinear test surface f(x, y) = 3 - x + 2y + 0.5xy."""
    return 3.0 - x + 2.0 * y + 0.5 * x * y


# Grid and samples used throughout the 2-D scenarios.
GRID_2D_X = [0.0, 1.0, 2.0]
GRID_2D_Y = [0.0, 1.0, 2.0]
GRID_2D_F = [[1.0, 2.0, 2.0],
             [2.0, 3.0, 3.0],
             [3.0, 3.0, 4.0]]

# 2x2x3 tensor holding 1..12 in row-major order.
NESTED_3D = [[[1, 2, 3], [4, 5, 6]],
             [[7, 8, 9], [10, 11, 12]]]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tensor_3d():
    """2x2x3 TensorView holding 1..12."""
    return TensorView((2, 2, 3), np.arange(1.0, 13.0))


@pytest.fixture(scope="module")
def interp_2d():
    """Bilinear interpolant on the 3x3 reference grid."""
    return LinearInterp2D(GRID_2D_X, GRID_2D_Y, GRID_2D_F)


@pytest.fixture(scope="module")
def interp_1d_sin():
    """Piecewise-linear sin(x) on a non-uniform grid over [0, pi]."""
    x = np.sort(np.concatenate([[0.0, np.pi], np.random.default_rng(3).uniform(0, np.pi, 30)]))
    return LinearInterp1D(x, np.sin(x))


@pytest.fixture(scope="module")
def grid_3d():
    """Non-uniform 3-D grid and samples of :func:`multilinear_3d`."""
    coords = [
        np.array([-1.0, -0.2, 0.5, 1.0]),
        np.array([0.0, 0.3, 1.1, 1.5, 2.0]),
        np.array([2.0, 2.5, 4.0]),
    ]
    mesh = np.meshgrid(*coords, indexing="ij")
    values = multilinear_3d(mesh)
    return coords, values


@pytest.fixture(scope="module")
def interp_3d(grid_3d):
    """Pre-built 3-D multilinear interpolant of :func:`multilinear_3d`."""
    coords, values = grid_3d
    return LinearInterpND(coords, values)
