"""pylinterp: piecewise-multilinear interpolation on tensor-product grids.

Provides :class:`LinearInterp1D`, :class:`LinearInterp2D` and
:class:`LinearInterpND` for linear, bilinear and N-D multilinear
interpolation of samples on rectilinear grids (uniform or not), the
per-axis :class:`Indexer` used to locate cells, the cell classes holding
the local formulas, and :class:`TensorView`, a dense N-D array with
zero-copy rectangular sub-views that the cells are built on.

Example
-------
>>> from pylinterp import LinearInterp2D
>>> interp = LinearInterp2D([0, 1, 2], [0, 1, 2],
...                         [[1, 2, 2], [2, 3, 3], [3, 3, 4]])
>>> interp.eval(0.5, 0.5)
2.0
"""

from pylinterp._errors import DimensionMismatchError, InvalidRangeError, OutOfRangeError
from pylinterp._version import __version__
from pylinterp.cell import LinearCell1D, LinearCell2D, LinearCellND
from pylinterp.indexer import Indexer
from pylinterp.interpolant import LinearInterp1D, LinearInterp2D, LinearInterpND, build
from pylinterp.tensor import TensorView

__all__ = [
    "DimensionMismatchError",
    "Indexer",
    "InvalidRangeError",
    "LinearCell1D",
    "LinearCell2D",
    "LinearCellND",
    "LinearInterp1D",
    "LinearInterp2D",
    "LinearInterpND",
    "OutOfRangeError",
    "TensorView",
    "__version__",
    "build",
]
