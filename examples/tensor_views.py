"""TensorView example: zero-copy sub-views of a 3D sample block."""

import numpy as np

from pylinterp import LinearInterpND, TensorView

# 2x2x3 block holding 1..12 in row-major order
t = TensorView((2, 2, 3), np.arange(1.0, 13.0))
print(t)

# Half-open ranges select a single element; closed ranges a 1x2x2 block
print(t.subview((1, 2), (0, 1), (1, 2)).tolist())
block = t.subview((1, 1), (0, 1), (1, 2), closed=True)
print(block, block.tolist())

# Writes through the sub-view land in the shared buffer
block[0, 0, 0] = -8.0
print(t.read(1, 0, 1))

# Every cell of an N-D interpolant reads its corners the same way
coords = [np.linspace(0, 1, 3), np.linspace(0, 1, 4), np.linspace(0, 2, 5)]
mesh = np.meshgrid(*coords, indexing="ij")
interp = LinearInterpND(coords, mesh[0] + 2 * mesh[1] * mesh[2])
cell = interp.cell(*interp.locate([0.3, 0.4, 1.1]))
print(cell, cell.values)
print(interp.eval([0.3, 0.4, 1.1]), 0.3 + 2 * 0.4 * 1.1)
