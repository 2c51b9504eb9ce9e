"""Quick start example: interpolate a 2D function on a non-uniform grid."""

import math

import numpy as np

from pylinterp import LinearInterp2D


def f(x, y):
    """A smooth 2D function: sin(x) * exp(-y)."""
    return math.sin(x) * math.exp(-y)


# Sample on a grid that is denser near x = 0
x = np.sinh(np.linspace(-2, 2, 41))
y = np.linspace(0, 2, 21)
values = np.sin(x)[:, None] * np.exp(-y)[None, :]

# Build interpolant
interp = LinearInterp2D(x, y, values, verbose=True)
print(interp)

# Evaluate at a test point
point = (1.0, 0.5)
exact = f(*point)
approx = interp.eval(*point)

print(f"\nExact:  {exact:.10f}")
print(f"Approx: {approx:.10f}")
print(f"Error:  {abs(approx - exact):.2e}")

# Batch evaluation, in input order
pts = np.column_stack([np.linspace(-3, 3, 7), np.full(7, 0.25)])
for (px, py), v in zip(pts, interp.evaln(pts)):
    print(f"f({px:+.1f}, {py:.2f}) ~ {v:+.6f}")
