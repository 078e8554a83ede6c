"""3x3 determinant and inverse used by the alignment solve."""

import numpy as np
from numpy.typing import NDArray

# Stand-in for a zero denominator
NEXT_TO_NOTHING = 1e-38


def determinant_3x3(m: NDArray[np.float64]) -> float:
    """Determinant by cofactor expansion along the first row."""
    return float(
        m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
        - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
        + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
    )


def invert_3x3(m: NDArray[np.float64]) -> NDArray[np.float64]:
    """Invert ``m`` with Cramer's rule.

    Column ``n`` of the inverse solves ``m @ x = e_n``; each element ``x[k]``
    is the determinant of ``m`` with column ``k`` replaced by ``e_n``, divided
    by ``det(m)``. A singular ``m`` divides by :data:`NEXT_TO_NOTHING`
    instead, so the result stays finite but is meaningless.
    """
    m = np.asarray(m, dtype=np.float64)
    det = determinant_3x3(m)
    if det == 0:
        det = NEXT_TO_NOTHING

    inverse = np.zeros((3, 3), dtype=np.float64)
    identity = np.eye(3)
    for k in range(3):
        for n in range(3):
            work = m.copy()
            work[:, k] = identity[:, n]
            inverse[k, n] = determinant_3x3(work) / det
    return inverse
