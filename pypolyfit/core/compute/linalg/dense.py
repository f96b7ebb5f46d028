"""
Dense matrix utilities.

Small, shape-checked helpers over NumPy arrays: transpose, products,
determinant by partial-pivot Gaussian elimination, and matrix inversion.

Two inversion strategies share one interface (`inverse(A, method=...)`):

    'cofactor': adjugate / determinant, with every cofactor computed from
                the determinant of its minor. O(n^4) and sensitive to
                ill-conditioning; only meant for the small Gram matrices
                of low-degree polynomial fits.
    'lu':       LU factorisation via LAPACK (scipy.linalg).

Both raise SingularMatrixError instead of returning non-finite entries.
"""

from typing import Any, Literal

import numpy as np
import scipy.linalg as sla
from numpy.typing import ArrayLike, NDArray

from pypolyfit.core.exceptions import DimensionError, SingularMatrixError
from pypolyfit.core.validation import check_1d, check_2d, check_square

InverseMethod = Literal['cofactor', 'lu']


def _as_matrix(A: ArrayLike, name: str) -> NDArray[np.floating[Any]]:
    arr = np.asarray(A, dtype=np.float64)
    check_2d(arr, name)
    return arr


def transpose(A: ArrayLike) -> NDArray[np.floating[Any]]:
    """Return A' as a new (contiguous) array."""
    return np.ascontiguousarray(_as_matrix(A, 'A').T)


def multiply(A: ArrayLike, B: ArrayLike) -> NDArray[np.floating[Any]]:
    """
    Matrix product of A (m1 x m2) and B (m2 x m3).

    Raises:
        DimensionError: If the inner dimensions disagree
    """
    A = _as_matrix(A, 'A')
    B = _as_matrix(B, 'B')
    if A.shape[1] != B.shape[0]:
        raise DimensionError(
            f"Cannot multiply {A.shape[0]}x{A.shape[1]} by {B.shape[0]}x{B.shape[1]}"
        )
    return A @ B


def multiply_vector(A: ArrayLike, v: ArrayLike) -> NDArray[np.floating[Any]]:
    """
    Product of A (m1 x m2) and vector v (m2,).

    Raises:
        DimensionError: If len(v) != number of columns of A
    """
    A = _as_matrix(A, 'A')
    v = np.asarray(v, dtype=np.float64)
    check_1d(v, 'v')
    if A.shape[1] != v.shape[0]:
        raise DimensionError(
            f"Cannot multiply {A.shape[0]}x{A.shape[1]} matrix by vector of length {v.shape[0]}"
        )
    return A @ v


def determinant(A: ArrayLike) -> float:
    """
    Determinant by Gaussian elimination with partial pivoting.

    Works on a copy; the input is left untouched. Each row swap flips the
    sign. An exactly zero pivot means the matrix is singular and 0.0 is
    returned immediately. The empty matrix has determinant 1.

    Args:
        A: Square matrix (n x n)

    Returns:
        det(A) as a Python float
    """
    a = np.array(A, dtype=np.float64, copy=True)
    check_square(a, 'A')
    n = a.shape[0]

    det = 1.0
    for i in range(n):
        pivot = i + int(np.argmax(np.abs(a[i:, i])))
        if pivot != i:
            a[[i, pivot]] = a[[pivot, i]]
            det = -det
        if a[i, i] == 0.0:
            return 0.0
        det *= a[i, i]
        factors = a[i + 1:, i] / a[i, i]
        a[i + 1:, i + 1:] -= np.outer(factors, a[i, i + 1:])
    return float(det)


def minor(A: NDArray[np.floating[Any]], row: int, col: int) -> NDArray[np.floating[Any]]:
    """A with one row and one column removed."""
    return np.delete(np.delete(A, row, axis=0), col, axis=1)


def cofactor_matrix(A: ArrayLike) -> NDArray[np.floating[Any]]:
    """
    Matrix of cofactors C[q, p] = (-1)^(q+p) * det(minor(A, q, p)).

    A 1x1 matrix has the cofactor matrix [[1]].
    """
    a = np.asarray(A, dtype=np.float64)
    check_square(a, 'A')
    n = a.shape[0]

    cof = np.empty((n, n), dtype=np.float64)
    for q in range(n):
        for p in range(n):
            sign = -1.0 if (q + p) % 2 else 1.0
            cof[q, p] = sign * determinant(minor(a, q, p))
    return cof


def cofactor_inverse(A: ArrayLike, name: str = 'A') -> NDArray[np.floating[Any]]:
    """
    Inverse via the adjugate: A^-1 = C' / det(A).

    Raises:
        SingularMatrixError: If det(A) == 0 or the result is not finite
    """
    a = np.asarray(A, dtype=np.float64)
    check_square(a, name)

    det = determinant(a)
    if det == 0.0:
        raise SingularMatrixError(
            f"{name}: matrix is singular (determinant is 0)",
            matrix_name=name,
            determinant=det,
        )

    with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
        inv = cofactor_matrix(a).T / det

    if not np.all(np.isfinite(inv)):
        raise SingularMatrixError(
            f"{name}: inverse has non-finite entries (determinant {det:.3e})",
            matrix_name=name,
            determinant=det,
        )
    return inv


def lu_inverse(A: ArrayLike, name: str = 'A') -> NDArray[np.floating[Any]]:
    """
    Inverse via LU factorisation (LAPACK getrf/getrs).

    Raises:
        SingularMatrixError: If U has a zero on its diagonal or the result
            is not finite
    """
    a = np.asarray(A, dtype=np.float64)
    check_square(a, name)
    n = a.shape[0]

    lu, piv = sla.lu_factor(a, check_finite=False)
    if np.any(np.diag(lu) == 0.0):
        raise SingularMatrixError(
            f"{name}: matrix is singular (zero pivot in LU factorisation)",
            matrix_name=name,
            determinant=0.0,
        )

    inv = sla.lu_solve((lu, piv), np.eye(n), check_finite=False)
    if not np.all(np.isfinite(inv)):
        raise SingularMatrixError(
            f"{name}: inverse has non-finite entries",
            matrix_name=name,
        )
    return inv


def inverse(
    A: ArrayLike,
    method: InverseMethod = 'cofactor',
    name: str = 'A',
) -> NDArray[np.floating[Any]]:
    """
    Invert a square matrix with the chosen strategy.

    Args:
        A: Square, non-singular matrix
        method: 'cofactor' (default) or 'lu'
        name: Matrix name used in error messages

    Raises:
        ValueError: If method is unknown
        SingularMatrixError: If A is singular
    """
    if method == 'cofactor':
        return cofactor_inverse(A, name=name)
    elif method == 'lu':
        return lu_inverse(A, name=name)
    else:
        raise ValueError(f"Unknown inverse method: {method!r}")
