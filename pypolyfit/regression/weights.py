"""
Weight matrices for weighted least squares.

A weight matrix is diagonal (N x N). Its diagonal is derived from one error
value per point and a weighting mode:

    NONE              w_i = 1
    SIGMA             w_i = e_i
    INVERSE_VARIANCE  w_i = 1 / e_i^2, or 0 if e_i <= 0

A zero on the diagonal marks a point that cannot be used and makes the
matrix singular; check_weights() rejects it before any fit is attempted.
"""

from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pypolyfit.core.exceptions import SingularMatrixError, ValidationError
from pypolyfit.core.validation import check_1d, check_array, check_finite, check_square


class WeightMode(Enum):
    NONE = 0
    SIGMA = 1
    INVERSE_VARIANCE = 2

    @classmethod
    def parse(cls, mode: 'WeightMode | str | int') -> 'WeightMode':
        """
        Accept a WeightMode, its name ('none', 'sigma', 'inverse_variance')
        or its integer code (0, 1, 2).

        Raises:
            ValidationError: If mode is not recognised
        """
        if isinstance(mode, cls):
            return mode
        if isinstance(mode, str):
            key = mode.strip().upper().replace('-', '_')
            if key in cls.__members__:
                return cls[key]
        elif isinstance(mode, int) and not isinstance(mode, bool):
            try:
                return cls(mode)
            except ValueError:
                pass
        valid = ", ".join(m.name.lower() for m in cls)
        raise ValidationError(f"Unknown weight mode {mode!r}. Valid: {valid}")


def weight_diagonal(
    error_values: ArrayLike | None,
    mode: WeightMode | str | int = WeightMode.NONE,
    n: int | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Diagonal of the weight matrix.

    Args:
        error_values: One error value per point. May be None for NONE,
            in which case n is required
        mode: Weighting mode
        n: Number of points when error_values is None

    Returns:
        Array of N weights
    """
    mode = WeightMode.parse(mode)

    if error_values is None:
        if mode is not WeightMode.NONE:
            raise ValidationError(f"error_values required for weight mode {mode.name.lower()}")
        if n is None:
            raise ValidationError("n required when error_values is None")
        return np.ones(n, dtype=np.float64)

    errors = check_array(error_values, 'error_values')
    check_1d(errors, 'error_values')
    check_finite(errors, 'error_values')
    if n is not None and errors.shape[0] != n:
        raise ValidationError(
            f"error_values: expected {n} values, got {errors.shape[0]}"
        )

    if mode is WeightMode.NONE:
        return np.ones_like(errors)
    elif mode is WeightMode.SIGMA:
        return errors.copy()
    else:
        w = np.zeros_like(errors)
        positive = errors > 0.0
        w[positive] = 1.0 / (errors[positive] * errors[positive])
        return w


def weights(
    error_values: ArrayLike | None,
    mode: WeightMode | str | int = WeightMode.NONE,
    n: int | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Build the N x N diagonal weight matrix.

    Example:
        >>> weights([0.1, 0.2, 0.5], 'inverse_variance')
        array([[100.,   0.,   0.],
               [  0.,  25.,   0.],
               [  0.,   0.,   4.]])
    """
    return np.diag(weight_diagonal(error_values, mode, n))


def check_weights(W: ArrayLike, n: int | None = None) -> NDArray[np.floating[Any]]:
    """
    Validate a weight matrix and return its diagonal.

    The matrix must be square, finite and diagonal. Its determinant is the
    product of the diagonal, so it is singular exactly when some diagonal
    entry is zero; that is tested directly rather than by elimination,
    which would also underflow or overflow for large N.

    Raises:
        DimensionError: If W is not square or not N x N
        ValidationError: If W is non-finite or has off-diagonal entries
        SingularMatrixError: If any diagonal entry is zero
    """
    W = check_array(W, 'weights')
    check_square(W, 'weights')
    check_finite(W, 'weights')
    if n is not None and W.shape[0] != n:
        raise ValidationError(
            f"weights: expected {n}x{n} matrix, got {W.shape[0]}x{W.shape[1]}"
        )

    diag = np.diag(W).copy()
    if np.any(W - np.diag(diag)):
        raise ValidationError("weights: matrix must be diagonal")

    zero = np.flatnonzero(diag == 0.0)
    if zero.size > 0:
        raise SingularMatrixError(
            f"weights: {zero.size} point(s) have zero weight (indices {zero.tolist()}). "
            f"Review the errors on these points or use no weighting.",
            matrix_name='weights',
            determinant=0.0,
            indices=tuple(int(i) for i in zero),
        )
    return diag
