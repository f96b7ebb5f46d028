"""
Linear algebra kernels for PyPolyFit.

All functions follow these conventions:
    - Inputs are array-likes, converted to float64 NumPy arrays
    - Shapes are checked and DimensionError raised on mismatch
    - Singular matrices raise SingularMatrixError, never return Inf/NaN

Submodules:
    dense: transpose, products, determinant, cofactor and LU inverses
"""

from pypolyfit.core.compute.linalg.dense import (
    InverseMethod,
    transpose,
    multiply,
    multiply_vector,
    determinant,
    minor,
    cofactor_matrix,
    cofactor_inverse,
    lu_inverse,
    inverse,
)

__all__ = [
    "InverseMethod",
    "transpose",
    "multiply",
    "multiply_vector",
    "determinant",
    "minor",
    "cofactor_matrix",
    "cofactor_inverse",
    "lu_inverse",
    "inverse",
]
