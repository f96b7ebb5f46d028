"""
Core infrastructure for PyPolyFit.

This module provides shared abstractions and numerical kernels used by the
regression submodule.

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    datasource: Named-array container with CSV loading
    compute: Timing, settings, special functions, dense linear algebra
"""

from pypolyfit.core.result import Result
from pypolyfit.core.datasource import DataSource
from pypolyfit.core.exceptions import (
    PolyFitError,
    ValidationError,
    DimensionError,
    NumericalError,
    SingularMatrixError,
)

__all__ = [
    # Data
    "DataSource",
    # Result
    "Result",
    # Exceptions
    "PolyFitError",
    "ValidationError",
    "DimensionError",
    "NumericalError",
    "SingularMatrixError",
]
