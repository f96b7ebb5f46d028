"""
Shared compute infrastructure for PyPolyFit.

IMPORTANT: This is NOT where the regression backend lives. That goes in
regression/backends/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Named numerical settings and tolerance tiers
    special: Incomplete beta function, Student-t and Fisher-F
    linalg: Dense matrix kernels (determinant, cofactor and LU inverses)
"""

from pypolyfit.core.compute.timing import Timer
from pypolyfit.core.compute.tolerances import (
    SpecialFunctionSettings,
    DEFAULT_SPECIAL_FUNCTION_SETTINGS,
)
from pypolyfit.core.compute.special import (
    incomplete_beta,
    inverse_incomplete_beta,
    student_t_quantile,
    student_cdf,
    fisher_cdf,
)

__all__ = [
    # Timing
    "Timer",
    # Settings
    "SpecialFunctionSettings",
    "DEFAULT_SPECIAL_FUNCTION_SETTINGS",
    # Special functions
    "incomplete_beta",
    "inverse_incomplete_beta",
    "student_t_quantile",
    "student_cdf",
    "fisher_cdf",
]
