"""
Weighted polynomial regression with inference.

Public API:
    fit(x, y, degree, ...) -> PolySolution
    weights(errors, mode) -> N x N weight matrix
    stats(x, y, beta, W, gram_inverse, fixed_intercept, degree, alpha) -> InferenceReport
    confidence_bands(x, beta, gram_inverse, t_critical, se, degree) -> ConfidenceBands

The fit() function handles:
    - Input validation (degree vs. degrees of freedom, singular weights)
    - Design construction
    - Backend selection
    - Result wrapping

Example:
    >>> from pypolyfit.regression import fit
    >>> result = fit(x, y, degree=2, errors=sigma, weight_mode='inverse_variance')
    >>> print(result.coefficients)
    >>> print(result.summary())
    >>> result.confidence_bands().write('bands.dat')
"""

from pypolyfit.regression.design import PolyDesign
from pypolyfit.regression.weights import WeightMode, weights, weight_diagonal, check_weights
from pypolyfit.regression.solution import PolySolution, PolyParams
from pypolyfit.regression.solvers import fit
from pypolyfit.regression._inference import (
    AnovaTable,
    ConfidenceBands,
    InferenceReport,
    adjusted_r_squared,
    anova,
    coefficient_confidence_intervals,
    coefficient_standard_errors,
    coefficient_tests,
    confidence_bands,
    correlation_matrix,
    covariance_matrix,
    critical_t,
    evaluate_polynomial,
    polynomial_derivative,
    r_squared,
    residual_sum_of_squares,
    standard_error,
    stats,
    total_sum_of_squares,
)

__all__ = [
    "fit",
    "weights",
    "weight_diagonal",
    "check_weights",
    "WeightMode",
    "PolyDesign",
    "PolySolution",
    "PolyParams",
    "stats",
    "confidence_bands",
    "InferenceReport",
    "AnovaTable",
    "ConfidenceBands",
    "residual_sum_of_squares",
    "total_sum_of_squares",
    "r_squared",
    "adjusted_r_squared",
    "standard_error",
    "coefficient_standard_errors",
    "critical_t",
    "coefficient_tests",
    "coefficient_confidence_intervals",
    "anova",
    "covariance_matrix",
    "correlation_matrix",
    "evaluate_polynomial",
    "polynomial_derivative",
]
