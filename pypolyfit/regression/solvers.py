"""
Solver dispatch for polynomial regression.

This module provides the fit() function (public API) and backend selection.
"""

import logging
from typing import Literal
from numpy.typing import ArrayLike

from pypolyfit.core.compute.tolerances import DEFAULT_ALPHA
from pypolyfit.core.datasource import DataSource
from pypolyfit.core.validation import check_probability
from pypolyfit.regression.backends.cpu import CPUNormalEquationsBackend
from pypolyfit.regression.design import PolyDesign
from pypolyfit.regression.solution import PolySolution
from pypolyfit.regression.weights import WeightMode


# Type alias for backend selection
MethodChoice = Literal['cofactor', 'lu']


def fit(
    x: 'ArrayLike | DataSource | PolyDesign',
    y: ArrayLike | None = None,
    degree: int | None = None,
    *,
    errors: ArrayLike | None = None,
    weight_mode: WeightMode | str | int = WeightMode.NONE,
    weights: ArrayLike | None = None,
    fixed_intercept: bool = False,
    intercept_value: float = 0.0,
    alpha: float = DEFAULT_ALPHA,
    method: MethodChoice = 'cofactor',
    logger: logging.Logger | None = None,
) -> PolySolution:
    """
    Fit a polynomial of the given degree by weighted least squares.

    Solves
        min_beta  sum_i w_i (y_i - sum_j beta_j x_i^j)^2
    optionally with beta_0 pinned to intercept_value.

    This is the primary public API. All input validation, backend selection
    and result wrapping happens here.

    Args:
        x: Independent variable (N,), a DataSource with 'x' and 'y'
            (and optionally 'errors'), or a ready PolyDesign
        y: Response (N,). Omit when x is a DataSource or PolyDesign
        degree: Polynomial degree k. Omit when x is a PolyDesign
        errors: Per-point error values for weight_mode
        weight_mode: 'none' (default), 'sigma' or 'inverse_variance'
        weights: Explicit diagonal N x N weight matrix instead of errors
        fixed_intercept: Pin the x^0 coefficient
        intercept_value: The pinned value
        alpha: Significance level for t_critical and intervals
        method: Gram-matrix inversion, 'cofactor' (default) or 'lu'
        logger: Receives the solver's DEBUG diagnostics

    Returns:
        PolySolution with coefficients, inference report and summary()

    Raises:
        ValidationError: Invalid inputs, or degree > nstar
        DimensionError: x and y lengths differ
        SingularMatrixError: A zero weight, or a singular X'WX

    Example:
        >>> from pypolyfit.regression import fit
        >>> result = fit([0, 1, 2, 3], [1, 3, 5, 7], degree=1)
        >>> result.coefficients        # approximately [1, 2]
        >>> print(result.summary())
    """
    # === Input Validation ===
    # This is the boundary - validate here, trust everywhere else
    check_probability(alpha, 'alpha')

    # === Construct Design ===
    if isinstance(x, PolyDesign):
        design = x
    else:
        if degree is None:
            raise ValueError("degree required")
        options = dict(
            weights=weights,
            weight_mode=weight_mode,
            fixed_intercept=fixed_intercept,
            intercept_value=intercept_value,
        )
        if isinstance(x, DataSource):
            if errors is not None:
                raise ValueError("errors come from the DataSource; pass them there")
            design = PolyDesign.from_datasource(x, degree, **options)
        else:
            if y is None:
                raise ValueError("y required when x is an array")
            design = PolyDesign.build(x, y, degree, errors=errors, **options)

    # === Select Backend ===
    backend_impl = _get_backend(method, logger)

    # === Solve ===
    result = backend_impl.solve(design)

    # === Wrap and Return ===
    return PolySolution(_result=result, _design=design, _alpha=alpha)


def _get_backend(choice: MethodChoice, logger: logging.Logger | None):
    """
    Select and instantiate the backend for an inversion strategy.

    Raises:
        ValueError: If unknown method specified
    """
    if choice in ('cofactor', 'lu'):
        return CPUNormalEquationsBackend(method=choice, logger=logger)
    else:
        raise ValueError(f"Unknown method: {choice!r}")
