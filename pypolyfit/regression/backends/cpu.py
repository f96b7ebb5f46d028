"""
CPU backend for weighted polynomial least squares.

Solves the normal equations

    (X'WX) beta = X'W y

by explicitly inverting the Gram matrix X'WX, because the inverse itself is
needed afterwards for every coefficient variance and for the bands. The
inversion strategy ('cofactor' or 'lu') is chosen at construction.
"""

import logging
from typing import Any

from pypolyfit.core.compute.linalg import (
    InverseMethod,
    inverse,
    multiply,
    multiply_vector,
    transpose,
)
from pypolyfit.core.compute.timing import Timer
from pypolyfit.core.result import Result
from pypolyfit.regression._inference import (
    evaluate_polynomial,
    residual_sum_of_squares,
    total_sum_of_squares,
)
from pypolyfit.regression.design import PolyDesign
from pypolyfit.regression.solution import PolyParams


class CPUNormalEquationsBackend:
    """
    CPU backend solving the weighted normal equations.

    Implements design -> Result[PolyParams]. Preconditions (degree within
    the degrees of freedom, non-singular weights) are guaranteed by
    PolyDesign and are not re-checked here.

    Intermediate matrices are logged at DEBUG level on the injected logger
    (this module's logger by default); nothing is printed.
    """

    def __init__(self, method: InverseMethod = 'cofactor', logger: logging.Logger | None = None):
        self._method = method
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return f'cpu_{self._method}'

    def solve(self, design: PolyDesign) -> Result[PolyParams]:
        """
        Fit the polynomial.

        Algorithm:
            1. X[i, j] = x_i^j (column 0 zeroed for a fixed intercept)
            2. G = X'W X; with a fixed intercept G[0, 0] = 1
            3. G^-1 by the configured strategy
            4. beta = G^-1 (X'W y'), y' = y - c for a fixed intercept c;
               beta[0] = c when fixed

        Raises:
            SingularMatrixError: If X'WX is singular
        """
        log = self._logger
        timer = Timer()
        timer.start()

        with timer.section('design'):
            X = design.design_matrix()
            XT = transpose(X)
            XTW = multiply(XT, design.W)

        with timer.section('gram_matrix'):
            gram = multiply(XTW, X)
            if design.fixed_intercept:
                gram[0, 0] = 1.0

        with timer.section('inverse'):
            gram_inverse = inverse(gram, method=self._method, name="X'WX")

        with timer.section('solve'):
            XTWy = multiply_vector(XTW, design.response())
            coefficients = multiply_vector(gram_inverse, XTWy)
            if design.fixed_intercept:
                coefficients[0] = design.intercept_value

        if log.isEnabledFor(logging.DEBUG):
            log.debug("Matrix X %s:\n%s", X.shape, X)
            log.debug("Matrix X' %s:\n%s", XT.shape, XT)
            log.debug("Matrix X'W %s:\n%s", XTW.shape, XTW)
            log.debug("Matrix (X'WX)^-1 %s:\n%s", gram_inverse.shape, gram_inverse)

        with timer.section('statistics'):
            fitted_values = evaluate_polynomial(coefficients, design.x)
            residuals = design.y - fitted_values
            rss = residual_sum_of_squares(design.x, design.y, coefficients, design.w)
            tss = total_sum_of_squares(design.y, design.w, design.fixed_intercept)

        timer.stop()

        params = PolyParams(
            coefficients=coefficients,
            gram_inverse=gram_inverse,
            fitted_values=fitted_values,
            residuals=residuals,
            rss=rss,
            tss=tss,
            nstar=design.nstar,
            df_error=design.df_error,
        )

        info: dict[str, Any] = {
            'method': self._method,
            'degree': design.degree,
            'n': design.n,
            'nstar': design.nstar,
            'fixed_intercept': design.fixed_intercept,
        }

        warnings: tuple[str, ...] = ()
        if design.is_exact_fit:
            warnings = (
                "exact fit: the degree equals the available degrees of freedom",
            )

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=warnings,
        )
