"""
Polynomial regression design.

PolyDesign holds the samples (x, y), the weight matrix and the model
choice (degree, fixed intercept) and builds the design matrix. It is the
validation boundary: everything downstream trusts it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pypolyfit.core.datasource import DataSource
from pypolyfit.core.exceptions import ValidationError
from pypolyfit.core.validation import (
    check_1d,
    check_array,
    check_consistent_length,
    check_degree,
    check_finite,
    check_min_samples,
)
from pypolyfit.regression.weights import WeightMode, check_weights, weights as build_weights


@dataclass(frozen=True)
class PolyDesign:
    """
    Weighted polynomial regression specification.

    Immutable after construction.

    Construction:
        PolyDesign.build(x, y, degree=2)
        PolyDesign.build(x, y, degree=2, errors=sigma, weight_mode='inverse_variance')
        PolyDesign.build(x, y, degree=1, fixed_intercept=True, intercept_value=3.0)
        PolyDesign.from_datasource(ds, degree=2)
    """
    _x: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _W: NDArray[np.floating[Any]]
    _w: NDArray[np.floating[Any]]
    _degree: int
    _fixed_intercept: bool
    _intercept_value: float
    _source: DataSource | None = None

    @classmethod
    def build(
        cls,
        x: ArrayLike,
        y: ArrayLike,
        degree: int,
        *,
        weights: ArrayLike | None = None,
        errors: ArrayLike | None = None,
        weight_mode: WeightMode | str | int = WeightMode.NONE,
        fixed_intercept: bool = False,
        intercept_value: float = 0.0,
        source: DataSource | None = None,
    ) -> PolyDesign:
        """
        Validate inputs and build the design.

        Args:
            x: Independent variable (N,)
            y: Response (N,)
            degree: Polynomial degree k
            weights: Explicit N x N diagonal weight matrix. Mutually
                exclusive with errors/weight_mode
            errors: Per-point error values used with weight_mode
            weight_mode: 'none', 'sigma' or 'inverse_variance'
            fixed_intercept: Pin the x^0 coefficient to intercept_value
            intercept_value: Value of the pinned intercept

        Raises:
            ValidationError: Bad shapes, non-finite data, or degree larger
                than the available degrees of freedom
            SingularMatrixError: A zero on the weight diagonal
        """
        x_arr = check_array(x, 'x')
        y_arr = check_array(y, 'y')
        if y_arr.ndim == 2 and y_arr.shape[1] == 1:
            y_arr = y_arr.ravel()
        check_1d(x_arr, 'x')
        check_1d(y_arr, 'y')
        check_finite(x_arr, 'x')
        check_finite(y_arr, 'y')
        check_consistent_length(x_arr, y_arr, names=('x', 'y'))
        check_min_samples(x_arr, 1, 'x')

        k = check_degree(degree)
        fixed = bool(fixed_intercept)
        intercept_value = float(intercept_value)
        if fixed and not np.isfinite(intercept_value):
            raise ValidationError(f"intercept_value: must be finite, got {intercept_value}")

        n = x_arr.shape[0]
        nstar = n if fixed else n - 1
        if k > nstar:
            raise ValidationError(
                f"degree: {k} is too high for {n} points. Max is {n - 1} with an "
                f"adjustable intercept and {n} with a fixed intercept."
            )

        if weights is not None:
            if errors is not None:
                raise ValidationError("Pass either weights or errors, not both")
            W = check_array(weights, 'weights')
        else:
            W = build_weights(errors, weight_mode, n=n)
        w = check_weights(W, n)

        return cls(
            _x=x_arr,
            _y=y_arr,
            _W=W,
            _w=w,
            _degree=k,
            _fixed_intercept=fixed,
            _intercept_value=intercept_value if fixed else 0.0,
            _source=source,
        )

    @classmethod
    def from_datasource(
        cls,
        source: DataSource,
        degree: int,
        *,
        x: str = 'x',
        y: str = 'y',
        errors: str | None = None,
        **kwargs: Any,
    ) -> PolyDesign:
        """
        Build from a DataSource.

        If `errors` is None and the source has an 'errors' array, it is used
        as the error column (it only matters when a weight_mode is given).
        """
        err = None
        if kwargs.get('weights') is None:
            if errors is None and 'errors' in source:
                errors = 'errors'
            if errors is not None:
                err = source[errors]
        return cls.build(source[x], source[y], degree, errors=err, source=source, **kwargs)

    # === Properties ===

    @property
    def x(self) -> NDArray[np.floating[Any]]:
        return self._x

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        return self._y

    @property
    def W(self) -> NDArray[np.floating[Any]]:
        """Weight matrix (N x N, diagonal)."""
        return self._W

    @property
    def w(self) -> NDArray[np.floating[Any]]:
        """Weight diagonal (N,)."""
        return self._w

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._x.shape[0]

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def n_coef(self) -> int:
        """Number of coefficients, k + 1."""
        return self._degree + 1

    @property
    def fixed_intercept(self) -> bool:
        return self._fixed_intercept

    @property
    def intercept_value(self) -> float:
        return self._intercept_value

    @property
    def nstar(self) -> int:
        """N with a fixed intercept, N - 1 otherwise."""
        return self.n if self._fixed_intercept else self.n - 1

    @property
    def df_error(self) -> int:
        """Error degrees of freedom, nstar - k."""
        return self.nstar - self._degree

    @property
    def is_exact_fit(self) -> bool:
        """True when the degree uses every degree of freedom."""
        return self.df_error == 0

    @property
    def source(self) -> DataSource | None:
        return self._source

    def design_matrix(self) -> NDArray[np.floating[Any]]:
        """
        Design matrix X (N x (k+1)) with X[i, j] = x_i ** j.

        With a fixed intercept, column 0 is left at zero so that the pinned
        row and column of X'WX reduce to the unit vector.
        """
        X = self._x[:, np.newaxis] ** np.arange(self.n_coef)
        if self._fixed_intercept:
            X[:, 0] = 0.0
        return X

    def response(self) -> NDArray[np.floating[Any]]:
        """y, less the pinned intercept when it is fixed."""
        if self._fixed_intercept:
            return self._y - self._intercept_value
        return self._y
