"""
Statistical inference for a weighted polynomial fit.

Everything here is a pure function of the samples, the coefficients, the
weight matrix and the Gram inverse (X'WX)^-1 produced by the solver:

    RSS   = sum_i w_i (y_i - yhat_i)^2
    TSS   = sum_i w_i (y_i - ybar_w)^2      (sum_i w_i y_i^2 with a fixed intercept)
    SE    = sqrt(RSS / (nstar - k))
    SE_i  = SE * sqrt([(X'WX)^-1]_ii)
    t_i   = beta_i / SE_i,  p_i = 2 (1 - F_t(|t_i|; nstar - k))
    F     = ((TSS - RSS) / k) / (RSS / (nstar - k))

Divisions by zero (TSS = 0, SE_i = 0, nstar = k) are carried out under
np.errstate and produce NaN/Inf. They are never replaced by numbers;
stats() records a message for each one in InferenceReport.warnings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pypolyfit.core.compute.special import fisher_cdf, student_cdf, student_t_quantile
from pypolyfit.core.compute.tolerances import (
    BAND_POINTS,
    DEFAULT_ALPHA,
    DEFAULT_SPECIAL_FUNCTION_SETTINGS,
    SpecialFunctionSettings,
)
from pypolyfit.core.validation import check_probability

if TYPE_CHECKING:
    import pandas as pd


BAND_COLUMNS = ('x', 'y', 'CIlow', 'CIhi', 'PredLo', 'PredHi')


# =====================================================================
# Result containers
# =====================================================================


@dataclass(frozen=True)
class AnovaTable:
    """Regression ANOVA decomposition (model, error, total)."""
    df_model: int
    df_error: int
    df_total: int
    ss_model: float
    ss_error: float
    ss_total: float
    ms_model: float
    ms_error: float
    f_value: float
    p_value: float

    @property
    def is_valid(self) -> bool:
        return bool(np.isfinite(self.f_value) and np.isfinite(self.p_value))


@dataclass(frozen=True)
class ConfidenceBands:
    """
    Pointwise confidence and prediction bands on an evenly spaced x grid.

    Columns follow the band table layout:
    x, y, CIlow, CIhi, PredLo, PredHi.
    """
    x: NDArray[np.floating[Any]]
    y: NDArray[np.floating[Any]]
    ci_low: NDArray[np.floating[Any]]
    ci_high: NDArray[np.floating[Any]]
    pred_low: NDArray[np.floating[Any]]
    pred_high: NDArray[np.floating[Any]]

    def __len__(self) -> int:
        return self.x.shape[0]

    def __iter__(self) -> Iterator[tuple[float, float, float, float, float, float]]:
        """Rows (x*, yhat, ciLow, ciHigh, predLow, predHigh) in x order."""
        for row in self.as_array():
            yield tuple(float(v) for v in row)

    def as_array(self) -> NDArray[np.floating[Any]]:
        """(n_points x 6) array in band table column order."""
        return np.column_stack(
            [self.x, self.y, self.ci_low, self.ci_high, self.pred_low, self.pred_high]
        )

    def to_frame(self) -> 'pd.DataFrame':
        """Bands as a pandas DataFrame with columns x, y, CIlow, CIhi, PredLo, PredHi."""
        import pandas as pd
        return pd.DataFrame(self.as_array(), columns=list(BAND_COLUMNS))

    def write(self, path: str | Path) -> Path:
        """Write the bands as a tab-separated table with a header row."""
        path = Path(path)
        self.to_frame().to_csv(path, sep='\t', index=False)
        return path


@dataclass(frozen=True)
class InferenceReport:
    """
    Every derived statistic of a fit.

    Attributes whose computation divided by zero hold NaN or Inf; each such
    case is described in `warnings`, and `is_valid` is False.
    """
    rss: float
    tss: float
    r_squared: float
    adjusted_r_squared: float
    standard_error: float
    df_error: int
    alpha: float
    t_critical: float
    coefficients: NDArray[np.floating[Any]]
    standard_errors: NDArray[np.floating[Any]]
    t_values: NDArray[np.floating[Any]]
    p_values: NDArray[np.floating[Any]]
    anova: AnovaTable
    covariance: NDArray[np.floating[Any]]
    correlation: NDArray[np.floating[Any]]
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.warnings

    @property
    def conf_int(self) -> NDArray[np.floating[Any]]:
        """(k+1) x 2 coefficient intervals beta -/+ t_critical * SE_i."""
        return coefficient_confidence_intervals(
            self.coefficients, self.standard_errors, self.t_critical
        )


# =====================================================================
# Polynomial evaluation
# =====================================================================


def _diagonal(W: ArrayLike) -> NDArray[np.floating[Any]]:
    """Weight diagonal from either the N x N matrix or the diagonal itself."""
    W = np.asarray(W, dtype=np.float64)
    return np.diag(W) if W.ndim == 2 else W


def vandermonde(x: ArrayLike, degree: int) -> NDArray[np.floating[Any]]:
    """Rows (1, x, x^2, ..., x^k) for every x."""
    x = np.asarray(x, dtype=np.float64)
    return x[..., np.newaxis] ** np.arange(degree + 1)


def evaluate_polynomial(beta: ArrayLike, x: ArrayLike) -> NDArray[np.floating[Any]]:
    """sum_j beta_j x^j, elementwise over x."""
    beta = np.asarray(beta, dtype=np.float64)
    return vandermonde(x, beta.shape[0] - 1) @ beta


def polynomial_derivative(beta: ArrayLike, x: ArrayLike) -> NDArray[np.floating[Any]]:
    """First derivative sum_j j beta_j x^(j-1), elementwise over x."""
    beta = np.asarray(beta, dtype=np.float64)
    x = np.asarray(x, dtype=np.float64)
    if beta.shape[0] < 2:
        return np.zeros_like(x)
    dbeta = beta[1:] * np.arange(1, beta.shape[0])
    return evaluate_polynomial(dbeta, x)


# =====================================================================
# Goodness of fit
# =====================================================================


def residual_sum_of_squares(
    x: ArrayLike,
    y: ArrayLike,
    beta: ArrayLike,
    W: ArrayLike,
) -> float:
    """Weighted residual sum of squares."""
    y = np.asarray(y, dtype=np.float64)
    r = y - evaluate_polynomial(beta, x)
    return float(np.sum(_diagonal(W) * r * r))


def total_sum_of_squares(y: ArrayLike, W: ArrayLike, fixed_intercept: bool) -> float:
    """
    Weighted total sum of squares.

    Uncentered (sum w y^2) with a fixed intercept, centered on the
    weighted mean otherwise.
    """
    y = np.asarray(y, dtype=np.float64)
    w = _diagonal(W)
    if fixed_intercept:
        return float(np.sum(w * y * y))
    ybar = np.sum(w * y) / np.sum(w)
    r = y - ybar
    return float(np.sum(w * r * r))


def _ratio(num: float, den: float) -> float:
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.float64(num) / np.float64(den))


def r_squared(rss: float, tss: float) -> float:
    """Coefficient of determination 1 - RSS/TSS (NaN/-Inf when TSS = 0)."""
    return 1.0 - _ratio(rss, tss)


def adjusted_r_squared(
    rss: float,
    tss: float,
    n: int,
    degree: int,
    fixed_intercept: bool,
) -> float:
    """
    1 - (dftot / dferr) * RSS / TSS.

    dferr = N - (k + 1) and dftot = N - 1, both one larger with a fixed
    intercept.
    """
    dferr = n - (degree + 1)
    dftot = n - 1
    if fixed_intercept:
        dferr += 1
        dftot += 1
    return 1.0 - _ratio(dftot, dferr) * _ratio(rss, tss)


# =====================================================================
# Coefficient inference
# =====================================================================


def standard_error(rss: float, nstar: int, degree: int) -> float:
    """sqrt(RSS / (nstar - k)); 0.0 for an exact fit (nstar == k)."""
    if nstar > degree:
        return float(np.sqrt(rss / (nstar - degree)))
    return 0.0


def coefficient_standard_errors(
    se: float,
    gram_inverse: ArrayLike,
    fixed_intercept: bool,
) -> NDArray[np.floating[Any]]:
    """SE * sqrt(diag((X'WX)^-1)); index 0 is 0 when the intercept is fixed."""
    diag = np.diag(np.asarray(gram_inverse, dtype=np.float64))
    with np.errstate(invalid='ignore'):
        se_beta = se * np.sqrt(diag)
    if fixed_intercept:
        se_beta[0] = 0.0
    return se_beta


def critical_t(
    df: int,
    alpha: float = DEFAULT_ALPHA,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> float:
    """
    Two-sided critical value |t_{1 - alpha/2, df}|.

    0.0 when df <= 0 (exact fit, no error degrees of freedom). NaN if the
    quantile could not be computed.
    """
    if df <= 0:
        return 0.0
    return abs(student_t_quantile(df, 1.0 - 0.5 * alpha, settings))


def coefficient_tests(
    beta: ArrayLike,
    se_beta: ArrayLike,
    df: int,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
    """
    t statistics and two-sided p-values, 2 (1 - F_t(|t|; df)).

    Coefficients with a zero (or NaN) standard error, and every coefficient
    when df <= 0, get NaN for both.
    """
    beta = np.asarray(beta, dtype=np.float64)
    se_beta = np.asarray(se_beta, dtype=np.float64)
    t_values = np.full(beta.shape, np.nan)
    p_values = np.full(beta.shape, np.nan)
    if df <= 0:
        return t_values, p_values

    for i, (b, s) in enumerate(zip(beta, se_beta)):
        if s > 0.0:
            t = b / s
            t_values[i] = t
            p_values[i] = 2.0 * (1.0 - student_cdf(df, abs(t), settings))
    return t_values, p_values


def coefficient_confidence_intervals(
    beta: ArrayLike,
    se_beta: ArrayLike,
    t_critical: float,
) -> NDArray[np.floating[Any]]:
    """(k+1) x 2 array of [beta - t SE, beta + t SE]."""
    beta = np.asarray(beta, dtype=np.float64)
    half = t_critical * np.asarray(se_beta, dtype=np.float64)
    return np.column_stack([beta - half, beta + half])


def anova(
    tss: float,
    rss: float,
    nstar: int,
    degree: int,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> AnovaTable:
    """
    Regression ANOVA.

    MS_reg = (TSS - RSS) / k, MS_err = RSS / (nstar - k),
    F = MS_reg / MS_err, p = 1 - F_F(F; k, nstar - k).
    """
    df_model = degree
    df_error = nstar - degree
    ss_model = tss - rss
    ms_model = _ratio(ss_model, df_model)
    ms_error = _ratio(rss, df_error)
    f_value = _ratio(ms_model, ms_error)

    if df_model > 0 and df_error > 0 and not np.isnan(f_value):
        p_value = 1.0 - fisher_cdf(df_model, df_error, f_value, settings)
    else:
        p_value = float('nan')

    return AnovaTable(
        df_model=df_model,
        df_error=df_error,
        df_total=nstar,
        ss_model=float(ss_model),
        ss_error=float(rss),
        ss_total=float(tss),
        ms_model=ms_model,
        ms_error=ms_error,
        f_value=f_value,
        p_value=p_value,
    )


def covariance_matrix(
    se: float,
    gram_inverse: ArrayLike,
    fixed_intercept: bool,
) -> NDArray[np.floating[Any]]:
    """SE^2 (X'WX)^-1, with [0, 0] set to 1 when the intercept is fixed."""
    cov = se * se * np.array(gram_inverse, dtype=np.float64, copy=True)
    if fixed_intercept:
        cov[0, 0] = 1.0
    return cov


def correlation_matrix(cov: ArrayLike) -> NDArray[np.floating[Any]]:
    """cov_ij / sqrt(cov_ii cov_jj)."""
    cov = np.asarray(cov, dtype=np.float64)
    with np.errstate(divide='ignore', invalid='ignore'):
        d = np.sqrt(np.diag(cov))
        return cov / np.outer(d, d)


# =====================================================================
# Bands
# =====================================================================


def confidence_bands(
    x: ArrayLike,
    beta: ArrayLike,
    gram_inverse: ArrayLike,
    t_critical: float,
    se: float,
    degree: int,
    *,
    n_points: int = BAND_POINTS,
) -> ConfidenceBands:
    """
    Confidence and prediction bands over n_points evenly spaced x values
    spanning [min(x), max(x)].

    For each x*, with leverage h = v' (X'WX)^-1 v and v = (1, x*, ..., x*^k):

        CI = yhat -/+ t SE sqrt(h)
        PI = yhat -/+ t SE sqrt(1 + h)

    The full v is used for a fixed intercept too, where (X'WX)^-1[0, 0] = 1.
    A leverage that rounds below zero is clipped to zero.
    """
    x = np.asarray(x, dtype=np.float64)
    beta = np.asarray(beta, dtype=np.float64)
    G = np.asarray(gram_inverse, dtype=np.float64)

    grid = np.linspace(x.min(), x.max(), n_points)
    V = vandermonde(grid, degree)
    yhat = V @ beta

    leverage = np.clip(np.einsum('ij,jk,ik->i', V, G, V), 0.0, None)
    half_ci = t_critical * se * np.sqrt(leverage)
    half_pi = t_critical * se * np.sqrt(1.0 + leverage)

    return ConfidenceBands(
        x=grid,
        y=yhat,
        ci_low=yhat - half_ci,
        ci_high=yhat + half_ci,
        pred_low=yhat - half_pi,
        pred_high=yhat + half_pi,
    )


# =====================================================================
# Full report
# =====================================================================


def stats(
    x: ArrayLike,
    y: ArrayLike,
    beta: ArrayLike,
    W: ArrayLike,
    gram_inverse: ArrayLike,
    fixed_intercept: bool,
    degree: int,
    alpha: float = DEFAULT_ALPHA,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> InferenceReport:
    """
    Compute every derived statistic of a fit.

    Raises:
        ValidationError: If alpha is not in (0, 1)
    """
    check_probability(alpha, 'alpha')
    x = np.asarray(x, dtype=np.float64)
    beta = np.asarray(beta, dtype=np.float64)
    n = x.shape[0]
    nstar = n if fixed_intercept else n - 1
    df = nstar - degree
    warnings_list: list[str] = []

    rss = residual_sum_of_squares(x, y, beta, W)
    tss = total_sum_of_squares(y, W, fixed_intercept)
    r2 = r_squared(rss, tss)
    r2_adj = adjusted_r_squared(rss, tss, n, degree, fixed_intercept)

    if tss == 0.0:
        warnings_list.append("total sum of squares is zero; R-squared is undefined")
    elif not np.isfinite(r2):
        warnings_list.append(f"R-squared is not finite ({r2})")
    if df <= 0:
        warnings_list.append(
            "exact fit: no error degrees of freedom; standard errors are 0 "
            "and t/F tests are undefined"
        )
    elif tss != 0.0 and not np.isfinite(r2_adj):
        warnings_list.append(f"adjusted R-squared is not finite ({r2_adj})")

    se = standard_error(rss, nstar, degree)
    se_beta = coefficient_standard_errors(se, gram_inverse, fixed_intercept)
    t_crit = critical_t(df, alpha, settings)
    t_values, p_values = coefficient_tests(beta, se_beta, df, settings)

    if df > 0:
        if np.isnan(t_crit):
            warnings_list.append("critical t-value could not be computed")
        first = 1 if fixed_intercept else 0
        for i in range(first, beta.shape[0]):
            if not np.isfinite(se_beta[i]):
                warnings_list.append(f"A{i}: standard error is not finite")
            elif se_beta[i] == 0.0:
                warnings_list.append(f"A{i}: standard error is zero; t statistic is undefined")
            elif not np.isfinite(p_values[i]):
                warnings_list.append(f"A{i}: p-value could not be computed")

    table = anova(tss, rss, nstar, degree, settings)
    if df > 0 and degree > 0 and not table.is_valid:
        warnings_list.append(
            f"ANOVA F test is undefined (F={table.f_value}, p={table.p_value})"
        )

    cov = covariance_matrix(se, gram_inverse, fixed_intercept)
    corr = correlation_matrix(cov)
    if df > 0 and not np.all(np.isfinite(corr)):
        warnings_list.append("correlation matrix has non-finite entries")

    return InferenceReport(
        rss=rss,
        tss=tss,
        r_squared=r2,
        adjusted_r_squared=r2_adj,
        standard_error=se,
        df_error=df,
        alpha=alpha,
        t_critical=t_crit,
        coefficients=beta,
        standard_errors=se_beta,
        t_values=t_values,
        p_values=p_values,
        anova=table,
        covariance=cov,
        correlation=corr,
        warnings=tuple(warnings_list),
    )
