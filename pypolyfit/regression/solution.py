"""
Polynomial regression solution types.

Contains the parameter payload computed by the backend and the user-facing
solution wrapper that exposes the inference layer.
"""

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pypolyfit.core.compute.tolerances import BAND_POINTS, CURVE_STEP
from pypolyfit.core.result import Result
from pypolyfit.regression._inference import (
    AnovaTable,
    ConfidenceBands,
    InferenceReport,
    confidence_bands,
    evaluate_polynomial,
    polynomial_derivative,
    stats,
)

if TYPE_CHECKING:
    from pypolyfit.regression.design import PolyDesign


@dataclass(frozen=True)
class PolyParams:
    """
    Parameter payload for a polynomial fit.

    This is the immutable data computed by backends. gram_inverse is
    (X'WX)^-1 and is needed for every variance computed afterwards.
    """
    coefficients: NDArray[np.floating[Any]]
    gram_inverse: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    rss: float
    tss: float
    nstar: int
    df_error: int


@dataclass
class PolySolution:
    """
    User-facing polynomial fit results.

    Wraps the backend Result and computes the inference report on first
    access.
    """
    _result: Result[PolyParams]
    _design: 'PolyDesign'
    _alpha: float = 0.05

    # Cached computations
    _report: InferenceReport | None = None

    # === Fit ===

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        """beta, index i is the coefficient of x^i."""
        return self._result.params.coefficients

    @property
    def gram_inverse(self) -> NDArray[np.floating[Any]]:
        return self._result.params.gram_inverse

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def design(self) -> 'PolyDesign':
        return self._design

    @property
    def degree(self) -> int:
        return self._design.degree

    @property
    def fixed_intercept(self) -> bool:
        return self._design.fixed_intercept

    @property
    def nstar(self) -> int:
        return self._result.params.nstar

    @property
    def df_error(self) -> int:
        return self._result.params.df_error

    @property
    def alpha(self) -> float:
        return self._alpha

    # === Inference ===

    @property
    def report(self) -> InferenceReport:
        """All derived statistics, computed once."""
        if self._report is None:
            d = self._design
            self._report = stats(
                d.x, d.y, self.coefficients, d.w, self.gram_inverse,
                d.fixed_intercept, d.degree, self._alpha,
            )
        return self._report

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        return self._result.params.tss

    @property
    def r_squared(self) -> float:
        return self.report.r_squared

    @property
    def adjusted_r_squared(self) -> float:
        return self.report.adjusted_r_squared

    @property
    def standard_error(self) -> float:
        """Standard error of the fit (RMSE); 0.0 for an exact fit."""
        return self.report.standard_error

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        """Per-coefficient standard errors (0 for a fixed intercept)."""
        return self.report.standard_errors

    @property
    def t_statistics(self) -> NDArray[np.floating[Any]]:
        return self.report.t_values

    @property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Two-sided p-values, NaN where the standard error is zero."""
        return self.report.p_values

    @property
    def t_critical(self) -> float:
        return self.report.t_critical

    @property
    def anova(self) -> AnovaTable:
        return self.report.anova

    @property
    def covariance(self) -> NDArray[np.floating[Any]]:
        return self.report.covariance

    @property
    def correlation(self) -> NDArray[np.floating[Any]]:
        return self.report.correlation

    def conf_int(self) -> NDArray[np.floating[Any]]:
        """(k+1) x 2 coefficient confidence intervals at level 1 - alpha."""
        return self.report.conf_int

    def confidence_bands(self, n_points: int = BAND_POINTS) -> ConfidenceBands:
        """Confidence and prediction bands over [min(x), max(x)]."""
        report = self.report
        return confidence_bands(
            self._design.x,
            self.coefficients,
            self.gram_inverse,
            report.t_critical,
            report.standard_error,
            self.degree,
            n_points=n_points,
        )

    # === Evaluation ===

    def evaluate(self, x: ArrayLike) -> NDArray[np.floating[Any]]:
        """Fitted polynomial at x."""
        return evaluate_polynomial(self.coefficients, x)

    def derivative(self, x: ArrayLike) -> NDArray[np.floating[Any]]:
        """First derivative of the fitted polynomial at x."""
        return polynomial_derivative(self.coefficients, x)

    def curve(self, step: float = CURVE_STEP) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
        """
        Fitted curve sampled from min(x) to max(x) in increments of step,
        for plotting next to the raw samples.
        """
        if step <= 0:
            raise ValueError(f"step must be > 0, got {step}")
        lo, hi = float(self._design.x.min()), float(self._design.x.max())
        n_steps = int(np.floor((hi - lo) / step + 1e-9))
        grid = lo + step * np.arange(n_steps + 1)
        return grid, self.evaluate(grid)

    # === Metadata ===

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        """Solver warnings followed by inference warnings."""
        return self._result.warnings + self.report.warnings

    def summary(self) -> str:
        """Generate the text report."""
        report = self.report
        k = self.degree
        width = 78

        terms = []
        for i in range(k + 1):
            term = f"A{i}"
            if i > 0:
                term += "X"
            if i > 1:
                term += f"^{i}"
            terms.append(term)

        lines = [
            "Polynomial Regression Results",
            "=" * width,
            "y = " + " + ".join(terms),
            f"A0 is {'fixed' if self.fixed_intercept else 'adjustable'}",
            "",
            "Polynomial coefficients:",
            "-" * width,
            f"{'Coeff':<6} {'Value':>12} {'StdErr':>12} {'LowCI':>12} "
            f"{'HighCI':>12} {'Student-t':>10} {'Prob>|t|':>9}",
            "-" * width,
        ]

        ci = report.conf_int
        for i in range(k + 1):
            se = report.standard_errors[i]
            if se > 0 and np.isfinite(report.t_values[i]):
                t_str = f"{report.t_values[i]:10.4g}"
                p_str = f"{report.p_values[i]:9.4g}"
            else:
                t_str = f"{'-':>10}"
                p_str = f"{'-':>9}"
            lines.append(
                f"{'A' + str(i):<6} {self.coefficients[i]:12.6g} {se:12.6g} "
                f"{ci[i, 0]:12.6g} {ci[i, 1]:12.6g} {t_str} {p_str}"
            )

        lines.extend([
            "-" * width,
            "",
            "Statistics:",
            f"  Number of points:        {self._design.n}",
            f"  Degrees of freedom:      {report.df_error}",
            f"  Residual sum of squares: {report.rss:.6g}",
            f"  R-square (COD):          {report.r_squared:.6g}",
            f"  Adj R-square:            {report.adjusted_r_squared:.6g}",
            f"  RMSE:                    {report.standard_error:.6g}",
            f"  t-student value:         {report.t_critical:.6g} "
            f"(alpha = {report.alpha:g})",
            "",
        ])

        a = report.anova
        lines.extend([
            "ANOVA:",
            f"{'':<6} {'DF':>5} {'Sum squares':>14} {'Mean square':>14} "
            f"{'F value':>12} {'Prob>F':>10}",
            f"{'Model':<6} {a.df_model:>5} {a.ss_model:14.6g} {a.ms_model:14.6g} "
            f"{a.f_value:12.6g} {a.p_value:10.4g}",
            f"{'Error':<6} {a.df_error:>5} {a.ss_error:14.6g} {a.ms_error:14.6g}",
            f"{'Total':<6} {a.df_total:>5} {a.ss_total:14.6g}",
            "",
        ])

        lines.append("Covariance matrix:")
        lines.extend(_format_matrix(report.covariance))
        lines.append("")
        lines.append("Correlation matrix:")
        lines.extend(_format_matrix(report.correlation))

        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            lines.extend(f"  - {w}" for w in self.warnings)

        lines.append("")
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"PolySolution(n={self._design.n}, degree={self.degree}, "
            f"fixed_intercept={self.fixed_intercept}, rss={self.rss:.4g})"
        )


def _format_matrix(M: NDArray[np.floating[Any]]) -> list[str]:
    return ["  " + " ".join(f"{v:12.6g}" for v in row) for row in M]
