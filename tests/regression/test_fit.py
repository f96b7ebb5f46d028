"""
Tests for regression fit().

Tests the complete pipeline: design construction, backend selection,
and solution properties. numpy.polyfit/lstsq and scipy.stats provide the
reference values.
"""

import logging

import numpy as np
import pytest
from scipy import stats as sp_stats

from pypolyfit import DataSource
from pypolyfit.core.compute.tolerances import CPU_FP64, EXACT_FIT
from pypolyfit.core.exceptions import SingularMatrixError, ValidationError
from pypolyfit.regression import PolyDesign, PolySolution, fit


def _reference_ols(x, y, degree, w=None):
    """Weighted least squares through lstsq on sqrt(w)-scaled rows."""
    X = np.vander(x, degree + 1, increasing=True)
    w = np.ones_like(x) if w is None else w
    sw = np.sqrt(w)
    beta, *_ = np.linalg.lstsq(X * sw[:, np.newaxis], y * sw, rcond=None)
    r = y - X @ beta
    rss = np.sum(w * r * r)
    df = x.size - degree - 1
    cov = rss / df * np.linalg.inv(X.T @ (w[:, np.newaxis] * X))
    return beta, rss, cov, df


# ═══════════════════════════════════════════════════════════════════════
# Basic behaviour
# ═══════════════════════════════════════════════════════════════════════


class TestFitBasic:

    def test_straight_line(self):
        result = fit([0.0, 1.0, 2.0, 3.0], [1.0, 3.0, 5.0, 7.0], 1)
        assert isinstance(result, PolySolution)
        np.testing.assert_allclose(result.coefficients, [1.0, 2.0], atol=1e-9)
        assert result.rss == pytest.approx(0.0, abs=1e-12)
        assert result.r_squared == pytest.approx(1.0)

    def test_fit_from_design(self):
        design = PolyDesign.build([0.0, 1.0, 2.0, 3.0], [1.0, 3.0, 5.0, 7.0], 1)
        result = fit(design)
        assert result.design is design

    def test_requires_y_with_arrays(self):
        with pytest.raises(ValueError, match="y required"):
            fit([0.0, 1.0, 2.0], degree=1)

    def test_requires_degree(self):
        with pytest.raises(ValueError, match="degree required"):
            fit([0.0, 1.0, 2.0], [1.0, 2.0, 3.0])

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown method"):
            fit([0.0, 1.0, 2.0], [1.0, 2.0, 3.0], 1, method='qr')

    @pytest.mark.parametrize("alpha", [0.0, 1.0, -0.1, 2.0])
    def test_rejects_bad_alpha(self, alpha):
        with pytest.raises(ValidationError, match="alpha"):
            fit([0.0, 1.0, 2.0], [1.0, 2.0, 3.0], 1, alpha=alpha)

    def test_degree_too_high(self):
        with pytest.raises(ValidationError, match="too high"):
            fit([0.0, 1.0, 2.0], [1.0, 2.0, 3.0], 3)

    def test_exact_polynomial_recovered(self):
        x = np.linspace(-2.0, 2.0, 9)
        beta_true = np.array([0.5, -1.0, 0.25, 0.75])
        y = np.polynomial.polynomial.polyval(x, beta_true)
        result = fit(x, y, 3)
        np.testing.assert_allclose(result.coefficients, beta_true, atol=EXACT_FIT.atol)

    def test_degree_zero_is_weighted_mean(self):
        y = np.array([1.0, 2.0, 4.0, 9.0])
        result = fit([0.0, 1.0, 2.0, 3.0], y, 0)
        assert result.coefficients[0] == pytest.approx(y.mean())
        assert result.r_squared == pytest.approx(0.0, abs=1e-12)

    def test_residuals_sum_to_near_zero_with_intercept(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x, y, 2)
        assert abs(result.residuals.sum()) < 1e-8
        np.testing.assert_allclose(result.fitted_values + result.residuals, y)


# ═══════════════════════════════════════════════════════════════════════
# Agreement with reference implementations
# ═══════════════════════════════════════════════════════════════════════


class TestFitAgainstReference:

    def test_coefficients_match_polyfit(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x, y, 2)
        np.testing.assert_allclose(result.coefficients, np.polyfit(x, y, 2)[::-1], rtol=1e-7, atol=1e-9)

    def test_inference_matches_lstsq(self, quadratic_data):
        x, y, _ = quadratic_data
        beta, rss, cov, df = _reference_ols(x, y, 2)
        result = fit(x, y, 2)

        assert result.rss == pytest.approx(rss, rel=1e-7)
        assert result.df_error == df
        assert result.standard_error == pytest.approx(np.sqrt(rss / df), rel=1e-7)
        np.testing.assert_allclose(result.covariance, cov, rtol=1e-6)
        np.testing.assert_allclose(result.standard_errors, np.sqrt(np.diag(cov)), rtol=1e-6)

        t_ref = beta / np.sqrt(np.diag(cov))
        np.testing.assert_allclose(result.t_statistics, t_ref, rtol=1e-6)
        np.testing.assert_allclose(
            result.p_values, 2.0 * sp_stats.t.sf(np.abs(t_ref), df), rtol=1e-5, atol=1e-8
        )

    def test_r_squared_matches_definition(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x, y, 2)
        tss = np.sum((y - y.mean()) ** 2)
        assert result.tss == pytest.approx(tss)
        assert result.r_squared == pytest.approx(1.0 - result.rss / tss)
        n = x.size
        assert result.adjusted_r_squared == pytest.approx(
            1.0 - (n - 1) / (n - 3) * result.rss / tss
        )

    def test_anova_matches_scipy(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x[:8], y[:8] + np.sin(x[:8]), 2)
        table = result.anova
        f_ref = ((result.tss - result.rss) / 2) / (result.rss / 5)
        assert table.f_value == pytest.approx(f_ref)
        assert table.p_value == pytest.approx(sp_stats.f.sf(f_ref, 2, 5), abs=1e-7)

    def test_weighted_matches_polyfit(self, weighted_line_data):
        x, y, sigma = weighted_line_data
        result = fit(x, y, 1, errors=sigma, weight_mode='inverse_variance')
        expected = np.polyfit(x, y, 1, w=1.0 / sigma)[::-1]
        np.testing.assert_allclose(result.coefficients, expected, rtol=1e-7)

    def test_weighted_inference_matches_lstsq(self, weighted_line_data):
        x, y, sigma = weighted_line_data
        w = 1.0 / sigma**2
        beta, rss, cov, _ = _reference_ols(x, y, 1, w)
        result = fit(x, y, 1, errors=sigma, weight_mode='inverse_variance')
        assert result.rss == pytest.approx(rss, rel=1e-7)
        np.testing.assert_allclose(result.standard_errors, np.sqrt(np.diag(cov)), rtol=1e-6)

    def test_explicit_weight_matrix(self, weighted_line_data):
        x, y, sigma = weighted_line_data
        by_errors = fit(x, y, 1, errors=sigma, weight_mode='inverse_variance')
        by_matrix = fit(x, y, 1, weights=np.diag(1.0 / sigma**2))
        np.testing.assert_allclose(by_matrix.coefficients, by_errors.coefficients)

    def test_confidence_intervals(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x, y, 2, alpha=0.1)
        t = sp_stats.t.ppf(0.95, x.size - 3)
        assert result.t_critical == pytest.approx(t, rel=1e-5)
        ci = result.conf_int()
        np.testing.assert_allclose(ci[:, 0], result.coefficients - result.t_critical * result.standard_errors)
        np.testing.assert_allclose(ci[:, 1], result.coefficients + result.t_critical * result.standard_errors)

    def test_lu_agrees_with_cofactor(self, quadratic_data):
        x, y, _ = quadratic_data
        cof = fit(x, y, 2)
        lu = fit(x, y, 2, method='lu')
        assert cof.backend_name == 'cpu_cofactor'
        assert lu.backend_name == 'cpu_lu'
        np.testing.assert_allclose(lu.coefficients, cof.coefficients, rtol=CPU_FP64.rtol, atol=CPU_FP64.atol)
        np.testing.assert_allclose(lu.gram_inverse, cof.gram_inverse, rtol=1e-8, atol=1e-14)


# ═══════════════════════════════════════════════════════════════════════
# Fixed intercept
# ═══════════════════════════════════════════════════════════════════════


class TestFixedIntercept:

    def test_intercept_is_pinned(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x, y, 2, fixed_intercept=True, intercept_value=1.0)
        assert result.coefficients[0] == 1.0
        assert result.standard_errors[0] == 0.0
        assert np.isnan(result.p_values[0])
        assert np.all(result.standard_errors[1:] > 0.0)

    def test_matches_lstsq_without_constant(self, quadratic_data):
        x, y, _ = quadratic_data
        c = 1.0
        X = np.column_stack([x, x**2])
        beta, *_ = np.linalg.lstsq(X, y - c, rcond=None)
        result = fit(x, y, 2, fixed_intercept=True, intercept_value=c)
        np.testing.assert_allclose(result.coefficients[1:], beta, rtol=1e-7)

        rss = np.sum((y - c - X @ beta) ** 2)
        cov = rss / (x.size - 2) * np.linalg.inv(X.T @ X)
        np.testing.assert_allclose(result.standard_errors[1:], np.sqrt(np.diag(cov)), rtol=1e-6)

    def test_gram_inverse_pins_first_row(self, quadratic_data):
        x, y, _ = quadratic_data
        G = fit(x, y, 2, fixed_intercept=True).gram_inverse
        np.testing.assert_allclose(G[0], [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(G[:, 0], [1.0, 0.0, 0.0], atol=1e-12)

    def test_degrees_of_freedom(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x, y, 2, fixed_intercept=True)
        assert result.nstar == x.size
        assert result.df_error == x.size - 2
        assert result.tss == pytest.approx(np.sum(y**2))

    def test_covariance_unit_variance_on_intercept(self, quadratic_data):
        x, y, _ = quadratic_data
        result = fit(x, y, 2, fixed_intercept=True)
        assert result.covariance[0, 0] == 1.0

    def test_line_through_origin(self):
        x = np.array([1.0, 2.0, 3.0, 4.0])
        result = fit(x, 2.5 * x, 1, fixed_intercept=True)
        np.testing.assert_allclose(result.coefficients, [0.0, 2.5], atol=1e-12)


# ═══════════════════════════════════════════════════════════════════════
# Exact fits and degenerate input
# ═══════════════════════════════════════════════════════════════════════


class TestExactFit:

    def test_exact_fit_has_zero_standard_errors(self):
        result = fit([0.0, 1.0, 3.0], [2.0, -1.0, 4.0], 2)
        assert result.df_error == 0
        assert result.standard_error == 0.0
        np.testing.assert_array_equal(result.standard_errors, np.zeros(3))
        assert result.t_critical == 0.0
        np.testing.assert_allclose(result.fitted_values, [2.0, -1.0, 4.0], atol=EXACT_FIT.atol)

    def test_exact_fit_is_reported(self):
        result = fit([0.0, 1.0, 3.0], [2.0, -1.0, 4.0], 2)
        assert any("exact fit" in w for w in result.warnings)
        assert "Warnings:" in result.summary()

    def test_exact_fit_with_fixed_intercept(self):
        result = fit([1.0, 2.0], [3.0, 5.0], 2, fixed_intercept=True, intercept_value=1.0)
        np.testing.assert_allclose(result.coefficients, [1.0, 2.0, 0.0], atol=1e-9)
        assert result.df_error == 0

    def test_repeated_x_is_singular(self):
        with pytest.raises(SingularMatrixError):
            fit([1.0, 1.0, 1.0, 1.0], [1.0, 2.0, 3.0, 4.0], 1)


# ═══════════════════════════════════════════════════════════════════════
# Solution helpers
# ═══════════════════════════════════════════════════════════════════════


class TestSolution:

    @pytest.fixture
    def result(self, quadratic_data):
        x, y, _ = quadratic_data
        return fit(x, y, 2)

    def test_evaluate_and_derivative(self, result):
        b = result.coefficients
        assert result.evaluate(2.0) == pytest.approx(b[0] + 2.0 * b[1] + 4.0 * b[2])
        assert result.derivative(2.0) == pytest.approx(b[1] + 4.0 * b[2])

    def test_curve(self, result):
        grid, values = result.curve()
        assert grid.shape == (101,)
        assert grid[0] == 0.0
        assert grid[-1] == pytest.approx(10.0)
        np.testing.assert_allclose(values, result.evaluate(grid))

    def test_curve_rejects_bad_step(self, result):
        with pytest.raises(ValueError, match="step"):
            result.curve(step=0.0)

    def test_summary(self, result):
        text = result.summary()
        for heading in (
            "Polynomial Regression Results",
            "y = A0 + A1X + A2X^2",
            "A0 is adjustable",
            "Polynomial coefficients:",
            "R-square (COD)",
            "ANOVA:",
            "Covariance matrix:",
            "Correlation matrix:",
            "Backend: cpu_cofactor",
        ):
            assert heading in text
        assert "Warnings:" not in text

    def test_summary_fixed_intercept(self, quadratic_data):
        x, y, _ = quadratic_data
        text = fit(x, y, 2, fixed_intercept=True).summary()
        assert "A0 is fixed" in text

    def test_repr(self, result):
        assert repr(result).startswith("PolySolution(n=25, degree=2")

    def test_info_and_timing(self, result):
        assert result.info['method'] == 'cofactor'
        assert result.info['nstar'] == 24
        assert 'total_seconds' in result.timing
        assert 'inverse' in result.timing

    def test_no_warnings_for_clean_fit(self, result):
        assert result.warnings == ()


# ═══════════════════════════════════════════════════════════════════════
# Logging and data sources
# ═══════════════════════════════════════════════════════════════════════


class TestLogging:

    def test_intermediate_matrices_logged_at_debug(self, quadratic_data, caplog):
        x, y, _ = quadratic_data
        logger = logging.getLogger("tests.polyfit")
        with caplog.at_level(logging.DEBUG, logger="tests.polyfit"):
            fit(x, y, 2, logger=logger)
        messages = [r.getMessage() for r in caplog.records if r.name == "tests.polyfit"]
        assert any(m.startswith("Matrix X ") for m in messages)
        assert any(m.startswith("Matrix (X'WX)^-1") for m in messages)

    def test_silent_above_debug(self, quadratic_data, caplog):
        x, y, _ = quadratic_data
        logger = logging.getLogger("tests.polyfit.quiet")
        with caplog.at_level(logging.INFO, logger="tests.polyfit.quiet"):
            fit(x, y, 2, logger=logger)
        assert not [r for r in caplog.records if r.name == "tests.polyfit.quiet"]


class TestDataSourceInput:

    def test_fit_from_arrays_source(self, weighted_line_data):
        x, y, sigma = weighted_line_data
        ds = DataSource.from_arrays(x=x, y=y, errors=sigma)
        result = fit(ds, degree=1, weight_mode='inverse_variance')
        expected = fit(x, y, 1, errors=sigma, weight_mode='inverse_variance')
        np.testing.assert_allclose(result.coefficients, expected.coefficients)

    def test_errors_argument_conflicts_with_source(self, weighted_line_data):
        x, y, sigma = weighted_line_data
        ds = DataSource.from_arrays(x=x, y=y)
        with pytest.raises(ValueError, match="DataSource"):
            fit(ds, degree=1, errors=sigma)

    def test_fit_from_file(self, tmp_path):
        path = tmp_path / "points.csv"
        path.write_text(
            "X,Y,Err,Note\n"
            "0,1,0.1,0\n"
            "1,3,0.1,0\n"
            "2,5,0.2,0\n"
            "3,7,0.2,0\n"
            "4,,,\n"
        )
        ds = DataSource.from_file(path, error_column='Err')
        result = fit(ds, degree=1, weight_mode='inverse_variance')
        np.testing.assert_allclose(result.coefficients, [1.0, 2.0], atol=1e-9)
        assert result.design.n == 4
