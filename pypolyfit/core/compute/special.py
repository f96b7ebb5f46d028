"""
Special functions for Student-t and Fisher-F inference.

The regularized incomplete beta function I_x(a, b) is evaluated by the
modified Lentz algorithm on its continued fraction. Its inverse is found
by bisection, and the t and F distributions are expressed through it:

    Student-t, df = v:  P(|T| > t) = I_{v/(v+t^2)}(v/2, 1/2)
    Fisher-F, (d1, d2): P(F <= f)  = I_{d1 f/(d1 f+d2)}(d1/2, d2/2)

Domain violations and non-convergence return NaN and log a warning; they
never raise. Callers must treat NaN as "invalid", not as a number.
"""

import logging
import math

from pypolyfit.core.compute.tolerances import (
    DEFAULT_SPECIAL_FUNCTION_SETTINGS,
    SpecialFunctionSettings,
)

logger = logging.getLogger(__name__)


def incomplete_beta(
    a: float,
    b: float,
    x: float,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> float:
    """
    Regularized incomplete beta function I_x(a, b).

    Args:
        a: First shape parameter, > 0
        b: Second shape parameter, > 0
        x: Evaluation point in [0, 1]
        settings: Iteration cap and stopping thresholds

    Returns:
        I_x(a, b), or NaN if the arguments are out of domain or the
        continued fraction did not converge
    """
    if not (0.0 <= x <= 1.0):
        logger.warning("incomplete_beta: x=%r outside [0, 1]", x)
        return math.nan
    if not (a > 0.0):
        logger.warning("incomplete_beta: a=%r should be > 0", a)
        return math.nan
    if not (b > 0.0):
        logger.warning("incomplete_beta: b=%r should be > 0", b)
        return math.nan

    if x == 0.0:
        return 0.0
    if x == 1.0:
        return 1.0

    # The continued fraction converges quickly only for x < (a+1)/(a+b+2)
    if x > (a + 1.0) / (a + b + 2.0):
        return 1.0 - incomplete_beta(b, a, 1.0 - x, settings)

    lbeta_ab = math.lgamma(a) + math.lgamma(b) - math.lgamma(a + b)
    front = math.exp(math.log(x) * a + math.log(1.0 - x) * b - lbeta_ab) / a

    tiny = settings.tiny
    f, c, d = 1.0, 1.0, 0.0
    for i in range(settings.max_iterations + 1):
        m = i // 2
        if i == 0:
            numerator = 1.0
        elif i % 2 == 0:
            numerator = (m * (b - m) * x) / ((a + 2.0 * m - 1.0) * (a + 2.0 * m))
        else:
            numerator = -((a + m) * (a + b + m) * x) / ((a + 2.0 * m) * (a + 2.0 * m + 1.0))

        d = 1.0 + numerator * d
        if abs(d) < tiny:
            d = tiny
        d = 1.0 / d

        c = 1.0 + numerator / c
        if abs(c) < tiny:
            c = tiny

        cd = c * d
        f *= cd

        if abs(1.0 - cd) < settings.stop:
            logger.debug("incomplete_beta(%g, %g, %g) converged after %d terms", a, b, x, i)
            return front * (f - 1.0)

    logger.warning(
        "incomplete_beta(%g, %g, %g): no convergence after %d iterations",
        a, b, x, settings.max_iterations,
    )
    return math.nan


def inverse_incomplete_beta(
    target: float,
    a: float,
    b: float,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> float:
    """
    Solve I_x(a, b) = target for x by bisection on [0, 1].

    Targets at or below 0 map to 0 and at or above 1 map to 1. Bisection
    stops once |I_x - target| <= settings.inverse_precision, or when the
    midpoint no longer moves in floating point.

    Returns:
        x in [0, 1], or NaN for invalid shape parameters or when the
        incomplete beta function itself fails
    """
    if math.isnan(target):
        logger.warning("inverse_incomplete_beta: target is NaN")
        return math.nan
    if target <= 0.0:
        return 0.0
    if target >= 1.0:
        return 1.0
    if not (a > 0.0):
        logger.warning("inverse_incomplete_beta: a=%r should be > 0", a)
        return math.nan
    if not (b > 0.0):
        logger.warning("inverse_incomplete_beta: b=%r should be > 0", b)
        return math.nan

    lo, hi = 0.0, 1.0
    x = 0.5
    current = incomplete_beta(a, b, x, settings)

    for _ in range(settings.max_bisections):
        if math.isnan(current):
            return math.nan
        if abs(current - target) <= settings.inverse_precision:
            return x

        if current < target:
            lo = x
        else:
            hi = x
        midpoint = 0.5 * (lo + hi)
        if midpoint == x:
            break
        x = midpoint
        current = incomplete_beta(a, b, x, settings)

    logger.debug(
        "inverse_incomplete_beta(%g, %g, %g): stopped at x=%r, residual %.3e",
        target, a, b, x, abs(current - target),
    )
    return x


def student_t_quantile(
    df: float,
    alpha: float,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> float:
    """
    Quantile of Student's t distribution: t such that P(T <= t) = alpha.

    Args:
        df: Degrees of freedom, > 0
        alpha: Lower-tail probability in (0, 1)

    Returns:
        The quantile (negative for alpha < 0.5), or NaN if alpha is
        outside (0, 1), df <= 0, or the inversion fails
    """
    if not (0.0 < alpha < 1.0):
        logger.warning("student_t_quantile: alpha=%r outside (0, 1)", alpha)
        return math.nan
    if not (df > 0.0):
        logger.warning("student_t_quantile: df=%r should be > 0", df)
        return math.nan

    x = inverse_incomplete_beta(2.0 * min(alpha, 1.0 - alpha), 0.5 * df, 0.5, settings)
    if math.isnan(x):
        return math.nan
    t = math.sqrt(df * (1.0 - x) / x)
    return t if alpha >= 0.5 else -t


def student_cdf(
    df: float,
    t: float,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> float:
    """
    Cumulative distribution function of Student's t, P(T <= t).

    Returns:
        The CDF value, or NaN if df <= 0 or t is NaN
    """
    if not (df > 0.0):
        logger.warning("student_cdf: df=%r should be > 0", df)
        return math.nan
    if math.isnan(t):
        logger.warning("student_cdf: t is NaN")
        return math.nan

    x = df / (df + t * t)
    tail = 0.5 * incomplete_beta(0.5 * df, 0.5, x, settings)
    return 1.0 - tail if t > 0.0 else tail


def fisher_cdf(
    df1: float,
    df2: float,
    x: float,
    settings: SpecialFunctionSettings = DEFAULT_SPECIAL_FUNCTION_SETTINGS,
) -> float:
    """
    Cumulative distribution function of Fisher's F, P(F <= x).

    Returns:
        The CDF value (0 for x <= 0, 1 for x = +inf), or NaN if either
        df is <= 0 or x is NaN
    """
    if not (df1 > 0.0 and df2 > 0.0):
        logger.warning("fisher_cdf: df1=%r, df2=%r should both be > 0", df1, df2)
        return math.nan
    if math.isnan(x):
        logger.warning("fisher_cdf: x is NaN")
        return math.nan
    if x <= 0.0:
        return 0.0
    if math.isinf(x):
        return 1.0

    y = df1 * x / (df1 * x + df2)
    return incomplete_beta(0.5 * df1, 0.5 * df2, y, settings)
