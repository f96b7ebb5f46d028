"""
Named numerical constants and tolerance tiers.

Two kinds of values live here:
- settings consumed by the special functions (iteration caps, stopping
  thresholds, denominator floors) and by the inference layer (band size,
  curve step, default significance level);
- tolerance tiers used by the test suite when comparing against reference
  implementations.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SpecialFunctionSettings:
    """
    Iteration and convergence settings for the incomplete beta function.

    Attributes:
        max_iterations: Continued-fraction terms evaluated before giving up
        stop: Convergence threshold on |1 - c*d| per Lentz step
        tiny: Floor applied to |c| and |d| to avoid division by zero
        inverse_precision: Bisection stops when |I_x - target| <= this
        max_bisections: Hard cap on interval halvings; 200 halvings of
            [0, 1] is far below float64 resolution
    """
    max_iterations: int = 200
    stop: float = 1.0e-8
    tiny: float = 1.0e-30
    inverse_precision: float = 1.0e-8
    max_bisections: int = 200


DEFAULT_SPECIAL_FUNCTION_SETTINGS = SpecialFunctionSettings()

# Number of evenly spaced points in the confidence/prediction bands
BAND_POINTS = 101

# x-increment used when sampling the fitted curve for plotting
CURVE_STEP = 0.1

# Significance level for the critical t-value and coefficient intervals
DEFAULT_ALPHA = 0.05


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Well-conditioned problems against numpy/scipy references
CPU_FP64 = ToleranceTier(
    rtol=1e-9,
    atol=1e-9,
    name='cpu_fp64',
    description='CPU double precision, well-conditioned',
)

# Special functions: limited by the 1e-8 continued-fraction stop criterion
SPECIAL_FUNCTION = ToleranceTier(
    rtol=1e-6,
    atol=1e-7,
    name='special_function',
    description='Continued fraction and bisection results',
)

# Data lying exactly on a polynomial
EXACT_FIT = ToleranceTier(
    rtol=0.0,
    atol=1e-9,
    name='exact_fit',
    description='Residuals of an exact polynomial fit',
)
