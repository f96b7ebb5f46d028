"""
Exception hierarchy for PyPolyFit.

All exceptions inherit from PolyFitError to allow catching any
library-specific error.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information

Special functions are the exception to the rule: domain violations and
non-convergence there return NaN and are logged, so that a single invalid
statistic does not abort an otherwise usable fit.
"""


class PolyFitError(Exception):
    """Base exception for all PyPolyFit errors."""
    pass


class ValidationError(PolyFitError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks, including a
    polynomial degree that exceeds the available degrees of freedom.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class NumericalError(PolyFitError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular.

    Raised for a weight matrix with a zero on its diagonal (an unusable
    point) and for a Gram matrix whose determinant is zero.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        determinant: Determinant that was found, if computed
        indices: Offending diagonal positions, if known
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        determinant: float | None = None,
        indices: tuple[int, ...] | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.determinant = determinant
        self.indices = indices
