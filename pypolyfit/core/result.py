"""
Generic result container for PyPolyFit computations.

The Result class provides a standardized envelope around a domain payload.
Timing, metadata and warnings travel with the parameters so that solutions
can report them without reaching back into the backend.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (method, degree, degrees of freedom)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for a fit.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific parameters (coefficients, Gram inverse, ...)
        info: Structured metadata (method, degree, nstar)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=PolyParams(coefficients=beta, gram_inverse=ginv, ...),
        ...     info={'method': 'cofactor', 'degree': 2},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_cofactor'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
