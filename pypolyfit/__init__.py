"""
PyPolyFit: weighted polynomial least squares with full inference.

Fits a polynomial of chosen degree to (x, y) observations, optionally
weighted and with a fixed intercept, and reports coefficient standard
errors, t tests, an ANOVA table, R-squared and confidence/prediction bands.

Submodules:
    regression: fit(), weights, inference report and bands
    core: exceptions, validation, special functions, dense linear algebra
"""

__version__ = "0.1.0"

from pypolyfit import regression
from pypolyfit.core.datasource import DataSource
from pypolyfit.regression import (
    fit,
    weights,
    WeightMode,
    stats,
    confidence_bands,
)

__all__ = [
    "__version__",
    "regression",
    "DataSource",
    "fit",
    "weights",
    "WeightMode",
    "stats",
    "confidence_bands",
]
