"""
Polynomial regression backends.

Available backends:
    CPUNormalEquationsBackend: weighted normal equations with a cofactor
        (default) or LU Gram-matrix inverse
"""

from pypolyfit.regression.backends.cpu import CPUNormalEquationsBackend

__all__ = [
    "CPUNormalEquationsBackend",
]
