"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def quadratic_data(rng):
    """Noisy quadratic: y = 1 - 2x + 0.5x^2 + e, e ~ N(0, 0.1^2)."""
    x = np.linspace(0.0, 10.0, 25)
    beta_true = np.array([1.0, -2.0, 0.5])
    y = beta_true[0] + beta_true[1] * x + beta_true[2] * x**2 + rng.standard_normal(x.size) * 0.1
    return x, y, beta_true


@pytest.fixture
def weighted_line_data(rng):
    """Straight line with heteroscedastic errors and their sigmas."""
    x = np.arange(1.0, 21.0)
    sigma = 0.05 + 0.02 * x
    y = 3.0 + 0.75 * x + rng.standard_normal(x.size) * sigma
    return x, y, sigma
