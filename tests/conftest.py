"""Shared test fixtures and configuration."""

import pytest
import torch
import numpy as np

from tests.utils import build_pair


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure reproducible tests by setting all random seeds.

    This fixture runs automatically for every test to ensure deterministic behavior.
    """
    torch.manual_seed(42)
    np.random.seed(42)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(42)


@pytest.fixture
def device():
    """Get available device (prefer GPU if available)."""
    return torch.device("cuda" if torch.cuda.is_available() else "cpu")


@pytest.fixture
def standard_pair():
    """Three sending units projecting onto one receiver with unit weights."""
    return build_pair()
