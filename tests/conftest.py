import numpy as np
import pytest


@pytest.fixture
def direct_P() -> np.ndarray:
    """Projection that maps sensor (x, y, z) straight to pixel (x, y)."""
    return np.array([[1.0, 0.0, 0.0, 0.0],
                     [0.0, 1.0, 0.0, 0.0],
                     [0.0, 0.0, 0.0, 1.0]], dtype=np.float64)
