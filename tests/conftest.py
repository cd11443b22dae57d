import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest


class FixedSoftClassifier:
    """Soft classifier returning the same positive probability for any sample."""

    def __init__(self, p: float):
        self.p = p
        self.calls = 0

    def predict_proba(self, x):
        self.calls += 1
        return np.array([1.0 - self.p, self.p])


@pytest.fixture
def fixed():
    """Build K fixed-probability classifiers from a list of probabilities."""
    def make(probabilities):
        return [FixedSoftClassifier(p) for p in probabilities]
    return make
